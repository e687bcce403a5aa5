# presence_reports/api/v1/api.py
from fastapi import APIRouter

from presence_reports.api.routes import reports

api_router = APIRouter()

api_router.include_router(
    reports.router,
    prefix="/reports",
    tags=["reports"],
)
