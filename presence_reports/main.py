# presence_reports/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from presence_reports.api.v1.api import api_router
from presence_reports.core.config import settings
from presence_reports.core.errors import ReportError
from presence_reports.db.session import engine

logger = logging.getLogger("presence.main")

app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
)
origins = ["*"]

# --- CORS para o frontend ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ReportError)
async def report_error_handler(request: Request, exc: ReportError) -> JSONResponse:
    # mesmo formato do HTTPException: {"detail": ...}
    if exc.status_code >= 500:
        logger.error("Falha em %s: %s", request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.on_event("startup")
async def on_startup() -> None:
    logger.info("Starting %s (timezone dos relatórios: %s)", settings.APP_NAME, settings.REPORTS_TIMEZONE)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    logger.info("Disposing database engine...")
    await engine.dispose()


@app.get("/health", tags=["health"])
async def healthcheck():
    return {"status": "ok"}


app.include_router(api_router, prefix="/api/v1")
