# presence_reports/schemas/building_report.py
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from presence_reports.schemas.base import ReportModel


class BuildingSummaryItem(ReportModel):
    device_id: Optional[int] = None
    device_name: Optional[str] = None
    sessions_count: int = 0
    total_dwell_seconds: int = 0
    unique_people_count: int = 0


class BuildingSummaryReport(ReportModel):
    building_id: int
    building_name: str
    from_ts: Optional[datetime] = None
    to_ts: Optional[datetime] = None
    total_sessions: int = 0
    total_dwell_seconds: int = 0
    unique_people_count: int = 0
    unique_tags_count: int = 0
    avg_dwell_seconds: Optional[float] = None
    p50_dwell_seconds: Optional[float] = None
    p95_dwell_seconds: Optional[float] = None
    first_session_at: Optional[datetime] = None
    last_session_at: Optional[datetime] = None
    top_gateways_by_sessions: List[BuildingSummaryItem] = Field(default_factory=list)
    top_gateways_by_dwell: List[BuildingSummaryItem] = Field(default_factory=list)
