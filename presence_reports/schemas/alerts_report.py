# presence_reports/schemas/alerts_report.py
from datetime import datetime
from typing import List, Literal, Optional

from presence_reports.schemas.base import LocationContext, ReportModel


class AlertTypeCount(ReportModel):
    event_type: str
    alerts_count: int


class AlertByDevice(LocationContext):
    device_id: Optional[int] = None
    device_name: Optional[str] = None
    alerts_count: int


class AlertEventItem(LocationContext):
    id: int
    event_type: str

    device_id: Optional[int] = None
    device_name: Optional[str] = None

    tag_id: Optional[int] = None
    person_id: Optional[int] = None

    started_at: datetime
    ended_at: Optional[datetime] = None


class AlertsSummaryReport(ReportModel):
    """Resumo de alertas de gateway / prédio (sem lista de eventos)."""
    scope: Literal["gateway", "building"]
    scope_id: int
    scope_name: Optional[str] = None

    from_ts: Optional[datetime] = None
    to_ts: Optional[datetime] = None

    total_alerts: int
    first_alert_at: Optional[datetime] = None
    last_alert_at: Optional[datetime] = None
    by_type: List[AlertTypeCount]
