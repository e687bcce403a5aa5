# presence_reports/schemas/person_report.py
from datetime import datetime
from typing import List, Optional

from presence_reports.schemas.alerts_report import AlertByDevice, AlertEventItem, AlertTypeCount
from presence_reports.schemas.base import LocationContext, ReportModel


class PersonDwellByDevice(LocationContext):
    device_id: int
    device_name: Optional[str] = None

    total_dwell_seconds: int
    sessions_count: int


class PersonPresenceSummary(ReportModel):
    person_id: int
    person_full_name: str

    from_ts: Optional[datetime] = None
    to_ts: Optional[datetime] = None

    total_dwell_seconds: int
    total_sessions: int
    avg_dwell_seconds: Optional[float] = None

    first_session_at: Optional[datetime] = None
    last_session_at: Optional[datetime] = None

    dwell_by_device: List[PersonDwellByDevice]

    # atalho: device onde mais ficou
    top_device_id: Optional[int] = None


class PersonTimelineSession(LocationContext):
    session_id: int

    device_id: int
    device_name: Optional[str] = None

    tag_id: int

    # já clipados na janela
    started_at: datetime
    ended_at: datetime
    duration_seconds: int
    samples_count: int


class PersonTimeline(ReportModel):
    person_id: int
    person_full_name: str

    from_ts: datetime
    to_ts: datetime

    total_sessions: int
    sessions: List[PersonTimelineSession]


class PersonAlertsReport(ReportModel):
    person_id: int
    person_full_name: str

    from_ts: Optional[datetime] = None
    to_ts: Optional[datetime] = None

    total_alerts: int
    first_alert_at: Optional[datetime] = None
    last_alert_at: Optional[datetime] = None

    by_type: List[AlertTypeCount]
    by_device: List[AlertByDevice]
    events: List[AlertEventItem]


class GroupPersonDwellSummary(ReportModel):
    """Resumo de tempo por pessoa dentro de um grupo."""
    person_id: int
    person_full_name: str
    total_dwell_seconds: int
    sessions_count: int


class GroupDwellByDevice(LocationContext):
    """Resumo de tempo por device (gateway) agregando todo o grupo."""
    device_id: int
    device_name: Optional[str] = None

    total_dwell_seconds: int
    sessions_count: int
    unique_people_count: int


class PersonGroupPresenceSummary(ReportModel):
    """Resumo de presença de um grupo de pessoas."""
    group_id: int
    group_name: str

    from_ts: Optional[datetime] = None
    to_ts: Optional[datetime] = None

    total_dwell_seconds: int
    total_sessions: int
    total_unique_people: int
    avg_dwell_seconds: Optional[float] = None

    first_session_at: Optional[datetime] = None
    last_session_at: Optional[datetime] = None

    dwell_by_device: List[GroupDwellByDevice]
    dwell_by_person: List[GroupPersonDwellSummary]

    top_device_id: Optional[int] = None


class PersonGroupAlertsReport(ReportModel):
    """Relatório de alertas de um grupo de pessoas."""
    group_id: int
    group_name: str

    from_ts: Optional[datetime] = None
    to_ts: Optional[datetime] = None

    total_alerts: int
    first_alert_at: Optional[datetime] = None
    last_alert_at: Optional[datetime] = None

    by_type: List[AlertTypeCount]
    by_device: List[AlertByDevice]
    events: List[AlertEventItem]
