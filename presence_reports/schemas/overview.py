# presence_reports/schemas/overview.py
from datetime import datetime
from typing import List, Optional

from presence_reports.schemas.base import ReportModel


class ReportsOverviewSummary(ReportModel):
    from_ts: Optional[datetime] = None
    to_ts: Optional[datetime] = None
    total_sessions: int
    total_unique_tags: int
    total_unique_devices: int
    total_unique_people: int
    total_dwell_seconds: int
    avg_dwell_seconds: Optional[float] = None
    first_session_at: Optional[datetime] = None
    last_session_at: Optional[datetime] = None


class TopItem(ReportModel):
    total_sessions: int
    total_dwell_seconds: int


class TopBuilding(TopItem):
    building_id: int
    building_name: str


class TopFloor(TopItem):
    floor_id: int
    floor_name: str
    building_id: Optional[int] = None
    building_name: Optional[str] = None


class TopGroup(TopItem):
    group_id: int
    group_name: str


class TopDevice(TopItem):
    device_id: int
    device_name: str


class TopPerson(TopItem):
    person_id: int
    person_name: str


class ReportsOverview(ReportModel):
    summary: ReportsOverviewSummary
    top_buildings: List[TopBuilding]
    top_floors: List[TopFloor]
    top_groups: List[TopGroup]
    top_devices: List[TopDevice]
    top_people: List[TopPerson]
