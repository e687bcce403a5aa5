# presence_reports/schemas/gateway_report.py
from datetime import datetime
from typing import List, Optional

from presence_reports.schemas.base import LocationContext, ReportModel
from presence_reports.schemas.distribution import TimeBucket


class GatewayUsageDeviceSummary(LocationContext):
    device_id: int
    device_name: Optional[str] = None
    device_mac_address: Optional[str] = None

    total_dwell_seconds: int
    sessions_count: int
    unique_people_count: int

    first_session_at: Optional[datetime] = None
    last_session_at: Optional[datetime] = None


class GatewayUsageSummary(ReportModel):
    from_ts: Optional[datetime] = None
    to_ts: Optional[datetime] = None

    total_sessions: int
    total_dwell_seconds: int
    total_devices: int
    total_unique_people: int = 0

    gateways: List[GatewayUsageDeviceSummary]
    # atalho pro "campeão"
    top_device_id: Optional[int] = None


class PeakBucket(ReportModel):
    bucket_start: datetime
    unique_tags_count: int
    unique_people_count: int


class GatewayOccupancyReport(ReportModel):
    device_id: int
    device_name: Optional[str] = None
    from_ts: datetime
    to_ts: datetime
    bucket_minutes: int
    buckets: List[TimeBucket]
    peak: Optional[PeakBucket] = None
    avg_dwell_seconds: Optional[float] = None
    p50_dwell_seconds: Optional[float] = None
    p95_dwell_seconds: Optional[float] = None


class ConcurrencyBucket(ReportModel):
    bucket_start: datetime
    peak_concurrency_people: int = 0


class GatewayConcurrencyReport(ReportModel):
    device_id: int
    device_name: Optional[str] = None
    from_ts: datetime
    to_ts: datetime
    bucket_minutes: int
    buckets: List[ConcurrencyBucket]
