# presence_reports/schemas/distribution.py
"""
Distribuições temporais compartilhadas por pessoa, grupo, gateway e prédio.

bucket_start é sempre UTC naive; as fronteiras de calendário / hora / dia
foram calculadas no fuso informado em `timezone`.
"""
from datetime import datetime
from typing import List, Optional

from presence_reports.schemas.base import ReportModel, ScopeName


class TimeBucket(ReportModel):
    bucket_start: datetime
    total_dwell_seconds: int = 0
    sessions_count: int = 0
    unique_tags_count: int = 0
    unique_people_count: int = 0


class HourOfDayBucket(ReportModel):
    hour: int  # 0..23
    total_dwell_seconds: int = 0
    sessions_count: int = 0
    unique_tags_count: int = 0
    unique_people_count: int = 0


class DayOfWeekBucket(ReportModel):
    """
    Dia da semana (0..6) – padrão PostgreSQL:
    0 = domingo, 1 = segunda, ..., 6 = sábado
    """
    day_of_week: int
    total_dwell_seconds: int = 0
    sessions_count: int = 0
    unique_tags_count: int = 0
    unique_people_count: int = 0


class HourByGatewayBucket(ReportModel):
    """Uma combinação (hora do dia, gateway)."""
    hour: int
    device_id: int
    device_name: Optional[str] = None
    total_dwell_seconds: int
    sessions_count: int
    unique_people_count: int = 0


class _Distribution(ReportModel):
    scope: ScopeName
    scope_id: int
    scope_name: Optional[str] = None

    from_ts: datetime
    to_ts: datetime
    timezone: str


class TimeSeriesDistribution(_Distribution):
    """
    Buckets de calendário (granularity = day|week|month|year) ou de largura
    fixa (granularity = "fixed", com bucket_minutes).
    """
    granularity: str
    bucket_minutes: Optional[int] = None
    buckets: List[TimeBucket]


class HourOfDayDistribution(_Distribution):
    buckets: List[HourOfDayBucket]


class DayOfWeekDistribution(_Distribution):
    buckets: List[DayOfWeekBucket]


class HourByGatewayDistribution(_Distribution):
    # só combinações com presença, ordenadas por (hour, device_id)
    buckets: List[HourByGatewayBucket]
