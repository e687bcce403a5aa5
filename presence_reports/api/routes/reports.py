# presence_reports/api/routes/reports.py
"""
Relatórios de RTLS (PresenceSession + AlertEvent)

Rotas finas: cada endpoint monta a janela e delega para uma função de
presence_reports.services.reports. Nenhuma agregação acontece aqui.

- Janela sempre normalizada para UTC *naive*.
- Sem from_ts/to_ts => janela default por família de relatório
  (resumos: 7 dias, distribuições/alertas: 30 dias, ocupação: 24h).
- Erros do motor (ReportError) viram {"detail": ...} no handler do app.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query

from presence_reports.api.deps import get_store
from presence_reports.core.config import settings
from presence_reports.engine.intervals import Window, to_utc_naive
from presence_reports.schemas.alerts_report import AlertsSummaryReport
from presence_reports.schemas.building_report import BuildingSummaryReport
from presence_reports.schemas.distribution import (
    DayOfWeekDistribution,
    HourByGatewayDistribution,
    HourOfDayDistribution,
    TimeSeriesDistribution,
)
from presence_reports.schemas.gateway_report import (
    GatewayConcurrencyReport,
    GatewayOccupancyReport,
    GatewayUsageSummary,
)
from presence_reports.schemas.overview import ReportsOverview
from presence_reports.schemas.person_report import (
    PersonAlertsReport,
    PersonGroupAlertsReport,
    PersonGroupPresenceSummary,
    PersonPresenceSummary,
    PersonTimeline,
)
from presence_reports.services import reports as svc
from presence_reports.store.base import SessionStore

router = APIRouter()


def _now_utc_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _coerce_window(
    *,
    from_ts: Optional[datetime],
    to_ts: Optional[datetime],
    default_hours: int,
    min_duration_seconds: Optional[int] = None,
) -> Window:
    """Normaliza para UTC naive e aplica janela default nas pontas vazias."""
    t = to_utc_naive(to_ts) if to_ts is not None else _now_utc_naive()
    f = to_utc_naive(from_ts) if from_ts is not None else t - timedelta(hours=default_hours)
    return Window.build(f, t, min_duration_seconds=min_duration_seconds)


# ---------------------------------------------------------------------------
# Overview
# ---------------------------------------------------------------------------


@router.get("/overview", response_model=ReportsOverview)
async def reports_overview(
    from_ts: Optional[datetime] = Query(default=None),
    to_ts: Optional[datetime] = Query(default=None),
    device_id: Optional[int] = Query(default=None),
    tag_id: Optional[int] = Query(default=None),
    min_duration_seconds: Optional[int] = Query(default=None),
    top_n: Optional[int] = Query(default=None),
    store: SessionStore = Depends(get_store),
) -> ReportsOverview:
    """Overview para dashboards."""
    window = _coerce_window(
        from_ts=from_ts,
        to_ts=to_ts,
        default_hours=settings.REPORTS_DEFAULT_SUMMARY_HOURS,
        min_duration_seconds=min_duration_seconds,
    )
    return await svc.overview(store, window, device_id=device_id, tag_id=tag_id, top_n=top_n)


# ---------------------------------------------------------------------------
# Person
# ---------------------------------------------------------------------------


@router.get("/person/{person_id}/summary", response_model=PersonPresenceSummary)
async def get_person_summary(
    person_id: int,
    from_ts: Optional[datetime] = Query(default=None),
    to_ts: Optional[datetime] = Query(default=None),
    min_duration_seconds: Optional[int] = Query(default=None),
    store: SessionStore = Depends(get_store),
) -> PersonPresenceSummary:
    window = _coerce_window(
        from_ts=from_ts,
        to_ts=to_ts,
        default_hours=settings.REPORTS_DEFAULT_SUMMARY_HOURS,
        min_duration_seconds=min_duration_seconds,
    )
    return await svc.person_summary(store, person_id, window)


@router.get("/person/{person_id}/timeline", response_model=PersonTimeline)
async def get_person_timeline(
    person_id: int,
    from_ts: Optional[datetime] = Query(default=None),
    to_ts: Optional[datetime] = Query(default=None),
    min_duration_seconds: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    store: SessionStore = Depends(get_store),
) -> PersonTimeline:
    window = _coerce_window(
        from_ts=from_ts,
        to_ts=to_ts,
        default_hours=settings.REPORTS_DEFAULT_SUMMARY_HOURS,
        min_duration_seconds=min_duration_seconds,
    )
    return await svc.person_timeline(store, person_id, window, limit=limit)


@router.get("/person/{person_id}/time-distribution/calendar", response_model=TimeSeriesDistribution)
async def get_person_time_distribution_calendar(
    person_id: int,
    granularity: str = Query(default="day"),
    from_ts: Optional[datetime] = Query(default=None),
    to_ts: Optional[datetime] = Query(default=None),
    min_duration_seconds: Optional[int] = Query(default=None),
    store: SessionStore = Depends(get_store),
) -> TimeSeriesDistribution:
    window = _coerce_window(
        from_ts=from_ts,
        to_ts=to_ts,
        default_hours=settings.REPORTS_DEFAULT_DISTRIBUTION_HOURS,
        min_duration_seconds=min_duration_seconds,
    )
    return await svc.person_calendar(store, person_id, window, granularity)


@router.get("/person/{person_id}/time-distribution/hour-of-day", response_model=HourOfDayDistribution)
async def get_person_time_of_day(
    person_id: int,
    from_ts: Optional[datetime] = Query(default=None),
    to_ts: Optional[datetime] = Query(default=None),
    min_duration_seconds: Optional[int] = Query(default=None),
    store: SessionStore = Depends(get_store),
) -> HourOfDayDistribution:
    window = _coerce_window(
        from_ts=from_ts,
        to_ts=to_ts,
        default_hours=settings.REPORTS_DEFAULT_DISTRIBUTION_HOURS,
        min_duration_seconds=min_duration_seconds,
    )
    return await svc.person_hour_of_day(store, person_id, window)


@router.get("/person/{person_id}/time-distribution/day-of-week", response_model=DayOfWeekDistribution)
async def get_person_day_of_week(
    person_id: int,
    from_ts: Optional[datetime] = Query(default=None),
    to_ts: Optional[datetime] = Query(default=None),
    min_duration_seconds: Optional[int] = Query(default=None),
    store: SessionStore = Depends(get_store),
) -> DayOfWeekDistribution:
    window = _coerce_window(
        from_ts=from_ts,
        to_ts=to_ts,
        default_hours=settings.REPORTS_DEFAULT_DISTRIBUTION_HOURS,
        min_duration_seconds=min_duration_seconds,
    )
    return await svc.person_day_of_week(store, person_id, window)


@router.get("/person/{person_id}/time-distribution/hour-by-gateway", response_model=HourByGatewayDistribution)
async def get_person_hour_by_gateway(
    person_id: int,
    from_ts: Optional[datetime] = Query(default=None),
    to_ts: Optional[datetime] = Query(default=None),
    min_duration_seconds: Optional[int] = Query(default=None),
    store: SessionStore = Depends(get_store),
) -> HourByGatewayDistribution:
    window = _coerce_window(
        from_ts=from_ts,
        to_ts=to_ts,
        default_hours=settings.REPORTS_DEFAULT_DISTRIBUTION_HOURS,
        min_duration_seconds=min_duration_seconds,
    )
    return await svc.person_hour_by_gateway(store, person_id, window)


@router.get("/person/{person_id}/alerts", response_model=PersonAlertsReport)
async def get_person_alerts(
    person_id: int,
    from_ts: Optional[datetime] = Query(default=None),
    to_ts: Optional[datetime] = Query(default=None),
    event_type: Optional[str] = Query(default=None),
    device_id: Optional[int] = Query(default=None),
    max_events: Optional[int] = Query(default=None),
    store: SessionStore = Depends(get_store),
) -> PersonAlertsReport:
    window = _coerce_window(from_ts=from_ts, to_ts=to_ts, default_hours=settings.REPORTS_DEFAULT_ALERTS_HOURS)
    return await svc.person_alerts(
        store,
        person_id,
        window,
        event_type=event_type,
        device_id=device_id,
        max_events=max_events,
    )


# ---------------------------------------------------------------------------
# Person group
# ---------------------------------------------------------------------------


@router.get("/person-group/{group_id}/summary", response_model=PersonGroupPresenceSummary)
async def get_person_group_summary(
    group_id: int,
    from_ts: Optional[datetime] = Query(default=None),
    to_ts: Optional[datetime] = Query(default=None),
    min_duration_seconds: Optional[int] = Query(default=None),
    store: SessionStore = Depends(get_store),
) -> PersonGroupPresenceSummary:
    window = _coerce_window(
        from_ts=from_ts,
        to_ts=to_ts,
        default_hours=settings.REPORTS_DEFAULT_SUMMARY_HOURS,
        min_duration_seconds=min_duration_seconds,
    )
    return await svc.group_summary(store, group_id, window)


@router.get("/person-group/{group_id}/time-distribution/calendar", response_model=TimeSeriesDistribution)
async def get_group_time_distribution_calendar(
    group_id: int,
    granularity: str = Query(default="day"),
    from_ts: Optional[datetime] = Query(default=None),
    to_ts: Optional[datetime] = Query(default=None),
    min_duration_seconds: Optional[int] = Query(default=None),
    store: SessionStore = Depends(get_store),
) -> TimeSeriesDistribution:
    window = _coerce_window(
        from_ts=from_ts,
        to_ts=to_ts,
        default_hours=settings.REPORTS_DEFAULT_DISTRIBUTION_HOURS,
        min_duration_seconds=min_duration_seconds,
    )
    return await svc.group_calendar(store, group_id, window, granularity)


@router.get("/person-group/{group_id}/time-distribution/hour-of-day", response_model=HourOfDayDistribution)
async def get_group_time_of_day(
    group_id: int,
    from_ts: Optional[datetime] = Query(default=None),
    to_ts: Optional[datetime] = Query(default=None),
    min_duration_seconds: Optional[int] = Query(default=None),
    store: SessionStore = Depends(get_store),
) -> HourOfDayDistribution:
    window = _coerce_window(
        from_ts=from_ts,
        to_ts=to_ts,
        default_hours=settings.REPORTS_DEFAULT_DISTRIBUTION_HOURS,
        min_duration_seconds=min_duration_seconds,
    )
    return await svc.group_hour_of_day(store, group_id, window)


@router.get("/person-group/{group_id}/time-distribution/day-of-week", response_model=DayOfWeekDistribution)
async def get_group_day_of_week(
    group_id: int,
    from_ts: Optional[datetime] = Query(default=None),
    to_ts: Optional[datetime] = Query(default=None),
    min_duration_seconds: Optional[int] = Query(default=None),
    store: SessionStore = Depends(get_store),
) -> DayOfWeekDistribution:
    window = _coerce_window(
        from_ts=from_ts,
        to_ts=to_ts,
        default_hours=settings.REPORTS_DEFAULT_DISTRIBUTION_HOURS,
        min_duration_seconds=min_duration_seconds,
    )
    return await svc.group_day_of_week(store, group_id, window)


@router.get("/person-group/{group_id}/time-distribution/hour-by-gateway", response_model=HourByGatewayDistribution)
async def get_group_hour_by_gateway(
    group_id: int,
    from_ts: Optional[datetime] = Query(default=None),
    to_ts: Optional[datetime] = Query(default=None),
    min_duration_seconds: Optional[int] = Query(default=None),
    store: SessionStore = Depends(get_store),
) -> HourByGatewayDistribution:
    window = _coerce_window(
        from_ts=from_ts,
        to_ts=to_ts,
        default_hours=settings.REPORTS_DEFAULT_DISTRIBUTION_HOURS,
        min_duration_seconds=min_duration_seconds,
    )
    return await svc.group_hour_by_gateway(store, group_id, window)


@router.get("/person-group/{group_id}/alerts", response_model=PersonGroupAlertsReport)
async def get_person_group_alerts(
    group_id: int,
    from_ts: Optional[datetime] = Query(default=None),
    to_ts: Optional[datetime] = Query(default=None),
    event_type: Optional[str] = Query(default=None),
    device_id: Optional[int] = Query(default=None),
    max_events: Optional[int] = Query(default=None),
    store: SessionStore = Depends(get_store),
) -> PersonGroupAlertsReport:
    window = _coerce_window(from_ts=from_ts, to_ts=to_ts, default_hours=settings.REPORTS_DEFAULT_ALERTS_HOURS)
    return await svc.group_alerts(
        store,
        group_id,
        window,
        event_type=event_type,
        device_id=device_id,
        max_events=max_events,
    )


# ---------------------------------------------------------------------------
# Gateways
# ---------------------------------------------------------------------------


@router.get("/gateways/usage-summary", response_model=GatewayUsageSummary)
async def get_gateways_usage_summary(
    from_ts: Optional[datetime] = Query(default=None),
    to_ts: Optional[datetime] = Query(default=None),
    building_id: Optional[int] = Query(default=None),
    floor_id: Optional[int] = Query(default=None),
    floor_plan_id: Optional[int] = Query(default=None),
    device_id: Optional[int] = Query(default=None),
    min_duration_seconds: Optional[int] = Query(default=None),
    store: SessionStore = Depends(get_store),
) -> GatewayUsageSummary:
    window = _coerce_window(
        from_ts=from_ts,
        to_ts=to_ts,
        default_hours=settings.REPORTS_DEFAULT_SUMMARY_HOURS,
        min_duration_seconds=min_duration_seconds,
    )
    return await svc.gateway_usage_summary(
        store,
        window,
        building_id=building_id,
        floor_id=floor_id,
        floor_plan_id=floor_plan_id,
        device_id=device_id,
    )


@router.get("/gateways/{device_id}/time-of-day", response_model=HourOfDayDistribution)
async def get_gateway_time_of_day(
    device_id: int,
    from_ts: Optional[datetime] = Query(default=None),
    to_ts: Optional[datetime] = Query(default=None),
    min_duration_seconds: Optional[int] = Query(default=None),
    store: SessionStore = Depends(get_store),
) -> HourOfDayDistribution:
    window = _coerce_window(
        from_ts=from_ts,
        to_ts=to_ts,
        default_hours=settings.REPORTS_DEFAULT_DISTRIBUTION_HOURS,
        min_duration_seconds=min_duration_seconds,
    )
    return await svc.gateway_time_of_day(store, device_id, window)


@router.get("/gateways/{device_id}/occupancy", response_model=GatewayOccupancyReport)
async def get_gateway_occupancy(
    device_id: int,
    from_ts: Optional[datetime] = Query(default=None),
    to_ts: Optional[datetime] = Query(default=None),
    bucket_minutes: Optional[int] = Query(default=None),
    min_duration_seconds: Optional[int] = Query(default=None),
    store: SessionStore = Depends(get_store),
) -> GatewayOccupancyReport:
    window = _coerce_window(
        from_ts=from_ts,
        to_ts=to_ts,
        default_hours=settings.REPORTS_DEFAULT_OCCUPANCY_HOURS,
        min_duration_seconds=min_duration_seconds,
    )
    return await svc.gateway_occupancy(store, device_id, window, bucket_minutes=bucket_minutes)


@router.get("/gateways/{device_id}/concurrency", response_model=GatewayConcurrencyReport)
async def get_gateway_concurrency(
    device_id: int,
    from_ts: Optional[datetime] = Query(default=None),
    to_ts: Optional[datetime] = Query(default=None),
    bucket_minutes: Optional[int] = Query(default=None),
    min_duration_seconds: Optional[int] = Query(default=None),
    store: SessionStore = Depends(get_store),
) -> GatewayConcurrencyReport:
    window = _coerce_window(
        from_ts=from_ts,
        to_ts=to_ts,
        default_hours=settings.REPORTS_DEFAULT_OCCUPANCY_HOURS,
        min_duration_seconds=min_duration_seconds,
    )
    return await svc.gateway_concurrency(store, device_id, window, bucket_minutes=bucket_minutes)


@router.get("/gateways/{device_id}/alerts/summary", response_model=AlertsSummaryReport)
async def get_gateway_alerts_summary(
    device_id: int,
    from_ts: Optional[datetime] = Query(default=None),
    to_ts: Optional[datetime] = Query(default=None),
    event_type: Optional[str] = Query(default=None),
    store: SessionStore = Depends(get_store),
) -> AlertsSummaryReport:
    window = _coerce_window(from_ts=from_ts, to_ts=to_ts, default_hours=settings.REPORTS_DEFAULT_ALERTS_HOURS)
    return await svc.gateway_alerts_summary(store, device_id, window, event_type=event_type)


# ---------------------------------------------------------------------------
# Buildings
# ---------------------------------------------------------------------------


@router.get("/buildings/{building_id}/summary", response_model=BuildingSummaryReport)
async def get_building_summary(
    building_id: int,
    from_ts: Optional[datetime] = Query(default=None),
    to_ts: Optional[datetime] = Query(default=None),
    min_duration_seconds: Optional[int] = Query(default=None),
    top_n: Optional[int] = Query(default=None),
    store: SessionStore = Depends(get_store),
) -> BuildingSummaryReport:
    window = _coerce_window(
        from_ts=from_ts,
        to_ts=to_ts,
        default_hours=settings.REPORTS_DEFAULT_SUMMARY_HOURS,
        min_duration_seconds=min_duration_seconds,
    )
    return await svc.building_summary(store, building_id, window, top_n=top_n)


@router.get("/buildings/{building_id}/time-of-day", response_model=TimeSeriesDistribution)
async def get_building_time_of_day(
    building_id: int,
    from_ts: Optional[datetime] = Query(default=None),
    to_ts: Optional[datetime] = Query(default=None),
    bucket_minutes: Optional[int] = Query(default=None),
    min_duration_seconds: Optional[int] = Query(default=None),
    store: SessionStore = Depends(get_store),
) -> TimeSeriesDistribution:
    window = _coerce_window(
        from_ts=from_ts,
        to_ts=to_ts,
        default_hours=settings.REPORTS_DEFAULT_OCCUPANCY_HOURS,
        min_duration_seconds=min_duration_seconds,
    )
    return await svc.building_time_of_day(store, building_id, window, bucket_minutes=bucket_minutes)


@router.get("/buildings/{building_id}/time-distribution/calendar", response_model=TimeSeriesDistribution)
async def get_building_time_distribution_calendar(
    building_id: int,
    granularity: str = Query(default="day"),
    from_ts: Optional[datetime] = Query(default=None),
    to_ts: Optional[datetime] = Query(default=None),
    min_duration_seconds: Optional[int] = Query(default=None),
    store: SessionStore = Depends(get_store),
) -> TimeSeriesDistribution:
    window = _coerce_window(
        from_ts=from_ts,
        to_ts=to_ts,
        default_hours=settings.REPORTS_DEFAULT_DISTRIBUTION_HOURS,
        min_duration_seconds=min_duration_seconds,
    )
    return await svc.building_calendar(store, building_id, window, granularity)


@router.get("/buildings/{building_id}/alerts/summary", response_model=AlertsSummaryReport)
async def get_building_alerts_summary(
    building_id: int,
    from_ts: Optional[datetime] = Query(default=None),
    to_ts: Optional[datetime] = Query(default=None),
    event_type: Optional[str] = Query(default=None),
    store: SessionStore = Depends(get_store),
) -> AlertsSummaryReport:
    window = _coerce_window(from_ts=from_ts, to_ts=to_ts, default_hours=settings.REPORTS_DEFAULT_ALERTS_HOURS)
    return await svc.building_alerts_summary(store, building_id, window, event_type=event_type)
