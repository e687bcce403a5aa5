# presence_reports/services/reports.py
"""
Relatórios de presença (PresenceSession + AlertEvent).

Uma função async por tipo de relatório. Todas seguem o mesmo roteiro:
1) valida parâmetros (granularidade, bucket_minutes, top_n, max_events...)
2) carrega a hierarquia e resolve o escopo (NotFound antes de qualquer fetch)
3) busca sessões e/ou alertas em paralelo
4) normaliza os intervalos uma única vez (clip + min_duration_seconds)
5) calcula com o motor puro e monta o relatório imutável

Totais da janela sempre vêm de window_rollup() sobre os intervalos
normalizados, nunca da soma dos buckets.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import tzinfo
from typing import Dict, FrozenSet, Hashable, List, Mapping, Optional, Tuple

from presence_reports.core.config import settings
from presence_reports.core.errors import InvalidParameter
from presence_reports.engine.alerts import AlertRecord, AlertRollup, rollup_alerts
from presence_reports.engine.bucketizer import (
    CalendarDimension,
    DayOfWeekDimension,
    FixedWidthDimension,
    HourOfDayDimension,
    occupancy_dimension,
)
from presence_reports.engine.hierarchy import Hierarchy
from presence_reports.engine.intervals import Interval, Window, normalize_all, to_utc_naive
from presence_reports.engine.ranking import top_n as rank_top_n
from presence_reports.engine.rollup import (
    RollupCell,
    bucket_rollup,
    rollup_by,
    session_durations,
    split_bucket_rollup,
    window_rollup,
)
from presence_reports.engine.scope import ResolvedScope, Scope, ScopeKind, ScopeResolver
from presence_reports.engine.statistics import average, peak_bucket, peak_concurrency, percentile
from presence_reports.schemas.alerts_report import (
    AlertByDevice,
    AlertEventItem,
    AlertsSummaryReport,
    AlertTypeCount,
)
from presence_reports.schemas.building_report import BuildingSummaryItem, BuildingSummaryReport
from presence_reports.schemas.distribution import (
    DayOfWeekBucket,
    DayOfWeekDistribution,
    HourByGatewayBucket,
    HourByGatewayDistribution,
    HourOfDayBucket,
    HourOfDayDistribution,
    TimeBucket,
    TimeSeriesDistribution,
)
from presence_reports.schemas.gateway_report import (
    ConcurrencyBucket,
    GatewayConcurrencyReport,
    GatewayOccupancyReport,
    GatewayUsageDeviceSummary,
    GatewayUsageSummary,
    PeakBucket,
)
from presence_reports.schemas.overview import (
    ReportsOverview,
    ReportsOverviewSummary,
    TopBuilding,
    TopDevice,
    TopFloor,
    TopGroup,
    TopPerson,
)
from presence_reports.schemas.person_report import (
    GroupDwellByDevice,
    GroupPersonDwellSummary,
    PersonAlertsReport,
    PersonDwellByDevice,
    PersonGroupAlertsReport,
    PersonGroupPresenceSummary,
    PersonPresenceSummary,
    PersonTimeline,
    PersonTimelineSession,
)
from presence_reports.store.base import SessionStore

logger = logging.getLogger("presence.reports")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@dataclass
class _Loaded:
    resolved: ResolvedScope
    intervals: List[Interval] = field(default_factory=list)
    alerts: List[AlertRecord] = field(default_factory=list)

    @property
    def hierarchy(self) -> Hierarchy:
        return self.resolved.hierarchy


async def _load(
    store: SessionStore,
    scope: Scope,
    window: Window,
    *,
    with_intervals: bool = True,
    with_alerts: bool = False,
    global_filters: Optional[Mapping[str, Optional[int]]] = None,
) -> _Loaded:
    hierarchy = await store.load_hierarchy()
    resolver = ScopeResolver(hierarchy)
    if scope.kind == ScopeKind.GLOBAL:
        resolved = resolver.resolve_global(**(global_filters or {}))
    else:
        resolved = resolver.resolve(scope)

    fetches = []
    if with_intervals:
        fetches.append(store.fetch_intervals(window, resolved.store_filter))
    if with_alerts:
        fetches.append(store.fetch_alerts(window, resolved.store_filter))
    results = list(await asyncio.gather(*fetches))

    loaded = _Loaded(resolved=resolved)
    if with_intervals:
        loaded.intervals = resolved.select_intervals(normalize_all(results.pop(0), window))
    if with_alerts:
        loaded.alerts = resolved.select_alerts(results.pop(0))

    logger.debug(
        "scope=%s id=%s janela=[%s, %s) intervalos=%d alertas=%d",
        scope.kind.value,
        scope.id,
        window.from_ts,
        window.to_ts,
        len(loaded.intervals),
        len(loaded.alerts),
    )
    return loaded


def _resolve_top_n(n: Optional[int]) -> int:
    n = settings.REPORTS_TOP_N if n is None else n
    if n < 0:
        raise InvalidParameter("top_n must be >= 0")
    return n


def _resolve_tz(tz: Optional[tzinfo]) -> tzinfo:
    return tz if tz is not None else settings.reports_tz


def _tz_name(tz: tzinfo) -> str:
    return getattr(tz, "key", None) or str(tz)


def _ranked(cells: Mapping[Hashable, RollupCell], metric: str = "total_dwell_seconds", n: Optional[int] = None):
    return rank_top_n(cells, metric, len(cells) if n is None else n)


def _location(hierarchy: Hierarchy, device_id: Optional[int]) -> Dict[str, object]:
    if device_id is None:
        return {}
    loc = hierarchy.location(device_id)
    return {
        "building_id": loc.building_id,
        "building_name": loc.building_name,
        "floor_id": loc.floor_id,
        "floor_name": loc.floor_name,
        "floor_plan_id": loc.floor_plan_id,
        "floor_plan_name": loc.floor_plan_name,
    }


def _avg_dwell(cell: RollupCell) -> Optional[float]:
    return average(cell.dwell.total_seconds(), cell.sessions_count)


def _time_buckets(cells: Mapping[Hashable, RollupCell]) -> List[TimeBucket]:
    return [
        TimeBucket(
            bucket_start=key,
            total_dwell_seconds=cell.total_dwell_seconds,
            sessions_count=cell.sessions_count,
            unique_tags_count=cell.unique_tags_count,
            unique_people_count=cell.unique_people_count,
        )
        for key, cell in sorted(cells.items())
    ]


def _alert_items(hierarchy: Hierarchy, rollup: AlertRollup):
    by_type = [AlertTypeCount(event_type=t, alerts_count=c) for t, c in rollup.by_type]
    by_device = [
        AlertByDevice(
            device_id=device_id,
            device_name=hierarchy.device_name(device_id),
            alerts_count=count,
            **_location(hierarchy, device_id),
        )
        for device_id, count in rollup.by_device
    ]
    events = [
        AlertEventItem(
            id=alert.id,
            event_type=alert.kind,
            device_id=alert.device_id,
            device_name=hierarchy.device_name(alert.device_id),
            tag_id=alert.entity_id,
            person_id=alert.person_id if alert.person_id is not None else hierarchy.person_of_tag(alert.entity_id),
            started_at=to_utc_naive(alert.start_ts),
            ended_at=to_utc_naive(alert.end_ts),
            **_location(hierarchy, alert.device_id),
        )
        for alert in rollup.events
    ]
    return by_type, by_device, events


def _resolve_max_events(max_events: Optional[int]) -> int:
    max_events = settings.REPORTS_MAX_EVENTS if max_events is None else max_events
    if max_events < 1:
        raise InvalidParameter("max_events must be >= 1")
    return max_events


def _resolve_bucket_minutes(bucket_minutes: Optional[int]) -> int:
    return settings.REPORTS_OCCUPANCY_BUCKET_MINUTES if bucket_minutes is None else bucket_minutes


# ---------------------------------------------------------------------------
# Overview
# ---------------------------------------------------------------------------


async def overview(
    store: SessionStore,
    window: Window,
    *,
    device_id: Optional[int] = None,
    tag_id: Optional[int] = None,
    top_n: Optional[int] = None,
) -> ReportsOverview:
    """Overview para dashboards: resumo da janela + tops por prédio/andar/grupo/device/pessoa."""
    n = _resolve_top_n(top_n)
    loaded = await _load(
        store,
        Scope(kind=ScopeKind.GLOBAL),
        window,
        global_filters={"device_id": device_id, "tag_id": tag_id},
    )
    h = loaded.hierarchy
    intervals = loaded.intervals

    total = window_rollup(intervals)
    summary = ReportsOverviewSummary(
        from_ts=window.from_ts,
        to_ts=window.to_ts,
        total_sessions=total.sessions_count,
        total_unique_tags=total.unique_tags_count,
        total_unique_devices=len({i.device_id for i in intervals}),
        total_unique_people=total.unique_people_count,
        total_dwell_seconds=total.total_dwell_seconds,
        avg_dwell_seconds=_avg_dwell(total),
        first_session_at=total.first_start,
        last_session_at=total.last_end,
    )

    groups_cache: Dict[Optional[int], FrozenSet[int]] = {}

    def groups_of(interval: Interval) -> FrozenSet[int]:
        if interval.person_id not in groups_cache:
            groups_cache[interval.person_id] = h.groups_of_person(interval.person_id)
        return groups_cache[interval.person_id]

    by_building = rollup_by(intervals, lambda i: [h.building_of_device(i.device_id)])
    by_floor = rollup_by(intervals, lambda i: [h.floor_of_device(i.device_id)])
    by_group = rollup_by(intervals, groups_of)
    by_device = rollup_by(intervals, lambda i: [i.device_id])
    by_person = rollup_by(intervals, lambda i: [i.person_id])

    top_buildings = []
    for building_id, cell in _ranked(by_building, n=n):
        building = h.buildings.get(building_id)
        top_buildings.append(
            TopBuilding(
                building_id=building_id,
                building_name=building.name if building else "Sem prédio",
                total_sessions=cell.sessions_count,
                total_dwell_seconds=cell.total_dwell_seconds,
            )
        )

    top_floors = []
    for floor_id, cell in _ranked(by_floor, n=n):
        floor = h.floors.get(floor_id)
        building = h.buildings.get(floor.building_id) if floor else None
        top_floors.append(
            TopFloor(
                floor_id=floor_id,
                floor_name=(floor.name if floor else None) or f"Andar {floor_id}",
                building_id=floor.building_id if floor else None,
                building_name=building.name if building else "Sem prédio",
                total_sessions=cell.sessions_count,
                total_dwell_seconds=cell.total_dwell_seconds,
            )
        )

    top_groups = [
        TopGroup(
            group_id=group_id,
            group_name=h.groups[group_id].name if group_id in h.groups else f"Grupo {group_id}",
            total_sessions=cell.sessions_count,
            total_dwell_seconds=cell.total_dwell_seconds,
        )
        for group_id, cell in _ranked(by_group, n=n)
    ]

    top_devices = [
        TopDevice(
            device_id=dev_id,
            device_name=h.device_name(dev_id) or f"Device {dev_id}",
            total_sessions=cell.sessions_count,
            total_dwell_seconds=cell.total_dwell_seconds,
        )
        for dev_id, cell in _ranked(by_device, n=n)
    ]

    top_people = [
        TopPerson(
            person_id=person_id,
            person_name=h.person_name(person_id) or f"Pessoa {person_id}",
            total_sessions=cell.sessions_count,
            total_dwell_seconds=cell.total_dwell_seconds,
        )
        for person_id, cell in _ranked(by_person, n=n)
    ]

    return ReportsOverview(
        summary=summary,
        top_buildings=top_buildings,
        top_floors=top_floors,
        top_groups=top_groups,
        top_devices=top_devices,
        top_people=top_people,
    )


# ---------------------------------------------------------------------------
# Person
# ---------------------------------------------------------------------------


async def person_summary(store: SessionStore, person_id: int, window: Window) -> PersonPresenceSummary:
    loaded = await _load(store, Scope(ScopeKind.PERSON, person_id), window)
    h = loaded.hierarchy
    total = window_rollup(loaded.intervals)

    ranked = _ranked(rollup_by(loaded.intervals, lambda i: [i.device_id]))
    dwell_by_device = [
        PersonDwellByDevice(
            device_id=dev_id,
            device_name=h.device_name(dev_id),
            total_dwell_seconds=cell.total_dwell_seconds,
            sessions_count=cell.sessions_count,
            **_location(h, dev_id),
        )
        for dev_id, cell in ranked
    ]

    return PersonPresenceSummary(
        person_id=person_id,
        person_full_name=loaded.resolved.name,
        from_ts=window.from_ts,
        to_ts=window.to_ts,
        total_dwell_seconds=total.total_dwell_seconds,
        total_sessions=total.sessions_count,
        avg_dwell_seconds=_avg_dwell(total),
        first_session_at=total.first_start,
        last_session_at=total.last_end,
        dwell_by_device=dwell_by_device,
        top_device_id=ranked[0][0] if ranked else None,
    )


async def person_timeline(
    store: SessionStore,
    person_id: int,
    window: Window,
    *,
    limit: Optional[int] = None,
) -> PersonTimeline:
    """Sessões clipadas da pessoa, mais recentes primeiro."""
    limit = settings.REPORTS_TIMELINE_LIMIT if limit is None else limit
    if limit < 1:
        raise InvalidParameter("limit must be >= 1")

    loaded = await _load(store, Scope(ScopeKind.PERSON, person_id), window)
    h = loaded.hierarchy
    ordered = sorted(loaded.intervals, key=lambda i: (i.start_ts, i.session_id), reverse=True)

    sessions = [
        PersonTimelineSession(
            session_id=i.session_id,
            device_id=i.device_id,
            device_name=h.device_name(i.device_id),
            tag_id=i.entity_id,
            started_at=i.start_ts,
            ended_at=i.end_ts,
            duration_seconds=int(i.duration_seconds),
            samples_count=i.sample_count,
            **_location(h, i.device_id),
        )
        for i in ordered[:limit]
    ]
    return PersonTimeline(
        person_id=person_id,
        person_full_name=loaded.resolved.name,
        from_ts=window.from_ts,
        to_ts=window.to_ts,
        total_sessions=len(ordered),
        sessions=sessions,
    )


async def person_alerts(
    store: SessionStore,
    person_id: int,
    window: Window,
    *,
    event_type: Optional[str] = None,
    device_id: Optional[int] = None,
    max_events: Optional[int] = None,
) -> PersonAlertsReport:
    max_events = _resolve_max_events(max_events)
    loaded = await _load(store, Scope(ScopeKind.PERSON, person_id), window, with_intervals=False, with_alerts=True)

    rollup = rollup_alerts(
        loaded.alerts,
        window,
        event_type=event_type,
        device_id=device_id,
        max_events=max_events,
        with_devices=True,
    )
    by_type, by_device, events = _alert_items(loaded.hierarchy, rollup)

    return PersonAlertsReport(
        person_id=person_id,
        person_full_name=loaded.resolved.name,
        from_ts=window.from_ts,
        to_ts=window.to_ts,
        total_alerts=rollup.total_alerts,
        first_alert_at=rollup.first_alert_at,
        last_alert_at=rollup.last_alert_at,
        by_type=by_type,
        by_device=by_device,
        events=events,
    )


# ---------------------------------------------------------------------------
# Distribuições temporais (pessoa / grupo / gateway / prédio)
# ---------------------------------------------------------------------------


async def _calendar(
    store: SessionStore,
    scope: Scope,
    window: Window,
    granularity: str,
    tz: Optional[tzinfo],
) -> TimeSeriesDistribution:
    tz = _resolve_tz(tz)
    dimension = CalendarDimension(granularity, tz)
    loaded = await _load(store, scope, window)

    cells = bucket_rollup(loaded.intervals, dimension, window)
    return TimeSeriesDistribution(
        scope=scope.kind.value,
        scope_id=scope.id,
        scope_name=loaded.resolved.name,
        from_ts=window.from_ts,
        to_ts=window.to_ts,
        timezone=_tz_name(tz),
        granularity=granularity,
        buckets=_time_buckets(cells),
    )


async def _hour_of_day(store: SessionStore, scope: Scope, window: Window, tz: Optional[tzinfo]) -> HourOfDayDistribution:
    tz = _resolve_tz(tz)
    loaded = await _load(store, scope, window)

    cells = bucket_rollup(loaded.intervals, HourOfDayDimension(tz), window)
    buckets = [
        HourOfDayBucket(
            hour=hour,
            total_dwell_seconds=cell.total_dwell_seconds,
            sessions_count=cell.sessions_count,
            unique_tags_count=cell.unique_tags_count,
            unique_people_count=cell.unique_people_count,
        )
        for hour, cell in sorted(cells.items())
    ]
    return HourOfDayDistribution(
        scope=scope.kind.value,
        scope_id=scope.id,
        scope_name=loaded.resolved.name,
        from_ts=window.from_ts,
        to_ts=window.to_ts,
        timezone=_tz_name(tz),
        buckets=buckets,
    )


async def _day_of_week(store: SessionStore, scope: Scope, window: Window, tz: Optional[tzinfo]) -> DayOfWeekDistribution:
    tz = _resolve_tz(tz)
    loaded = await _load(store, scope, window)

    cells = bucket_rollup(loaded.intervals, DayOfWeekDimension(tz), window)
    buckets = [
        DayOfWeekBucket(
            day_of_week=dow,
            total_dwell_seconds=cell.total_dwell_seconds,
            sessions_count=cell.sessions_count,
            unique_tags_count=cell.unique_tags_count,
            unique_people_count=cell.unique_people_count,
        )
        for dow, cell in sorted(cells.items())
    ]
    return DayOfWeekDistribution(
        scope=scope.kind.value,
        scope_id=scope.id,
        scope_name=loaded.resolved.name,
        from_ts=window.from_ts,
        to_ts=window.to_ts,
        timezone=_tz_name(tz),
        buckets=buckets,
    )


async def _hour_by_gateway(
    store: SessionStore,
    scope: Scope,
    window: Window,
    tz: Optional[tzinfo],
) -> HourByGatewayDistribution:
    tz = _resolve_tz(tz)
    loaded = await _load(store, scope, window)
    h = loaded.hierarchy

    split = split_bucket_rollup(loaded.intervals, HourOfDayDimension(tz), lambda i: i.device_id)
    rows: List[Tuple[int, int, RollupCell]] = []
    for dev_id, cells in split.items():
        for hour, cell in cells.items():
            rows.append((hour, dev_id, cell))
    rows.sort(key=lambda r: (r[0], r[1]))

    buckets = [
        HourByGatewayBucket(
            hour=hour,
            device_id=dev_id,
            device_name=h.device_name(dev_id),
            total_dwell_seconds=cell.total_dwell_seconds,
            sessions_count=cell.sessions_count,
            unique_people_count=cell.unique_people_count,
        )
        for hour, dev_id, cell in rows
    ]
    return HourByGatewayDistribution(
        scope=scope.kind.value,
        scope_id=scope.id,
        scope_name=loaded.resolved.name,
        from_ts=window.from_ts,
        to_ts=window.to_ts,
        timezone=_tz_name(tz),
        buckets=buckets,
    )


async def person_calendar(
    store: SessionStore,
    person_id: int,
    window: Window,
    granularity: str = "day",
    *,
    tz: Optional[tzinfo] = None,
) -> TimeSeriesDistribution:
    return await _calendar(store, Scope(ScopeKind.PERSON, person_id), window, granularity, tz)


async def person_hour_of_day(
    store: SessionStore, person_id: int, window: Window, *, tz: Optional[tzinfo] = None
) -> HourOfDayDistribution:
    return await _hour_of_day(store, Scope(ScopeKind.PERSON, person_id), window, tz)


async def person_day_of_week(
    store: SessionStore, person_id: int, window: Window, *, tz: Optional[tzinfo] = None
) -> DayOfWeekDistribution:
    return await _day_of_week(store, Scope(ScopeKind.PERSON, person_id), window, tz)


async def person_hour_by_gateway(
    store: SessionStore, person_id: int, window: Window, *, tz: Optional[tzinfo] = None
) -> HourByGatewayDistribution:
    return await _hour_by_gateway(store, Scope(ScopeKind.PERSON, person_id), window, tz)


# ---------------------------------------------------------------------------
# Person group
# ---------------------------------------------------------------------------


async def group_summary(store: SessionStore, group_id: int, window: Window) -> PersonGroupPresenceSummary:
    loaded = await _load(store, Scope(ScopeKind.GROUP, group_id), window)
    h = loaded.hierarchy
    total = window_rollup(loaded.intervals)

    by_device = _ranked(rollup_by(loaded.intervals, lambda i: [i.device_id]))
    dwell_by_device = [
        GroupDwellByDevice(
            device_id=dev_id,
            device_name=h.device_name(dev_id),
            total_dwell_seconds=cell.total_dwell_seconds,
            sessions_count=cell.sessions_count,
            unique_people_count=cell.unique_people_count,
            **_location(h, dev_id),
        )
        for dev_id, cell in by_device
    ]

    by_person = _ranked(rollup_by(loaded.intervals, lambda i: [i.person_id]))
    dwell_by_person = [
        GroupPersonDwellSummary(
            person_id=person_id,
            person_full_name=h.person_name(person_id) or f"Pessoa {person_id}",
            total_dwell_seconds=cell.total_dwell_seconds,
            sessions_count=cell.sessions_count,
        )
        for person_id, cell in by_person
    ]

    return PersonGroupPresenceSummary(
        group_id=group_id,
        group_name=loaded.resolved.name,
        from_ts=window.from_ts,
        to_ts=window.to_ts,
        total_dwell_seconds=total.total_dwell_seconds,
        total_sessions=total.sessions_count,
        total_unique_people=total.unique_people_count,
        avg_dwell_seconds=_avg_dwell(total),
        first_session_at=total.first_start,
        last_session_at=total.last_end,
        dwell_by_device=dwell_by_device,
        dwell_by_person=dwell_by_person,
        top_device_id=by_device[0][0] if by_device else None,
    )


async def group_calendar(
    store: SessionStore,
    group_id: int,
    window: Window,
    granularity: str = "day",
    *,
    tz: Optional[tzinfo] = None,
) -> TimeSeriesDistribution:
    return await _calendar(store, Scope(ScopeKind.GROUP, group_id), window, granularity, tz)


async def group_hour_of_day(
    store: SessionStore, group_id: int, window: Window, *, tz: Optional[tzinfo] = None
) -> HourOfDayDistribution:
    return await _hour_of_day(store, Scope(ScopeKind.GROUP, group_id), window, tz)


async def group_day_of_week(
    store: SessionStore, group_id: int, window: Window, *, tz: Optional[tzinfo] = None
) -> DayOfWeekDistribution:
    return await _day_of_week(store, Scope(ScopeKind.GROUP, group_id), window, tz)


async def group_hour_by_gateway(
    store: SessionStore, group_id: int, window: Window, *, tz: Optional[tzinfo] = None
) -> HourByGatewayDistribution:
    return await _hour_by_gateway(store, Scope(ScopeKind.GROUP, group_id), window, tz)


async def group_alerts(
    store: SessionStore,
    group_id: int,
    window: Window,
    *,
    event_type: Optional[str] = None,
    device_id: Optional[int] = None,
    max_events: Optional[int] = None,
) -> PersonGroupAlertsReport:
    max_events = _resolve_max_events(max_events)
    loaded = await _load(store, Scope(ScopeKind.GROUP, group_id), window, with_intervals=False, with_alerts=True)

    rollup = rollup_alerts(
        loaded.alerts,
        window,
        event_type=event_type,
        device_id=device_id,
        max_events=max_events,
        with_devices=True,
    )
    by_type, by_device, events = _alert_items(loaded.hierarchy, rollup)

    return PersonGroupAlertsReport(
        group_id=group_id,
        group_name=loaded.resolved.name,
        from_ts=window.from_ts,
        to_ts=window.to_ts,
        total_alerts=rollup.total_alerts,
        first_alert_at=rollup.first_alert_at,
        last_alert_at=rollup.last_alert_at,
        by_type=by_type,
        by_device=by_device,
        events=events,
    )


# ---------------------------------------------------------------------------
# Gateways
# ---------------------------------------------------------------------------


async def gateway_usage_summary(
    store: SessionStore,
    window: Window,
    *,
    building_id: Optional[int] = None,
    floor_id: Optional[int] = None,
    floor_plan_id: Optional[int] = None,
    device_id: Optional[int] = None,
) -> GatewayUsageSummary:
    loaded = await _load(
        store,
        Scope(kind=ScopeKind.GLOBAL),
        window,
        global_filters={
            "building_id": building_id,
            "floor_id": floor_id,
            "floor_plan_id": floor_plan_id,
            "device_id": device_id,
        },
    )
    h = loaded.hierarchy
    total = window_rollup(loaded.intervals)

    ranked = _ranked(rollup_by(loaded.intervals, lambda i: [i.device_id]))
    gateways = []
    for dev_id, cell in ranked:
        info = h.devices.get(dev_id)
        gateways.append(
            GatewayUsageDeviceSummary(
                device_id=dev_id,
                device_name=info.name if info else None,
                device_mac_address=info.mac_address if info else None,
                total_dwell_seconds=cell.total_dwell_seconds,
                sessions_count=cell.sessions_count,
                unique_people_count=cell.unique_people_count,
                first_session_at=cell.first_start,
                last_session_at=cell.last_end,
                **_location(h, dev_id),
            )
        )

    return GatewayUsageSummary(
        from_ts=window.from_ts,
        to_ts=window.to_ts,
        total_sessions=total.sessions_count,
        total_dwell_seconds=total.total_dwell_seconds,
        total_devices=len(gateways),
        total_unique_people=total.unique_people_count,
        gateways=gateways,
        top_device_id=ranked[0][0] if ranked else None,
    )


async def gateway_time_of_day(
    store: SessionStore, device_id: int, window: Window, *, tz: Optional[tzinfo] = None
) -> HourOfDayDistribution:
    return await _hour_of_day(store, Scope(ScopeKind.GATEWAY, device_id), window, tz)


async def gateway_occupancy(
    store: SessionStore,
    device_id: int,
    window: Window,
    *,
    bucket_minutes: Optional[int] = None,
) -> GatewayOccupancyReport:
    """
    Ocupação do gateway em buckets de largura fixa ancorados em from_ts.
    Pico = bucket com mais tags distintas (empate: o mais antigo).
    avg/p50/p95 sobre a duração clipada de cada sessão.
    """
    bucket_minutes = _resolve_bucket_minutes(bucket_minutes)
    dimension = occupancy_dimension(window, bucket_minutes)
    loaded = await _load(store, Scope(ScopeKind.GATEWAY, device_id), window)

    cells = bucket_rollup(loaded.intervals, dimension, window)
    peak = peak_bucket(cells)
    durations = session_durations(loaded.intervals)

    return GatewayOccupancyReport(
        device_id=device_id,
        device_name=loaded.resolved.name,
        from_ts=window.from_ts,
        to_ts=window.to_ts,
        bucket_minutes=bucket_minutes,
        buckets=_time_buckets(cells),
        peak=(
            PeakBucket(
                bucket_start=peak[0],
                unique_tags_count=peak[1].unique_tags_count,
                unique_people_count=peak[1].unique_people_count,
            )
            if peak is not None
            else None
        ),
        avg_dwell_seconds=average(sum(durations), len(durations)),
        p50_dwell_seconds=percentile(durations, 0.5),
        p95_dwell_seconds=percentile(durations, 0.95),
    )


async def gateway_concurrency(
    store: SessionStore,
    device_id: int,
    window: Window,
    *,
    bucket_minutes: Optional[int] = None,
) -> GatewayConcurrencyReport:
    """Pico de pessoas simultâneas no gateway em cada bucket."""
    bucket_minutes = _resolve_bucket_minutes(bucket_minutes)
    dimension = occupancy_dimension(window, bucket_minutes)
    loaded = await _load(store, Scope(ScopeKind.GATEWAY, device_id), window)

    peaks = peak_concurrency(loaded.intervals, dimension, window)
    return GatewayConcurrencyReport(
        device_id=device_id,
        device_name=loaded.resolved.name,
        from_ts=window.from_ts,
        to_ts=window.to_ts,
        bucket_minutes=bucket_minutes,
        buckets=[ConcurrencyBucket(bucket_start=k, peak_concurrency_people=v) for k, v in sorted(peaks.items())],
    )


async def _alerts_summary(
    store: SessionStore,
    scope: Scope,
    window: Window,
    event_type: Optional[str],
) -> AlertsSummaryReport:
    loaded = await _load(store, scope, window, with_intervals=False, with_alerts=True)
    rollup = rollup_alerts(loaded.alerts, window, event_type=event_type, max_events=1)

    return AlertsSummaryReport(
        scope=scope.kind.value,
        scope_id=scope.id,
        scope_name=loaded.resolved.name,
        from_ts=window.from_ts,
        to_ts=window.to_ts,
        total_alerts=rollup.total_alerts,
        first_alert_at=rollup.first_alert_at,
        last_alert_at=rollup.last_alert_at,
        by_type=[AlertTypeCount(event_type=t, alerts_count=c) for t, c in rollup.by_type],
    )


async def gateway_alerts_summary(
    store: SessionStore, device_id: int, window: Window, *, event_type: Optional[str] = None
) -> AlertsSummaryReport:
    return await _alerts_summary(store, Scope(ScopeKind.GATEWAY, device_id), window, event_type)


# ---------------------------------------------------------------------------
# Buildings
# ---------------------------------------------------------------------------


def _building_item(h: Hierarchy, dev_id: int, cell: RollupCell) -> BuildingSummaryItem:
    return BuildingSummaryItem(
        device_id=dev_id,
        device_name=h.device_name(dev_id),
        sessions_count=cell.sessions_count,
        total_dwell_seconds=cell.total_dwell_seconds,
        unique_people_count=cell.unique_people_count,
    )


async def building_summary(
    store: SessionStore,
    building_id: int,
    window: Window,
    *,
    top_n: Optional[int] = None,
) -> BuildingSummaryReport:
    n = _resolve_top_n(top_n)
    loaded = await _load(store, Scope(ScopeKind.BUILDING, building_id), window)
    h = loaded.hierarchy

    total = window_rollup(loaded.intervals)
    durations = session_durations(loaded.intervals)
    by_device = rollup_by(loaded.intervals, lambda i: [i.device_id])

    return BuildingSummaryReport(
        building_id=building_id,
        building_name=loaded.resolved.name,
        from_ts=window.from_ts,
        to_ts=window.to_ts,
        total_sessions=total.sessions_count,
        total_dwell_seconds=total.total_dwell_seconds,
        unique_people_count=total.unique_people_count,
        unique_tags_count=total.unique_tags_count,
        avg_dwell_seconds=_avg_dwell(total),
        p50_dwell_seconds=percentile(durations, 0.5),
        p95_dwell_seconds=percentile(durations, 0.95),
        first_session_at=total.first_start,
        last_session_at=total.last_end,
        top_gateways_by_sessions=[
            _building_item(h, dev_id, cell) for dev_id, cell in _ranked(by_device, "sessions_count", n)
        ],
        top_gateways_by_dwell=[
            _building_item(h, dev_id, cell) for dev_id, cell in _ranked(by_device, "total_dwell_seconds", n)
        ],
    )


async def building_time_of_day(
    store: SessionStore,
    building_id: int,
    window: Window,
    *,
    bucket_minutes: Optional[int] = None,
    tz: Optional[tzinfo] = None,
) -> TimeSeriesDistribution:
    """Série de buckets de largura fixa (default: 1h) para o prédio."""
    tz = _resolve_tz(tz)
    bucket_minutes = _resolve_bucket_minutes(bucket_minutes)
    dimension: FixedWidthDimension = occupancy_dimension(window, bucket_minutes)
    scope = Scope(ScopeKind.BUILDING, building_id)
    loaded = await _load(store, scope, window)

    cells = bucket_rollup(loaded.intervals, dimension, window)
    return TimeSeriesDistribution(
        scope=scope.kind.value,
        scope_id=building_id,
        scope_name=loaded.resolved.name,
        from_ts=window.from_ts,
        to_ts=window.to_ts,
        timezone=_tz_name(tz),
        granularity="fixed",
        bucket_minutes=bucket_minutes,
        buckets=_time_buckets(cells),
    )


async def building_calendar(
    store: SessionStore,
    building_id: int,
    window: Window,
    granularity: str = "day",
    *,
    tz: Optional[tzinfo] = None,
) -> TimeSeriesDistribution:
    return await _calendar(store, Scope(ScopeKind.BUILDING, building_id), window, granularity, tz)


async def building_alerts_summary(
    store: SessionStore, building_id: int, window: Window, *, event_type: Optional[str] = None
) -> AlertsSummaryReport:
    return await _alerts_summary(store, Scope(ScopeKind.BUILDING, building_id), window, event_type)
