import random
from datetime import datetime, timezone

import pytest

from presence_reports.core.errors import InvalidParameter, NotFound, UpstreamUnavailable
from presence_reports.engine.intervals import Window
from presence_reports.services import reports as svc

from conftest import FakeStore, make_intervals, ts


@pytest.mark.asyncio
async def test_person_summary(store, window):
    report = await svc.person_summary(store, 1, window)

    assert report.person_full_name == "Maria Teste"
    assert report.total_sessions == 2
    assert report.total_dwell_seconds == 10800 + 3600
    assert report.avg_dwell_seconds == 7200.0
    assert report.first_session_at == ts(0)
    assert report.last_session_at == ts(3)
    assert report.top_device_id == 1

    assert [d.device_id for d in report.dwell_by_device] == [1, 2]
    hall = report.dwell_by_device[0]
    assert (hall.total_dwell_seconds, hall.sessions_count) == (10800, 1)
    assert (hall.building_id, hall.floor_id, hall.floor_plan_id) == (1, 10, 100)


@pytest.mark.asyncio
async def test_unknown_person_fails_before_fetching(store, window):
    with pytest.raises(NotFound):
        await svc.person_summary(store, 999, window)
    assert store.fetch_calls == 0


@pytest.mark.asyncio
async def test_invalid_parameters_fail_before_fetching(store, window):
    with pytest.raises(InvalidParameter):
        await svc.person_calendar(store, 1, window, "quarter")
    with pytest.raises(InvalidParameter):
        await svc.gateway_occupancy(store, 1, window, bucket_minutes=0)
    with pytest.raises(InvalidParameter):
        await svc.building_summary(store, 1, window, top_n=-1)
    with pytest.raises(InvalidParameter):
        await svc.person_alerts(store, 1, window, max_events=0)
    with pytest.raises(InvalidParameter):
        await svc.person_timeline(store, 1, window, limit=0)
    assert store.fetch_calls == 0


@pytest.mark.asyncio
async def test_upstream_failure_propagates(window):
    with pytest.raises(UpstreamUnavailable):
        await svc.person_summary(FakeStore(fail=True), 1, window)


@pytest.mark.asyncio
async def test_min_duration_filters_short_sessions(store):
    window = Window.build(ts(0), ts(0, day=4), min_duration_seconds=60)
    report = await svc.building_summary(store, 2, window)
    assert report.total_sessions == 0
    assert report.avg_dwell_seconds is None
    assert report.p50_dwell_seconds is None

    report = await svc.building_summary(store, 2, Window.build(ts(0), ts(0, day=4)))
    assert report.total_sessions == 1
    assert report.total_dwell_seconds == 30


@pytest.mark.asyncio
async def test_person_timeline_is_newest_first_and_limited(store, window):
    report = await svc.person_timeline(store, 1, window)
    assert report.total_sessions == 2
    # mesmo início (00:00): desempate pelo session_id desc
    assert [s.session_id for s in report.sessions] == [4, 1]
    assert report.sessions[0].duration_seconds == 3600

    limited = await svc.person_timeline(store, 1, window, limit=1)
    assert limited.total_sessions == 2
    assert len(limited.sessions) == 1


@pytest.mark.asyncio
async def test_person_time_distributions(store, window):
    hours = await svc.person_hour_of_day(store, 1, window, tz=timezone.utc)
    assert len(hours.buckets) == 24
    assert hours.timezone == "UTC"
    by_hour = {b.hour: b for b in hours.buckets}
    assert (by_hour[0].total_dwell_seconds, by_hour[0].sessions_count) == (7200, 2)
    assert by_hour[1].total_dwell_seconds == 3600
    assert by_hour[3].total_dwell_seconds == 0

    dow = await svc.person_day_of_week(store, 1, window, tz=timezone.utc)
    assert [b.day_of_week for b in dow.buckets] == list(range(7))
    assert dow.buckets[1].total_dwell_seconds == 14400
    assert dow.buckets[1].sessions_count == 2

    cal = await svc.person_calendar(store, 1, window, "day", tz=timezone.utc)
    assert cal.granularity == "day"
    assert [(b.bucket_start, b.total_dwell_seconds) for b in cal.buckets] == [(datetime(2025, 11, 3), 14400)]

    by_gw = await svc.person_hour_by_gateway(store, 1, window, tz=timezone.utc)
    assert [(b.hour, b.device_id) for b in by_gw.buckets] == [(0, 1), (0, 2), (1, 1), (2, 1)]


@pytest.mark.asyncio
async def test_group_summary(store, window):
    report = await svc.group_summary(store, 1, window)
    assert report.group_name == "Equipe A"
    assert report.total_sessions == 4
    assert report.total_dwell_seconds == 25200
    assert report.total_unique_people == 2
    assert report.top_device_id == 1

    assert [(d.device_id, d.total_dwell_seconds, d.unique_people_count) for d in report.dwell_by_device] == [
        (1, 14400, 2),
        (2, 10800, 2),
    ]
    assert [(p.person_full_name, p.total_dwell_seconds) for p in report.dwell_by_person] == [
        ("Maria Teste", 14400),
        ("João Teste", 10800),
    ]


@pytest.mark.asyncio
async def test_empty_group_gives_zero_counts(store, window):
    report = await svc.group_summary(store, 2, window)
    assert report.total_sessions == 0
    assert report.total_unique_people == 0
    assert report.avg_dwell_seconds is None
    assert report.first_session_at is None
    assert report.dwell_by_device == []
    assert report.top_device_id is None


@pytest.mark.asyncio
async def test_group_distribution_unique_counts(store, window):
    report = await svc.group_hour_of_day(store, 1, window, tz=timezone.utc)
    by_hour = {b.hour: b for b in report.buckets}
    assert by_hour[1].unique_people_count == 2
    assert by_hour[23].unique_tags_count == 1
    for bucket in report.buckets:
        assert bucket.unique_people_count <= 2


@pytest.mark.asyncio
async def test_group_alerts(store, window):
    report = await svc.group_alerts(store, 1, window)
    assert report.total_alerts == 5
    assert [(t.event_type, t.alerts_count) for t in report.by_type] == [("GEOFENCE", 2), ("SOS", 2), ("UNKNOWN", 1)]
    assert [d.device_id for d in report.by_device] == [1, 2, 3, None]
    assert report.by_device[0].alerts_count == 2
    assert report.events[0].id == 6


@pytest.mark.asyncio
async def test_person_alerts_cap_keeps_total(store, window):
    report = await svc.person_alerts(store, 1, window, max_events=2)
    assert report.total_alerts == 4
    assert [e.id for e in report.events] == [6, 4]
    assert report.events[1].event_type == "UNKNOWN"
    assert report.events[0].building_name == "Anexo"


@pytest.mark.asyncio
async def test_gateway_occupancy(store, window):
    report = await svc.gateway_occupancy(store, 1, window, bucket_minutes=60)
    assert len(report.buckets) == 24
    assert report.peak.bucket_start == ts(1)
    assert report.peak.unique_tags_count == 2
    assert report.peak.unique_people_count == 2
    assert report.avg_dwell_seconds == 7200.0
    assert report.p50_dwell_seconds == 3600.0
    assert report.p95_dwell_seconds == 10800.0
    assert report.p50_dwell_seconds <= report.p95_dwell_seconds


@pytest.mark.asyncio
async def test_gateway_occupancy_without_sessions(window):
    store = FakeStore(intervals=[])
    report = await svc.gateway_occupancy(store, 1, window, bucket_minutes=60)
    assert all(b.sessions_count == 0 for b in report.buckets)
    assert report.peak.bucket_start == window.from_ts
    assert report.peak.unique_tags_count == 0
    assert report.avg_dwell_seconds is None
    assert report.p95_dwell_seconds is None


@pytest.mark.asyncio
async def test_gateway_concurrency(store, window):
    report = await svc.gateway_concurrency(store, 1, window, bucket_minutes=60)
    peaks = {b.bucket_start: b.peak_concurrency_people for b in report.buckets}
    assert peaks[ts(0)] == 1
    assert peaks[ts(1)] == 2
    assert peaks[ts(2)] == 2
    assert peaks[ts(3)] == 0


@pytest.mark.asyncio
async def test_gateway_usage_summary_filters(store, window):
    report = await svc.gateway_usage_summary(store, window)
    assert report.total_devices == 4
    assert [g.device_id for g in report.gateways] == [1, 2, 4, 3]
    assert report.top_device_id == 1

    filtered = await svc.gateway_usage_summary(store, window, building_id=1)
    assert [g.device_id for g in filtered.gateways] == [1, 2]
    assert filtered.total_sessions == 4

    with pytest.raises(NotFound):
        await svc.gateway_usage_summary(store, window, floor_plan_id=999)


@pytest.mark.asyncio
async def test_gateway_and_building_alert_summaries(store, window):
    gw = await svc.gateway_alerts_summary(store, 1, window)
    assert gw.scope == "gateway"
    assert gw.total_alerts == 2
    assert [(t.event_type, t.alerts_count) for t in gw.by_type] == [("SOS", 2)]

    bld = await svc.building_alerts_summary(store, 1, window)
    assert bld.scope == "building"
    assert bld.total_alerts == 3
    assert [(t.event_type, t.alerts_count) for t in bld.by_type] == [("SOS", 2), ("GEOFENCE", 1)]


@pytest.mark.asyncio
async def test_building_summary(store, window):
    report = await svc.building_summary(store, 1, window)
    assert report.building_name == "Predio Central"
    assert report.total_sessions == 4
    assert report.total_dwell_seconds == 25200
    assert report.unique_people_count == 2
    assert report.unique_tags_count == 3
    assert report.p50_dwell_seconds == 3600.0
    assert report.p95_dwell_seconds == 10800.0
    assert [g.device_id for g in report.top_gateways_by_sessions] == [1, 2]
    assert [g.device_id for g in report.top_gateways_by_dwell] == [1, 2]

    top1 = await svc.building_summary(store, 1, window, top_n=1)
    assert len(top1.top_gateways_by_dwell) == 1


@pytest.mark.asyncio
async def test_building_time_series(store, window):
    series = await svc.building_time_of_day(store, 1, window, bucket_minutes=120)
    assert series.granularity == "fixed"
    assert series.bucket_minutes == 120
    assert len(series.buckets) == 12
    assert series.buckets[0].total_dwell_seconds == 7200 + 1800 + 3600

    cal = await svc.building_calendar(store, 1, window, "month", tz=timezone.utc)
    assert [b.bucket_start for b in cal.buckets] == [datetime(2025, 11, 1)]
    assert cal.buckets[0].sessions_count == 4


@pytest.mark.asyncio
async def test_overview(store, window):
    report = await svc.overview(store, window)
    summary = report.summary
    assert summary.total_sessions == 6
    assert summary.total_unique_tags == 5
    assert summary.total_unique_devices == 4
    assert summary.total_unique_people == 3
    assert summary.total_dwell_seconds == 28830

    assert [(b.building_id, b.total_dwell_seconds) for b in report.top_buildings] == [(1, 25200), (2, 30)]
    assert [f.floor_id for f in report.top_floors] == [10, 20]
    assert [(g.group_id, g.total_sessions) for g in report.top_groups] == [(1, 4)]
    assert [d.device_id for d in report.top_devices] == [1, 2, 4, 3]
    assert [p.person_name for p in report.top_people] == ["Maria Teste", "João Teste", "Ana Teste"]

    limited = await svc.overview(store, window, top_n=1)
    assert len(limited.top_devices) == 1


@pytest.mark.asyncio
async def test_reports_are_byte_identical_on_recompute(window):
    intervals = make_intervals()
    shuffled = list(intervals)
    random.Random(5).shuffle(shuffled)

    first = await svc.group_summary(FakeStore(intervals=intervals), 1, window)
    second = await svc.group_summary(FakeStore(intervals=shuffled), 1, window)
    assert first.model_dump_json() == second.model_dump_json()

    a = await svc.overview(FakeStore(intervals=intervals), window)
    b = await svc.overview(FakeStore(intervals=shuffled), window)
    assert a.model_dump_json() == b.model_dump_json()


@pytest.mark.asyncio
async def test_reports_are_immutable(store, window):
    report = await svc.person_summary(store, 1, window)
    with pytest.raises(Exception):
        report.total_sessions = 0
