import random
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from presence_reports.core.errors import InvalidParameter
from presence_reports.engine.bucketizer import (
    CalendarDimension,
    DayOfWeekDimension,
    HourOfDayDimension,
    occupancy_dimension,
)
from presence_reports.engine.intervals import Interval, Window, normalize_all
from presence_reports.engine.ranking import top_n
from presence_reports.engine.rollup import (
    RollupCell,
    bucket_rollup,
    rollup_by,
    session_durations,
    split_bucket_rollup,
    window_rollup,
)
from presence_reports.engine.statistics import average, peak_bucket, peak_concurrency, percentile

from conftest import make_hierarchy, make_intervals


@pytest.fixture
def normalized(window):
    h = make_hierarchy()
    return [
        Interval(
            session_id=i.session_id,
            entity_id=i.entity_id,
            device_id=i.device_id,
            start_ts=i.start_ts,
            end_ts=i.end_ts,
            sample_count=i.sample_count,
            person_id=h.person_of_tag(i.entity_id),
        )
        for i in normalize_all(make_intervals(), window)
    ]


def test_window_rollup_totals(normalized):
    total = window_rollup(normalized)
    assert total.sessions_count == 6
    assert total.total_dwell_seconds == 10800 + 3600 + 30 + 3600 + 7200 + 3600
    assert total.unique_tags_count == 5
    assert total.unique_people_count == 3
    assert total.first_start == datetime(2025, 11, 3, 0)
    assert total.last_end == datetime(2025, 11, 4, 0)


def test_empty_rollup_has_zero_counts_and_null_statistics():
    total = window_rollup([])
    assert total.sessions_count == 0
    assert total.total_dwell_seconds == 0
    assert total.first_start is None
    assert average(total.total_dwell_seconds, total.sessions_count) is None
    assert percentile(session_durations([]), 0.5) is None
    assert peak_bucket({}) is None


@pytest.mark.parametrize(
    "dimension",
    [
        CalendarDimension("day", timezone.utc),
        CalendarDimension("week", ZoneInfo("America/Sao_Paulo")),
        HourOfDayDimension(ZoneInfo("Asia/Kolkata")),
        DayOfWeekDimension(timezone.utc),
    ],
    ids=["day", "week", "hour", "dow"],
)
def test_bucket_invariants_hold_for_every_dimension(normalized, window, dimension):
    cells = bucket_rollup(normalized, dimension, window)
    total = window_rollup(normalized)

    # dwell dos buckets soma o total da janela
    assert sum((c.dwell for c in cells.values()), timedelta(0)) == total.dwell

    # toda sessão aparece em pelo menos um bucket, e a contagem da janela não depende da dimensão
    seen = set()
    for cell in cells.values():
        seen |= cell.session_ids
        assert cell.unique_tags_count <= total.unique_tags_count
        assert cell.unique_people_count <= total.unique_people_count
    assert seen == {i.session_id for i in normalized}
    assert total.sessions_count == len(normalized)


def test_session_counts_once_per_bucket_even_when_split_twice():
    # 23:00 -> 01:00 (dia seguinte) -> 23:00: duas passagens pela hora 23
    window = Window.build(datetime(2025, 1, 1), datetime(2025, 1, 3))
    interval = Interval(
        session_id=1, entity_id=1, device_id=1, start_ts=datetime(2025, 1, 1, 23), end_ts=datetime(2025, 1, 2, 23, 30)
    )
    cells = bucket_rollup([interval], HourOfDayDimension(timezone.utc), window)
    assert cells[23].sessions_count == 1
    assert cells[23].total_dwell_seconds == 3600 + 1800


def test_rollup_is_order_independent(normalized, window):
    dim = occupancy_dimension(window, 60)
    expected = {k: (c.total_dwell_seconds, c.sessions_count, c.unique_tags_count) for k, c in bucket_rollup(normalized, dim, window).items()}

    shuffled = list(normalized)
    random.Random(7).shuffle(shuffled)
    got = {k: (c.total_dwell_seconds, c.sessions_count, c.unique_tags_count) for k, c in bucket_rollup(shuffled, dim, window).items()}
    assert got == expected


def test_rollup_by_allows_multiple_keys_and_skips_none(normalized):
    cells = rollup_by(normalized, lambda i: [i.person_id, "all"])
    assert cells["all"].sessions_count == 6
    assert None not in cells
    assert cells[1].total_dwell_seconds == 10800 + 3600


def test_split_bucket_rollup_by_device(normalized):
    split = split_bucket_rollup(normalized, HourOfDayDimension(timezone.utc), lambda i: i.device_id)
    assert split[1][1].total_dwell_seconds == 3600 + 1800
    assert split[2][22].total_dwell_seconds == 3600
    assert 5 not in split[1]


def test_percentile_nearest_rank():
    samples = list(range(1, 11))
    random.Random(1).shuffle(samples)
    assert percentile(samples, 0.5) == 5
    assert percentile(samples, 0.95) == 10
    assert percentile(samples, 0) == 1
    assert percentile(samples, 1) == 10
    assert percentile([42.0], 0.95) == 42.0


def test_p50_never_exceeds_p95():
    rng = random.Random(3)
    for _ in range(50):
        samples = [rng.uniform(1, 5000) for _ in range(rng.randint(1, 40))]
        assert percentile(samples, 0.5) <= percentile(samples, 0.95)


def test_percentile_rejects_out_of_range_p():
    with pytest.raises(InvalidParameter):
        percentile([1, 2, 3], 1.5)


def test_average_of_empty_is_none():
    assert average(0, 0) is None
    assert average(30, 3) == 10.0


def test_peak_bucket_prefers_earliest_on_ties():
    a, b, c = RollupCell(), RollupCell(), RollupCell()
    a.tag_ids = {1}
    b.tag_ids = {1, 2}
    c.tag_ids = {3, 4}
    cells = {datetime(2025, 1, 1, 2): c, datetime(2025, 1, 1, 0): a, datetime(2025, 1, 1, 1): b}
    start, cell = peak_bucket(cells)
    assert start == datetime(2025, 1, 1, 1)
    assert cell is b


def test_peak_bucket_with_only_empty_buckets_is_first_bucket():
    cells = {datetime(2025, 1, 1, 1): RollupCell(), datetime(2025, 1, 1, 0): RollupCell()}
    start, cell = peak_bucket(cells)
    assert start == datetime(2025, 1, 1, 0)
    assert cell.unique_tags_count == 0


def test_peak_concurrency_counts_distinct_people():
    window = Window.build(datetime(2025, 1, 1, 0), datetime(2025, 1, 1, 4))

    def iv(sid, person, start_h, end_h):
        return Interval(
            session_id=sid,
            entity_id=person * 10,
            device_id=1,
            start_ts=datetime(2025, 1, 1) + timedelta(hours=start_h),
            end_ts=datetime(2025, 1, 1) + timedelta(hours=end_h),
            person_id=person,
        )

    intervals = [
        iv(1, 1, 0, 3),
        iv(2, 2, 1.5, 2.5),
        # mesma pessoa, sessões sobrepostas: conta 1x
        iv(3, 1, 1.75, 2.25),
        # entra exatamente quando a pessoa 2 sai
        iv(4, 3, 2.5, 3.5),
    ]
    dim = occupancy_dimension(window, 60)
    peaks = peak_concurrency(intervals, dim, window)
    assert peaks == {
        datetime(2025, 1, 1, 0): 1,
        datetime(2025, 1, 1, 1): 2,
        datetime(2025, 1, 1, 2): 2,
        datetime(2025, 1, 1, 3): 1,
    }


def _cell(dwell_s, sessions):
    cell = RollupCell(dwell=timedelta(seconds=dwell_s))
    cell.session_ids = set(range(sessions))
    return cell


def test_top_n_is_deterministic_under_shuffling():
    cells = {
        5: _cell(100, 1),
        3: _cell(100, 2),
        9: _cell(300, 1),
        1: _cell(100, 2),
        7: _cell(50, 9),
    }
    expected = [9, 1, 3, 5, 7]
    items = list(cells.items())
    rng = random.Random(11)
    for _ in range(20):
        rng.shuffle(items)
        assert [k for k, _ in top_n(dict(items), "total_dwell_seconds", 10)] == expected

    assert [k for k, _ in top_n(cells, "sessions_count", 3)] == [7, 1, 3]


def test_top_n_limits_and_validates():
    cells = {1: _cell(10, 1), 2: _cell(20, 1)}
    assert top_n(cells, "total_dwell_seconds", 1)[0][0] == 2
    assert top_n(cells, "total_dwell_seconds", 0) == []
    assert top_n({}, "sessions_count", 5) == []
    with pytest.raises(InvalidParameter):
        top_n(cells, "total_dwell_seconds", -1)
    with pytest.raises(InvalidParameter):
        top_n(cells, "unique_people_count", 3)
