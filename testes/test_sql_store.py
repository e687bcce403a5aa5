from datetime import datetime, timezone

import pytest
import pytest_asyncio
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from presence_reports.core.errors import UpstreamUnavailable
from presence_reports.db.base import (
    AlertEvent,
    Base,
    Building,
    Device,
    Floor,
    FloorPlan,
    Person,
    PersonGroup,
    PresenceSession,
    Tag,
    person_group_memberships,
)
from presence_reports.engine.intervals import Window
from presence_reports.engine.scope import StoreFilter
from presence_reports.services import reports as svc
from presence_reports.store.sql import SqlSessionStore

from conftest import ts

ALL = StoreFilter()


def _engine():
    return create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)


@pytest_asyncio.fixture
async def db():
    engine = _engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        session.add_all(
            [
                Building(id=1, name="Predio Central", code="PC"),
                Floor(id=10, building_id=1, name="Térreo"),
                FloorPlan(id=100, floor_id=10, name="Planta Térreo"),
                Device(id=1, name="GW Hall", mac_address="00:11:22:33:44:01", floor_plan_id=100),
                Device(id=2, name="GW Refeitorio", mac_address="00:11:22:33:44:02", floor_id=10),
                Person(id=1, full_name="Maria Teste"),
                Person(id=2, full_name="João Teste"),
                Tag(id=11, mac_address="AA:00:00:00:00:11", person_id=1),
                Tag(id=21, mac_address="AA:00:00:00:00:21", person_id=2),
                Tag(id=99, mac_address="AA:00:00:00:00:99"),
                PersonGroup(id=1, name="Equipe A"),
            ]
        )
        await session.flush()
        await session.execute(insert(person_group_memberships).values(person_id=1, group_id=1))

        session.add_all(
            [
                PresenceSession(id=1, device_id=1, tag_id=11, started_at=ts(0), ended_at=ts(3), samples_count=30),
                PresenceSession(id=2, device_id=1, tag_id=21, started_at=ts(1, 30), ended_at=ts(2, 30), samples_count=10),
                # começa antes da janela
                PresenceSession(id=3, device_id=2, tag_id=11, started_at=ts(23, day=2), ended_at=ts(1), samples_count=5),
                # aberta
                PresenceSession(id=4, device_id=2, tag_id=21, started_at=ts(22), ended_at=None, samples_count=4),
                # termina exatamente no início da janela
                PresenceSession(id=5, device_id=1, tag_id=99, started_at=ts(22, day=2), ended_at=ts(0), samples_count=2),
                # depois da janela
                PresenceSession(id=6, device_id=1, tag_id=11, started_at=ts(1, day=4), ended_at=ts(2, day=4), samples_count=2),
            ]
        )
        session.add_all(
            [
                AlertEvent(
                    id=1,
                    event_type="SOS",
                    device_id=1,
                    tag_id=11,
                    person_id=1,
                    started_at=datetime(2025, 11, 3, 1, tzinfo=timezone.utc),
                ),
                AlertEvent(
                    id=2,
                    event_type="GEOFENCE",
                    device_id=2,
                    tag_id=21,
                    started_at=datetime(2025, 11, 3, 2, tzinfo=timezone.utc),
                ),
                AlertEvent(
                    id=3,
                    event_type="SOS",
                    device_id=1,
                    person_id=1,
                    started_at=datetime(2025, 11, 4, 0, tzinfo=timezone.utc),
                ),
            ]
        )
        await session.commit()

        yield session

    await engine.dispose()


@pytest.fixture
def window():
    return Window.build(ts(0), ts(0, day=4))


@pytest.mark.asyncio
async def test_load_hierarchy(db):
    h = await SqlSessionStore(db).load_hierarchy()
    assert sorted(h.devices) == [1, 2]
    assert h.floor_of_device(1) == 10
    assert h.building_of_device(1) == 1
    assert h.person_of_tag(11) == 1
    assert h.person_of_tag(99) is None
    assert h.groups[1].member_ids == frozenset({1})


@pytest.mark.asyncio
async def test_fetch_intervals_selects_sessions_intersecting_window(db, window):
    rows = await SqlSessionStore(db).fetch_intervals(window, ALL)
    assert sorted(r.session_id for r in rows) == [1, 2, 3, 4]
    open_session = next(r for r in rows if r.session_id == 4)
    assert open_session.end_ts is None
    assert open_session.sample_count == 4


@pytest.mark.asyncio
async def test_fetch_intervals_applies_device_and_tag_filters(db, window):
    store = SqlSessionStore(db)
    by_device = await store.fetch_intervals(window, StoreFilter(device_ids=frozenset({2})))
    assert sorted(r.session_id for r in by_device) == [3, 4]

    by_tag = await store.fetch_intervals(window, StoreFilter(tag_ids=frozenset({21})))
    assert sorted(r.session_id for r in by_tag) == [2, 4]

    assert await store.fetch_intervals(window, StoreFilter(tag_ids=frozenset())) == []


@pytest.mark.asyncio
async def test_fetch_alerts_uses_half_open_window(db, window):
    store = SqlSessionStore(db)
    alerts = await store.fetch_alerts(window, ALL)
    assert sorted(a.id for a in alerts) == [1, 2]

    by_person = await store.fetch_alerts(
        window, StoreFilter(tag_ids=frozenset({11}), person_ids=frozenset({1}))
    )
    assert [a.id for a in by_person] == [1]

    by_device = await store.fetch_alerts(window, StoreFilter(device_ids=frozenset({2})))
    assert [a.id for a in by_device] == [2]


@pytest.mark.asyncio
async def test_report_over_sql_store(db, window):
    report = await svc.person_summary(SqlSessionStore(db), 1, window)
    assert report.total_sessions == 2
    # sessão 1 (3h) + sessão 3 clipada (1h)
    assert report.total_dwell_seconds == 14400
    assert report.top_device_id == 1


@pytest.mark.asyncio
async def test_database_errors_become_upstream_unavailable(window):
    engine = _engine()
    try:
        async with AsyncSession(engine) as session:
            store = SqlSessionStore(session)
            # sem create_all: "no such table"
            with pytest.raises(UpstreamUnavailable):
                await store.load_hierarchy()
            await session.rollback()
            with pytest.raises(UpstreamUnavailable):
                await store.fetch_intervals(window, ALL)
    finally:
        await engine.dispose()
