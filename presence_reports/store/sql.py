# presence_reports/store/sql.py
"""
SessionStore sobre SQLAlchemy async (PostgreSQL/asyncpg em produção).

Só faz selects por janela + filtros de device/tag; toda agregação
acontece no motor. Falhas de banco/rede viram UpstreamUnavailable.
"""

from __future__ import annotations

import logging
from datetime import timezone
from typing import List

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from presence_reports.core.errors import UpstreamUnavailable
from presence_reports.engine.alerts import AlertRecord
from presence_reports.engine.hierarchy import (
    BuildingInfo,
    DeviceInfo,
    FloorInfo,
    FloorPlanInfo,
    GroupInfo,
    Hierarchy,
    PersonInfo,
    build_hierarchy,
    index_members,
)
from presence_reports.engine.intervals import Interval, Window
from presence_reports.engine.scope import StoreFilter
from presence_reports.models.alert_event import AlertEvent
from presence_reports.models.building import Building
from presence_reports.models.device import Device
from presence_reports.models.floor import Floor
from presence_reports.models.floor_plan import FloorPlan
from presence_reports.models.person import Person
from presence_reports.models.person_group import PersonGroup, person_group_memberships
from presence_reports.models.presence_session import PresenceSession
from presence_reports.models.tag import Tag

logger = logging.getLogger("presence.store")


class SqlSessionStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _rows(self, stmt):
        res = await self.db.execute(stmt)
        return res.all()

    async def load_hierarchy(self) -> Hierarchy:
        try:
            devices = await self._rows(
                select(Device.id, Device.name, Device.mac_address, Device.floor_id, Device.floor_plan_id)
            )
            plans = await self._rows(select(FloorPlan.id, FloorPlan.floor_id, FloorPlan.name))
            floors = await self._rows(select(Floor.id, Floor.building_id, Floor.name))
            buildings = await self._rows(select(Building.id, Building.name))
            people = await self._rows(select(Person.id, Person.full_name))
            tags = await self._rows(select(Tag.id, Tag.person_id))
            groups = await self._rows(select(PersonGroup.id, PersonGroup.name))
            memberships = await self._rows(
                select(person_group_memberships.c.person_id, person_group_memberships.c.group_id)
            )
        except (SQLAlchemyError, OSError) as exc:
            logger.exception("Falha ao carregar hierarquia")
            raise UpstreamUnavailable("Session store unavailable") from exc

        members = index_members(memberships)
        return build_hierarchy(
            devices=[
                DeviceInfo(id=r.id, name=r.name, mac_address=r.mac_address, floor_id=r.floor_id, floor_plan_id=r.floor_plan_id)
                for r in devices
            ],
            floor_plans=[FloorPlanInfo(id=r.id, floor_id=r.floor_id, name=r.name) for r in plans],
            floors=[FloorInfo(id=r.id, building_id=r.building_id, name=r.name) for r in floors],
            buildings=[BuildingInfo(id=r.id, name=r.name) for r in buildings],
            people=[PersonInfo(id=r.id, full_name=r.full_name) for r in people],
            tags={r.id: r.person_id for r in tags},
            groups=[GroupInfo(id=r.id, name=r.name, member_ids=members.get(r.id, frozenset())) for r in groups],
        )

    async def fetch_intervals(self, window: Window, store_filter: StoreFilter) -> List[Interval]:
        if store_filter.is_empty:
            return []

        stmt = select(PresenceSession).where(
            PresenceSession.started_at < window.to_ts,
            or_(PresenceSession.ended_at.is_(None), PresenceSession.ended_at > window.from_ts),
        )
        if store_filter.device_ids is not None:
            stmt = stmt.where(PresenceSession.device_id.in_(sorted(store_filter.device_ids)))
        if store_filter.tag_ids is not None:
            stmt = stmt.where(PresenceSession.tag_id.in_(sorted(store_filter.tag_ids)))

        try:
            res = await self.db.execute(stmt)
            rows = list(res.scalars().all())
        except (SQLAlchemyError, OSError) as exc:
            logger.exception("Falha ao buscar sessões de presença")
            raise UpstreamUnavailable("Session store unavailable") from exc

        logger.debug("fetch_intervals: %d sessões em [%s, %s)", len(rows), window.from_ts, window.to_ts)
        return [
            Interval(
                session_id=row.id,
                entity_id=row.tag_id,
                device_id=row.device_id,
                start_ts=row.started_at,
                end_ts=row.ended_at,
                sample_count=row.samples_count or 0,
            )
            for row in rows
        ]

    async def fetch_alerts(self, window: Window, store_filter: StoreFilter) -> List[AlertRecord]:
        if store_filter.device_ids is not None and not store_filter.device_ids:
            return []

        # alert_events usa TIMESTAMP WITH TIME ZONE
        from_aware = window.from_ts.replace(tzinfo=timezone.utc)
        to_aware = window.to_ts.replace(tzinfo=timezone.utc)

        stmt = select(AlertEvent).where(AlertEvent.started_at >= from_aware, AlertEvent.started_at < to_aware)
        if store_filter.device_ids is not None:
            stmt = stmt.where(AlertEvent.device_id.in_(sorted(store_filter.device_ids)))
        if store_filter.tag_ids is not None:
            conditions = [AlertEvent.tag_id.in_(sorted(store_filter.tag_ids))]
            if store_filter.person_ids:
                conditions.append(AlertEvent.person_id.in_(sorted(store_filter.person_ids)))
            stmt = stmt.where(or_(*conditions))

        try:
            res = await self.db.execute(stmt)
            rows = list(res.scalars().all())
        except (SQLAlchemyError, OSError) as exc:
            logger.exception("Falha ao buscar alertas")
            raise UpstreamUnavailable("Session store unavailable") from exc

        logger.debug("fetch_alerts: %d alertas em [%s, %s)", len(rows), window.from_ts, window.to_ts)
        return [
            AlertRecord(
                id=row.id,
                event_type=row.event_type,
                start_ts=row.started_at,
                end_ts=row.ended_at,
                device_id=row.device_id,
                entity_id=row.tag_id,
                person_id=row.person_id,
            )
            for row in rows
        ]
