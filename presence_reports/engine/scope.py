# presence_reports/engine/scope.py
"""
ScopeResolver: traduz o escopo pedido (pessoa, grupo, gateway, prédio, global)
em conjuntos planos de ids elegíveis, usando a Hierarchy da request.

- O StoreFilter vai para o banco (filtro no servidor).
- select_intervals / select_alerts refiltram no cliente, então o banco pode
  devolver um superconjunto sem alterar o resultado.
- Id desconhecido => NotFound (nunca "escopo vazio").
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional

from presence_reports.core.errors import NotFound
from presence_reports.engine.alerts import AlertRecord
from presence_reports.engine.hierarchy import Hierarchy
from presence_reports.engine.intervals import Interval


class ScopeKind(str, Enum):
    PERSON = "person"
    GROUP = "group"
    GATEWAY = "gateway"
    BUILDING = "building"
    GLOBAL = "global"


@dataclass(frozen=True)
class Scope:
    kind: ScopeKind
    id: Optional[int] = None


@dataclass(frozen=True)
class StoreFilter:
    """None = sem restrição naquele eixo."""

    device_ids: Optional[FrozenSet[int]] = None
    tag_ids: Optional[FrozenSet[int]] = None
    person_ids: Optional[FrozenSet[int]] = None

    @property
    def is_empty(self) -> bool:
        return any(ids is not None and not ids for ids in (self.device_ids, self.tag_ids))


@dataclass(frozen=True)
class ResolvedScope:
    scope: Scope
    name: Optional[str]
    hierarchy: Hierarchy
    store_filter: StoreFilter

    def _tag_allowed(self, tag_id: Optional[int]) -> bool:
        tags = self.store_filter.tag_ids
        return tags is None or tag_id in tags

    def _device_allowed(self, device_id: Optional[int]) -> bool:
        devices = self.store_filter.device_ids
        return devices is None or device_id in devices

    def select_intervals(self, intervals: Iterable[Interval]) -> List[Interval]:
        """Filtra pelo escopo e atribui a pessoa dona da tag."""
        selected: List[Interval] = []
        for interval in intervals:
            if not self._tag_allowed(interval.entity_id) or not self._device_allowed(interval.device_id):
                continue
            person_id = self.hierarchy.person_of_tag(interval.entity_id)
            if person_id != interval.person_id:
                interval = replace(interval, person_id=person_id)
            selected.append(interval)
        return selected

    def select_alerts(self, alerts: Iterable[AlertRecord]) -> List[AlertRecord]:
        persons = self.store_filter.person_ids
        selected: List[AlertRecord] = []
        for alert in alerts:
            if not self._device_allowed(alert.device_id):
                continue
            if self.store_filter.tag_ids is not None:
                owner = alert.person_id
                if owner is None:
                    owner = self.hierarchy.person_of_tag(alert.entity_id)
                by_person = persons is not None and owner in persons
                if not by_person and alert.entity_id not in self.store_filter.tag_ids:
                    continue
            selected.append(alert)
        return selected


class ScopeResolver:
    def __init__(self, hierarchy: Hierarchy):
        self.hierarchy = hierarchy

    def resolve(self, scope: Scope) -> ResolvedScope:
        h = self.hierarchy

        if scope.kind == ScopeKind.PERSON:
            person = h.people.get(scope.id)
            if person is None:
                raise NotFound("Person not found")
            people = frozenset({person.id})
            return ResolvedScope(
                scope=scope,
                name=person.full_name,
                hierarchy=h,
                store_filter=StoreFilter(tag_ids=h.tags_of_people(people), person_ids=people),
            )

        if scope.kind == ScopeKind.GROUP:
            group = h.groups.get(scope.id)
            if group is None:
                raise NotFound("Person group not found")
            return ResolvedScope(
                scope=scope,
                name=group.name,
                hierarchy=h,
                store_filter=StoreFilter(
                    tag_ids=h.tags_of_people(group.member_ids),
                    person_ids=group.member_ids,
                ),
            )

        if scope.kind == ScopeKind.GATEWAY:
            device = h.devices.get(scope.id)
            if device is None:
                raise NotFound("Device not found")
            return ResolvedScope(
                scope=scope,
                name=device.name,
                hierarchy=h,
                store_filter=StoreFilter(device_ids=frozenset({device.id})),
            )

        if scope.kind == ScopeKind.BUILDING:
            building = h.buildings.get(scope.id)
            if building is None:
                raise NotFound("Building not found")
            return ResolvedScope(
                scope=scope,
                name=building.name,
                hierarchy=h,
                store_filter=StoreFilter(device_ids=h.devices_where(building_id=building.id)),
            )

        return self.resolve_global()

    def resolve_global(
        self,
        *,
        device_id: Optional[int] = None,
        tag_id: Optional[int] = None,
        building_id: Optional[int] = None,
        floor_id: Optional[int] = None,
        floor_plan_id: Optional[int] = None,
    ) -> ResolvedScope:
        """Escopo global (overview / uso de gateways) com filtros opcionais."""
        h = self.hierarchy

        if device_id is not None and device_id not in h.devices:
            raise NotFound("Device not found")
        if tag_id is not None and tag_id not in h.tags:
            raise NotFound("Tag not found")
        if building_id is not None and building_id not in h.buildings:
            raise NotFound("Building not found")
        if floor_id is not None and floor_id not in h.floors:
            raise NotFound("Floor not found")
        if floor_plan_id is not None and floor_plan_id not in h.floor_plans:
            raise NotFound("Floor plan not found")

        device_ids: Optional[FrozenSet[int]] = None
        if any(x is not None for x in (building_id, floor_id, floor_plan_id)):
            device_ids = h.devices_where(building_id=building_id, floor_id=floor_id, floor_plan_id=floor_plan_id)
        if device_id is not None:
            device_ids = frozenset({device_id}) if device_ids is None else device_ids & {device_id}

        return ResolvedScope(
            scope=Scope(kind=ScopeKind.GLOBAL),
            name=None,
            hierarchy=h,
            store_filter=StoreFilter(
                device_ids=device_ids,
                tag_ids=frozenset({tag_id}) if tag_id is not None else None,
            ),
        )
