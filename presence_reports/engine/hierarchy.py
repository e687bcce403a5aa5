# presence_reports/engine/hierarchy.py
"""
Tabelas de lookup da hierarquia (id -> pai), carregadas uma vez por request.

device -> floor -> building e group -> pessoas, tag -> pessoa.
O andar de um device é o floor_id dele; se vazio, o andar da planta.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Mapping, Optional, Set


@dataclass(frozen=True)
class DeviceInfo:
    id: int
    name: Optional[str] = None
    mac_address: Optional[str] = None
    floor_id: Optional[int] = None
    floor_plan_id: Optional[int] = None


@dataclass(frozen=True)
class FloorPlanInfo:
    id: int
    floor_id: int
    name: Optional[str] = None


@dataclass(frozen=True)
class FloorInfo:
    id: int
    building_id: int
    name: Optional[str] = None


@dataclass(frozen=True)
class BuildingInfo:
    id: int
    name: str


@dataclass(frozen=True)
class PersonInfo:
    id: int
    full_name: str


@dataclass(frozen=True)
class GroupInfo:
    id: int
    name: str
    member_ids: FrozenSet[int] = frozenset()


@dataclass(frozen=True)
class DeviceLocation:
    device_id: int
    device_name: Optional[str] = None
    device_mac_address: Optional[str] = None
    floor_plan_id: Optional[int] = None
    floor_plan_name: Optional[str] = None
    floor_id: Optional[int] = None
    floor_name: Optional[str] = None
    building_id: Optional[int] = None
    building_name: Optional[str] = None


@dataclass(frozen=True)
class Hierarchy:
    devices: Mapping[int, DeviceInfo] = field(default_factory=dict)
    floor_plans: Mapping[int, FloorPlanInfo] = field(default_factory=dict)
    floors: Mapping[int, FloorInfo] = field(default_factory=dict)
    buildings: Mapping[int, BuildingInfo] = field(default_factory=dict)
    people: Mapping[int, PersonInfo] = field(default_factory=dict)
    # tag_id -> person_id (None = tag sem dono)
    tags: Mapping[int, Optional[int]] = field(default_factory=dict)
    groups: Mapping[int, GroupInfo] = field(default_factory=dict)

    def person_of_tag(self, tag_id: Optional[int]) -> Optional[int]:
        if tag_id is None:
            return None
        return self.tags.get(tag_id)

    def tags_of_people(self, person_ids: FrozenSet[int]) -> FrozenSet[int]:
        return frozenset(tag_id for tag_id, person_id in self.tags.items() if person_id in person_ids)

    def groups_of_person(self, person_id: Optional[int]) -> FrozenSet[int]:
        if person_id is None:
            return frozenset()
        return frozenset(g.id for g in self.groups.values() if person_id in g.member_ids)

    def floor_of_device(self, device_id: Optional[int]) -> Optional[int]:
        device = self.devices.get(device_id) if device_id is not None else None
        if device is None:
            return None
        if device.floor_id is not None:
            return device.floor_id
        plan = self.floor_plans.get(device.floor_plan_id) if device.floor_plan_id is not None else None
        return plan.floor_id if plan is not None else None

    def building_of_device(self, device_id: Optional[int]) -> Optional[int]:
        floor = self.floors.get(self.floor_of_device(device_id))
        return floor.building_id if floor is not None else None

    def devices_where(
        self,
        *,
        building_id: Optional[int] = None,
        floor_id: Optional[int] = None,
        floor_plan_id: Optional[int] = None,
    ) -> FrozenSet[int]:
        selected: Set[int] = set()
        for device in self.devices.values():
            if floor_plan_id is not None and device.floor_plan_id != floor_plan_id:
                continue
            if floor_id is not None and self.floor_of_device(device.id) != floor_id:
                continue
            if building_id is not None and self.building_of_device(device.id) != building_id:
                continue
            selected.add(device.id)
        return frozenset(selected)

    def location(self, device_id: int) -> DeviceLocation:
        device = self.devices.get(device_id)
        if device is None:
            return DeviceLocation(device_id=device_id)

        plan = self.floor_plans.get(device.floor_plan_id) if device.floor_plan_id is not None else None
        floor = self.floors.get(self.floor_of_device(device_id))
        building = self.buildings.get(floor.building_id) if floor is not None else None

        return DeviceLocation(
            device_id=device.id,
            device_name=device.name,
            device_mac_address=device.mac_address,
            floor_plan_id=plan.id if plan else None,
            floor_plan_name=plan.name if plan else None,
            floor_id=floor.id if floor else None,
            floor_name=floor.name if floor else None,
            building_id=building.id if building else None,
            building_name=building.name if building else None,
        )

    def device_name(self, device_id: Optional[int]) -> Optional[str]:
        device = self.devices.get(device_id) if device_id is not None else None
        return device.name if device else None

    def person_name(self, person_id: Optional[int]) -> Optional[str]:
        person = self.people.get(person_id) if person_id is not None else None
        return person.full_name if person else None


def build_hierarchy(
    *,
    devices=(),
    floor_plans=(),
    floors=(),
    buildings=(),
    people=(),
    tags: Optional[Mapping[int, Optional[int]]] = None,
    groups=(),
) -> Hierarchy:
    """Monta a Hierarchy a partir de sequências de *Info."""
    return Hierarchy(
        devices={d.id: d for d in devices},
        floor_plans={p.id: p for p in floor_plans},
        floors={f.id: f for f in floors},
        buildings={b.id: b for b in buildings},
        people={p.id: p for p in people},
        tags=dict(tags or {}),
        groups={g.id: g for g in groups},
    )


def index_members(memberships) -> Dict[int, FrozenSet[int]]:
    """(person_id, group_id) -> {group_id: frozenset(person_ids)}"""
    members: Dict[int, Set[int]] = {}
    for person_id, group_id in memberships:
        members.setdefault(group_id, set()).add(person_id)
    return {group_id: frozenset(ids) for group_id, ids in members.items()}
