# testes/conftest.py
"""
Store em memória e um cenário fixo para os testes de serviço e API.

Cenário (janela padrão: 2025-11-03 00:00 -> 2025-11-04 00:00 UTC, segunda-feira):

- Prédio 1 "Predio Central": andar 10, planta 100
    device 1 "GW Hall"       -> só planta 100 (andar vem da planta)
    device 2 "GW Refeitorio" -> floor_id 10
- Prédio 2 "Anexo": andar 20
    device 3 "GW Anexo"      -> floor_id 20
- device 4 "GW Solto": sem andar

- Pessoas: 1 Maria (tags 11, 12), 2 João (tag 21), 3 Ana (tag 31); tag 99 sem dono
- Grupos: 1 "Equipe A" = {Maria, João}, 2 "Vazio" = {}
"""
from datetime import datetime
from typing import List

import pytest

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
)
from presence_reports.engine.intervals import Interval, Window
from presence_reports.engine.scope import StoreFilter

DAY = datetime(2025, 11, 3)


def ts(hour: int, minute: int = 0, second: int = 0, day: int = 3) -> datetime:
    return datetime(2025, 11, day, hour, minute, second)


def make_hierarchy() -> Hierarchy:
    return build_hierarchy(
        buildings=[BuildingInfo(id=1, name="Predio Central"), BuildingInfo(id=2, name="Anexo")],
        floors=[FloorInfo(id=10, building_id=1, name="Térreo"), FloorInfo(id=20, building_id=2, name="Anexo 1")],
        floor_plans=[FloorPlanInfo(id=100, floor_id=10, name="Planta Térreo")],
        devices=[
            DeviceInfo(id=1, name="GW Hall", mac_address="00:11:22:33:44:01", floor_plan_id=100),
            DeviceInfo(id=2, name="GW Refeitorio", mac_address="00:11:22:33:44:02", floor_id=10),
            DeviceInfo(id=3, name="GW Anexo", mac_address="00:11:22:33:44:03", floor_id=20),
            DeviceInfo(id=4, name="GW Solto", mac_address="00:11:22:33:44:04"),
        ],
        people=[
            PersonInfo(id=1, full_name="Maria Teste"),
            PersonInfo(id=2, full_name="João Teste"),
            PersonInfo(id=3, full_name="Ana Teste"),
        ],
        tags={11: 1, 12: 1, 21: 2, 31: 3, 99: None},
        groups=[
            GroupInfo(id=1, name="Equipe A", member_ids=frozenset({1, 2})),
            GroupInfo(id=2, name="Vazio"),
        ],
    )


def make_intervals() -> List[Interval]:
    return [
        Interval(session_id=1, entity_id=11, device_id=1, start_ts=ts(0), end_ts=ts(3), sample_count=30),
        Interval(session_id=2, entity_id=21, device_id=1, start_ts=ts(1, 30), end_ts=ts(2, 30), sample_count=10),
        Interval(session_id=3, entity_id=31, device_id=3, start_ts=ts(10), end_ts=ts(10, 0, 30), sample_count=2),
        # começa no dia anterior: clipado para 1h
        Interval(session_id=4, entity_id=12, device_id=2, start_ts=ts(23, day=2), end_ts=ts(1), sample_count=20),
        # sessão aberta: vai até o fim da janela (2h)
        Interval(session_id=5, entity_id=21, device_id=2, start_ts=ts(22), end_ts=None, sample_count=5),
        Interval(session_id=6, entity_id=99, device_id=4, start_ts=ts(12), end_ts=ts(13), sample_count=8),
        # fora da janela
        Interval(session_id=7, entity_id=11, device_id=1, start_ts=ts(5, day=4), end_ts=ts(6, day=4), sample_count=3),
    ]


def make_alerts() -> List[AlertRecord]:
    return [
        AlertRecord(id=1, event_type="SOS", start_ts=ts(1), device_id=1, entity_id=11, person_id=1),
        AlertRecord(id=2, event_type="SOS", start_ts=ts(2), device_id=1, entity_id=21),
        AlertRecord(id=3, event_type="GEOFENCE", start_ts=ts(5), device_id=2, entity_id=11),
        AlertRecord(id=4, event_type=None, start_ts=ts(6), entity_id=12),
        # start == to_ts: fora da janela
        AlertRecord(id=5, event_type="SOS", start_ts=ts(0, day=4), device_id=3, entity_id=31),
        AlertRecord(id=6, event_type="GEOFENCE", start_ts=ts(7), device_id=3, person_id=1),
    ]


class FakeStore:
    """
    Devolve sempre o superconjunto (ignora o filtro), como um store
    que não filtra no servidor. Conta as chamadas de fetch.
    """

    def __init__(self, hierarchy=None, intervals=None, alerts=None, fail: bool = False):
        self.hierarchy = hierarchy if hierarchy is not None else make_hierarchy()
        self.intervals = list(intervals) if intervals is not None else make_intervals()
        self.alerts = list(alerts) if alerts is not None else make_alerts()
        self.fail = fail
        self.fetch_calls = 0
        self.filters: List[StoreFilter] = []

    async def load_hierarchy(self) -> Hierarchy:
        return self.hierarchy

    async def fetch_intervals(self, window: Window, store_filter: StoreFilter) -> List[Interval]:
        self.fetch_calls += 1
        self.filters.append(store_filter)
        if self.fail:
            raise UpstreamUnavailable("Session store unavailable")
        return list(self.intervals)

    async def fetch_alerts(self, window: Window, store_filter: StoreFilter) -> List[AlertRecord]:
        self.fetch_calls += 1
        self.filters.append(store_filter)
        if self.fail:
            raise UpstreamUnavailable("Session store unavailable")
        return list(self.alerts)


@pytest.fixture
def hierarchy() -> Hierarchy:
    return make_hierarchy()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def window() -> Window:
    return Window.build(ts(0), ts(0, day=4))
