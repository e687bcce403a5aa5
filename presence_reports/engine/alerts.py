# presence_reports/engine/alerts.py
"""
Rollup de alertas: contagem por tipo e (pessoa/grupo) por device,
primeiro/último alerta e amostra dos eventos mais recentes.

Alertas não são bucketizados nem ponderados por duração:
cada ocorrência conta 1. Entram na janela os alertas com
from_ts <= start_ts < to_ts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from presence_reports.core.errors import InvalidParameter
from presence_reports.engine.intervals import Window, to_utc_naive

UNKNOWN_EVENT_TYPE = "UNKNOWN"


@dataclass(frozen=True)
class AlertRecord:
    id: int
    event_type: Optional[str]
    start_ts: datetime
    end_ts: Optional[datetime] = None
    device_id: Optional[int] = None
    entity_id: Optional[int] = None  # tag_id
    person_id: Optional[int] = None

    @property
    def kind(self) -> str:
        return self.event_type or UNKNOWN_EVENT_TYPE


@dataclass
class AlertRollup:
    total_alerts: int = 0
    first_alert_at: Optional[datetime] = None
    last_alert_at: Optional[datetime] = None
    by_type: List[Tuple[str, int]] = field(default_factory=list)
    by_device: List[Tuple[Optional[int], int]] = field(default_factory=list)
    events: List[AlertRecord] = field(default_factory=list)


def _device_sort_key(item: Tuple[Optional[int], int]):
    device_id, count = item
    # device desconhecido vai para o fim entre empates
    return (-count, device_id is None, device_id or 0)


def rollup_alerts(
    alerts: Iterable[AlertRecord],
    window: Window,
    *,
    event_type: Optional[str] = None,
    device_id: Optional[int] = None,
    max_events: Optional[int] = None,
    with_devices: bool = False,
) -> AlertRollup:
    if max_events is not None and max_events < 1:
        raise InvalidParameter("max_events must be >= 1")

    selected: List[AlertRecord] = []
    for alert in alerts:
        started_at = to_utc_naive(alert.start_ts)
        if not window.contains(started_at):
            continue
        if event_type is not None and alert.kind != event_type:
            continue
        if device_id is not None and alert.device_id != device_id:
            continue
        selected.append(alert)

    result = AlertRollup(total_alerts=len(selected))
    if not selected:
        return result

    by_type: Dict[str, int] = {}
    by_device: Dict[Optional[int], int] = {}
    for alert in selected:
        started_at = to_utc_naive(alert.start_ts)
        if result.first_alert_at is None or started_at < result.first_alert_at:
            result.first_alert_at = started_at
        if result.last_alert_at is None or started_at > result.last_alert_at:
            result.last_alert_at = started_at

        by_type[alert.kind] = by_type.get(alert.kind, 0) + 1
        if with_devices:
            by_device[alert.device_id] = by_device.get(alert.device_id, 0) + 1

    result.by_type = sorted(by_type.items(), key=lambda item: (-item[1], item[0]))
    if with_devices:
        result.by_device = sorted(by_device.items(), key=_device_sort_key)

    events = sorted(selected, key=lambda a: (to_utc_naive(a.start_ts), a.id), reverse=True)
    if max_events is not None:
        events = events[:max_events]
    result.events = events
    return result
