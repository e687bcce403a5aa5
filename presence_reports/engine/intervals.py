# presence_reports/engine/intervals.py
"""
Modelo de intervalos (sessões de presença e alertas) e janela temporal.

Convenções:
- Todos os timestamps que entram no motor são UTC *naive*
  (compatível com TIMESTAMP WITHOUT TIME ZONE da view presence_sessions).
- Intervalos são semiabertos: [start_ts, end_ts).
- end_ts None = sessão aberta; é tratada como "em andamento" até o fim da janela.
- normalize() é o ÚNICO ponto de filtragem (clip + min_duration_seconds).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from presence_reports.core.errors import InvalidParameter, InvalidWindow


def to_utc_naive(dt: Optional[datetime]) -> Optional[datetime]:
    """Converte datetime aware para UTC naive (remove tzinfo)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class Interval:
    session_id: int
    entity_id: int  # tag_id
    device_id: int
    start_ts: datetime
    end_ts: Optional[datetime] = None
    sample_count: int = 0
    # dono da tag; preenchido pelo ScopeResolver a partir da hierarquia
    person_id: Optional[int] = None

    @property
    def duration(self) -> timedelta:
        if self.end_ts is None:
            raise ValueError("Interval is open; normalize it against a window first")
        return self.end_ts - self.start_ts

    @property
    def duration_seconds(self) -> float:
        return self.duration.total_seconds()


@dataclass(frozen=True)
class Window:
    from_ts: datetime
    to_ts: datetime
    min_duration_seconds: Optional[int] = None

    @classmethod
    def build(
        cls,
        from_ts: datetime,
        to_ts: datetime,
        min_duration_seconds: Optional[int] = None,
    ) -> "Window":
        if from_ts is None or to_ts is None:
            raise InvalidWindow("from_ts e to_ts são obrigatórios")

        f = to_utc_naive(from_ts)
        t = to_utc_naive(to_ts)
        if t <= f:
            raise InvalidWindow("to_ts deve ser maior que from_ts")
        if min_duration_seconds is not None and min_duration_seconds < 0:
            raise InvalidParameter("min_duration_seconds não pode ser negativo")

        return cls(from_ts=f, to_ts=t, min_duration_seconds=min_duration_seconds)

    @property
    def span(self) -> timedelta:
        return self.to_ts - self.from_ts

    def contains(self, ts: datetime) -> bool:
        return self.from_ts <= ts < self.to_ts


def normalize(interval: Interval, window: Window) -> Optional[Interval]:
    """
    Clipa o intervalo na janela.

    Retorna None (descarta) quando a duração clipada é zero/negativa
    ou menor que window.min_duration_seconds.
    """
    start = max(to_utc_naive(interval.start_ts), window.from_ts)
    end = to_utc_naive(interval.end_ts) if interval.end_ts is not None else window.to_ts
    end = min(end, window.to_ts)

    clipped = end - start
    if clipped <= timedelta(0):
        return None
    if window.min_duration_seconds is not None and clipped < timedelta(seconds=window.min_duration_seconds):
        return None

    return replace(interval, start_ts=start, end_ts=end)


def normalize_all(intervals: Iterable[Interval], window: Window) -> List[Interval]:
    normalized: List[Interval] = []
    for interval in intervals:
        clipped = normalize(interval, window)
        if clipped is not None:
            normalized.append(clipped)
    return normalized
