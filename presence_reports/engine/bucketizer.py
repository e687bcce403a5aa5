# presence_reports/engine/bucketizer.py
"""
Bucketização de intervalos.

Cada dimensão sabe:
- next_boundary(ts): a primeira fronteira de bucket estritamente depois de ts
- key_of(ts): a chave do bucket que contém ts (fronteira fechada à esquerda)
- keys(window): todas as chaves da dimensão na janela (para zero-fill)

assign() quebra o intervalo (já normalizado) nas fronteiras e devolve
(chave, overlap). A soma dos overlaps é exatamente a duração clipada,
porque trabalhamos com timedelta (precisão de microssegundo).

Dimensões de calendário / hora do dia / dia da semana usam o fuso configurado;
chaves datetime são devolvidas em UTC naive.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Hashable, List, Sequence, Tuple

from presence_reports.core.errors import InvalidParameter
from presence_reports.engine.intervals import Interval, Window

CALENDAR_GRANULARITIES = ("day", "week", "month", "year")

Assignment = Tuple[Hashable, timedelta]


def _to_local(ts: datetime, tz: tzinfo) -> datetime:
    return ts.replace(tzinfo=timezone.utc).astimezone(tz)


def _local_midnight_utc(d: date, tz: tzinfo) -> datetime:
    local = datetime.combine(d, time(0), tzinfo=tz)
    return local.astimezone(timezone.utc).replace(tzinfo=None)


class Dimension:
    """Base das dimensões temporais."""

    name: str = ""

    def next_boundary(self, ts: datetime) -> datetime:
        raise NotImplementedError

    def key_of(self, ts: datetime) -> Hashable:
        raise NotImplementedError

    def keys(self, window: Window) -> List[Hashable]:
        raise NotImplementedError

    def split(self, start: datetime, end: datetime) -> List[Tuple[datetime, datetime]]:
        segments: List[Tuple[datetime, datetime]] = []
        cursor = start
        while cursor < end:
            boundary = self.next_boundary(cursor)
            seg_end = min(boundary, end) if boundary > cursor else end
            segments.append((cursor, seg_end))
            cursor = seg_end
        return segments

    def assign(self, interval: Interval) -> List[Assignment]:
        if interval.end_ts is None or interval.end_ts <= interval.start_ts:
            return []
        return [(self.key_of(s), e - s) for s, e in self.split(interval.start_ts, interval.end_ts)]


class CalendarDimension(Dimension):
    """Buckets de calendário: day, week (início na segunda), month, year."""

    def __init__(self, granularity: str, tz: tzinfo):
        if granularity not in CALENDAR_GRANULARITIES:
            raise InvalidParameter(f"Invalid granularity: {granularity!r}")
        self.granularity = granularity
        self.name = granularity
        self.tz = tz

    def _trunc(self, d: date) -> date:
        if self.granularity == "day":
            return d
        if self.granularity == "week":
            return d - timedelta(days=d.weekday())
        if self.granularity == "month":
            return d.replace(day=1)
        return d.replace(month=1, day=1)

    def _step(self, d: date) -> date:
        if self.granularity == "day":
            return d + timedelta(days=1)
        if self.granularity == "week":
            return d + timedelta(days=7)
        if self.granularity == "month":
            if d.month == 12:
                return d.replace(year=d.year + 1, month=1)
            return d.replace(month=d.month + 1)
        return d.replace(year=d.year + 1)

    def next_boundary(self, ts: datetime) -> datetime:
        start = self._trunc(_to_local(ts, self.tz).date())
        return _local_midnight_utc(self._step(start), self.tz)

    def key_of(self, ts: datetime) -> datetime:
        return _local_midnight_utc(self._trunc(_to_local(ts, self.tz).date()), self.tz)

    def keys(self, window: Window) -> List[datetime]:
        keys: List[datetime] = []
        d = self._trunc(_to_local(window.from_ts, self.tz).date())
        while True:
            bucket_start = _local_midnight_utc(d, self.tz)
            if bucket_start >= window.to_ts:
                break
            keys.append(bucket_start)
            d = self._step(d)
        return keys


class FixedWidthDimension(Dimension):
    """Buckets de largura fixa ancorados em anchor (início literal da janela)."""

    name = "fixed"

    def __init__(self, anchor: datetime, width: timedelta):
        if width <= timedelta(0):
            raise InvalidParameter("bucket width must be positive")
        self.anchor = anchor
        self.width = width

    def _index(self, ts: datetime) -> int:
        return (ts - self.anchor) // self.width

    def next_boundary(self, ts: datetime) -> datetime:
        return self.anchor + (self._index(ts) + 1) * self.width

    def key_of(self, ts: datetime) -> datetime:
        return self.anchor + self._index(ts) * self.width

    def keys(self, window: Window) -> List[datetime]:
        keys: List[datetime] = []
        cursor = self.key_of(window.from_ts)
        while cursor < window.to_ts:
            keys.append(cursor)
            cursor += self.width
        return keys

    def bounds(self, window: Window) -> List[Tuple[datetime, datetime]]:
        return [(k, min(k + self.width, window.to_ts)) for k in self.keys(window)]


class HourOfDayDimension(Dimension):
    """Hora local (0..23). Quebra nas fronteiras de hora local (inclui meia-noite)."""

    name = "hour_of_day"

    def __init__(self, tz: tzinfo):
        self.tz = tz

    def next_boundary(self, ts: datetime) -> datetime:
        local = _to_local(ts, self.tz)
        into_hour = timedelta(minutes=local.minute, seconds=local.second, microseconds=local.microsecond)
        return ts + timedelta(hours=1) - into_hour

    def key_of(self, ts: datetime) -> int:
        return _to_local(ts, self.tz).hour

    def keys(self, window: Window) -> List[int]:
        return list(range(24))


class DayOfWeekDimension(Dimension):
    """
    Dia da semana local, padrão PostgreSQL (dow):
    0 = domingo, 1 = segunda, ..., 6 = sábado.
    """

    name = "day_of_week"

    def __init__(self, tz: tzinfo):
        self.tz = tz

    def next_boundary(self, ts: datetime) -> datetime:
        local_day = _to_local(ts, self.tz).date()
        return _local_midnight_utc(local_day + timedelta(days=1), self.tz)

    def key_of(self, ts: datetime) -> int:
        return _to_local(ts, self.tz).isoweekday() % 7

    def keys(self, window: Window) -> List[int]:
        return list(range(7))


def assign(interval: Interval, dimension: Dimension) -> List[Assignment]:
    return dimension.assign(interval)


def occupancy_dimension(window: Window, bucket_minutes: int) -> FixedWidthDimension:
    if bucket_minutes is None or bucket_minutes < 1 or bucket_minutes > 24 * 60:
        raise InvalidParameter("bucket_minutes deve estar entre 1 e 1440")
    return FixedWidthDimension(anchor=window.from_ts, width=timedelta(minutes=bucket_minutes))


def total_overlap(assignments: Sequence[Assignment]) -> timedelta:
    return sum((overlap for _, overlap in assignments), timedelta(0))


def bucket_keys(dimension: Dimension, window: Window) -> List[Hashable]:
    return dimension.keys(window)
