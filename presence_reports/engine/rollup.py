# presence_reports/engine/rollup.py
"""
Acumuladores de rollup.

RollupCell guarda, para um bucket / um device / a janela inteira:
- dwell total (timedelta, exato)
- ids distintos de sessões, tags e pessoas
- primeiro início / último fim

Regras:
- uma sessão conta no máximo 1x em sessions_count de cada bucket que toca,
  mesmo quando gerou vários pedaços no mesmo bucket (ex.: hora do dia em dias diferentes);
- totais da janela vêm de window_rollup() sobre os intervalos normalizados,
  nunca da soma dos buckets.

Todas as dobras são comutativas: a ordem de entrada não muda o resultado.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, Hashable, Iterable, List, Optional, Sequence, Set

from presence_reports.engine.bucketizer import Dimension
from presence_reports.engine.intervals import Interval, Window


@dataclass
class RollupCell:
    dwell: timedelta = timedelta(0)
    session_ids: Set[int] = field(default_factory=set)
    tag_ids: Set[int] = field(default_factory=set)
    person_ids: Set[int] = field(default_factory=set)
    first_start: Optional[datetime] = None
    last_end: Optional[datetime] = None

    def add(self, interval: Interval, overlap: timedelta) -> None:
        self.dwell += overlap
        self.session_ids.add(interval.session_id)
        self.tag_ids.add(interval.entity_id)
        if interval.person_id is not None:
            self.person_ids.add(interval.person_id)

        if self.first_start is None or interval.start_ts < self.first_start:
            self.first_start = interval.start_ts
        if interval.end_ts is not None and (self.last_end is None or interval.end_ts > self.last_end):
            self.last_end = interval.end_ts

    @property
    def total_dwell_seconds(self) -> int:
        return int(self.dwell.total_seconds())

    @property
    def sessions_count(self) -> int:
        return len(self.session_ids)

    @property
    def unique_tags_count(self) -> int:
        return len(self.tag_ids)

    @property
    def unique_people_count(self) -> int:
        return len(self.person_ids)


def window_rollup(intervals: Iterable[Interval]) -> RollupCell:
    """Totais da janela: cada intervalo normalizado entra inteiro, uma vez."""
    cell = RollupCell()
    for interval in intervals:
        cell.add(interval, interval.duration)
    return cell


def bucket_rollup(
    intervals: Iterable[Interval],
    dimension: Dimension,
    window: Optional[Window] = None,
) -> Dict[Hashable, RollupCell]:
    """
    Rollup por bucket. Quando window é informada, todas as chaves da
    dimensão são criadas (buckets vazios ficam zerados).
    """
    cells: Dict[Hashable, RollupCell] = {}
    if window is not None:
        for key in dimension.keys(window):
            cells[key] = RollupCell()

    for interval in intervals:
        for key, overlap in dimension.assign(interval):
            cell = cells.get(key)
            if cell is None:
                cell = cells[key] = RollupCell()
            cell.add(interval, overlap)
    return cells


def rollup_by(
    intervals: Iterable[Interval],
    keys_of: Callable[[Interval], Iterable[Hashable]],
) -> Dict[Hashable, RollupCell]:
    """
    Agrupa intervalos inteiros (sem bucketizar) pelas chaves devolvidas por keys_of.
    Um intervalo pode cair em várias chaves (ex.: pessoa em mais de um grupo);
    chaves None são ignoradas.
    """
    cells: Dict[Hashable, RollupCell] = {}
    for interval in intervals:
        for key in set(keys_of(interval)):
            if key is None:
                continue
            cell = cells.get(key)
            if cell is None:
                cell = cells[key] = RollupCell()
            cell.add(interval, interval.duration)
    return cells


def split_bucket_rollup(
    intervals: Iterable[Interval],
    dimension: Dimension,
    split_of: Callable[[Interval], Hashable],
) -> Dict[Hashable, Dict[Hashable, RollupCell]]:
    """Rollup por bucket quebrado por uma segunda chave (ex.: hora x gateway)."""
    groups: Dict[Hashable, List[Interval]] = {}
    for interval in intervals:
        groups.setdefault(split_of(interval), []).append(interval)
    return {key: bucket_rollup(items, dimension) for key, items in groups.items()}


def session_durations(intervals: Sequence[Interval]) -> List[float]:
    """Durações clipadas por sessão (segundos), amostra dos percentis."""
    return [interval.duration_seconds for interval in intervals]
