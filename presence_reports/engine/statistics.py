# presence_reports/engine/statistics.py
"""
Estatísticas derivadas dos rollups: média, percentis (nearest rank),
bucket de pico e pico de simultaneidade.

Conjunto vazio => None (nunca NaN/Inf, nunca exceção).
"""

from __future__ import annotations

import math
from collections import Counter
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from presence_reports.core.errors import InvalidParameter
from presence_reports.engine.bucketizer import FixedWidthDimension
from presence_reports.engine.intervals import Interval, Window
from presence_reports.engine.rollup import RollupCell


def average(total: float, count: int) -> Optional[float]:
    if not count:
        return None
    return float(total) / count


def percentile(samples: Iterable[float], p: float) -> Optional[float]:
    """
    Percentil por nearest rank sobre a amostra ordenada.

    rank = ceil(p * k) (1-indexado), limitado a [1, k].
    """
    if not 0 <= p <= 1:
        raise InvalidParameter("percentile must be between 0 and 1")

    ordered = sorted(samples)
    k = len(ordered)
    if k == 0:
        return None

    rank = min(max(math.ceil(p * k), 1), k)
    return float(ordered[rank - 1])


def peak_bucket(cells: Mapping[datetime, RollupCell]) -> Optional[Tuple[datetime, RollupCell]]:
    """
    Bucket com mais entidades (tags) distintas; empate => bucket mais antigo.
    None apenas quando não há buckets (buckets zerados também concorrem).
    """
    best: Optional[Tuple[datetime, RollupCell]] = None
    for bucket_start in sorted(cells):
        cell = cells[bucket_start]
        if best is None or cell.unique_tags_count > best[1].unique_tags_count:
            best = (bucket_start, cell)
    return best


def peak_concurrency(
    intervals: Sequence[Interval],
    dimension: FixedWidthDimension,
    window: Window,
) -> Dict[datetime, int]:
    """
    Pico de pessoas simultâneas por bucket (varredura por eventos).

    Intervalos semiabertos: no mesmo instante, saídas são processadas antes das
    entradas. Uma pessoa com duas sessões sobrepostas conta 1x. Intervalos sem
    pessoa associada são ignorados.
    """
    events: List[Tuple[datetime, int, int]] = []
    for interval in intervals:
        if interval.person_id is None or interval.end_ts is None:
            continue
        events.append((interval.start_ts, 1, interval.person_id))
        events.append((interval.end_ts, -1, interval.person_id))
    # -1 antes de +1 no mesmo ts
    events.sort(key=lambda e: (e[0], e[1]))

    present: Counter = Counter()
    level = 0
    i = 0
    n = len(events)

    def apply(delta: int, person_id: int) -> int:
        before = present[person_id]
        present[person_id] = before + delta
        if before == 0 and delta > 0:
            return 1
        if before == 1 and delta < 0:
            return -1
        return 0

    result: Dict[datetime, int] = {}
    for bucket_start, bucket_end in dimension.bounds(window):
        while i < n and events[i][0] <= bucket_start:
            level += apply(events[i][1], events[i][2])
            i += 1
        peak = level
        while i < n and events[i][0] < bucket_end:
            level += apply(events[i][1], events[i][2])
            peak = max(peak, level)
            i += 1
        result[bucket_start] = peak
    return result
