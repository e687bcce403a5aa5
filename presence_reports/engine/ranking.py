# presence_reports/engine/ranking.py
from __future__ import annotations

from typing import Hashable, List, Mapping, Tuple

from presence_reports.core.errors import InvalidParameter
from presence_reports.engine.rollup import RollupCell

METRICS = ("total_dwell_seconds", "sessions_count")


def top_n(
    cells: Mapping[Hashable, RollupCell],
    metric: str,
    n: int,
) -> List[Tuple[Hashable, RollupCell]]:
    """
    Top-N determinístico.

    Ordena pela métrica pedida (desc), desempata pela outra métrica (desc)
    e por fim pelo id (asc). Entrada vazia => lista vazia.
    """
    if metric not in METRICS:
        raise InvalidParameter(f"Invalid ranking metric: {metric!r}")
    if n is None or n < 0:
        raise InvalidParameter("top_n must be >= 0")

    other = METRICS[1] if metric == METRICS[0] else METRICS[0]

    def sort_key(item: Tuple[Hashable, RollupCell]):
        key, cell = item
        return (-getattr(cell, metric), -getattr(cell, other), key)

    ranked = sorted(cells.items(), key=sort_key)
    return ranked[:n]
