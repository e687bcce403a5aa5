# presence_reports/store/base.py
"""
Fronteira com o store de sessões/alertas.

O store pode aplicar o StoreFilter no servidor ou devolver um superconjunto;
o ResolvedScope refiltra no cliente de qualquer forma.
"""

from __future__ import annotations

from typing import List, Protocol

from presence_reports.engine.alerts import AlertRecord
from presence_reports.engine.hierarchy import Hierarchy
from presence_reports.engine.intervals import Interval, Window
from presence_reports.engine.scope import StoreFilter


class SessionStore(Protocol):
    async def load_hierarchy(self) -> Hierarchy:
        ...

    async def fetch_intervals(self, window: Window, store_filter: StoreFilter) -> List[Interval]:
        """Sessões que intersectam a janela: started_at < to_ts e (ended_at nulo ou > from_ts)."""
        ...

    async def fetch_alerts(self, window: Window, store_filter: StoreFilter) -> List[AlertRecord]:
        """Alertas com from_ts <= started_at < to_ts."""
        ...
