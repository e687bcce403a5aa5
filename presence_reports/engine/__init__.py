# presence_reports/engine/__init__.py
"""
Motor de relatórios de presença: funções puras sobre intervalos já lidos do store.
"""

from presence_reports.engine.alerts import AlertRecord, AlertRollup, rollup_alerts  # noqa: F401
from presence_reports.engine.bucketizer import (  # noqa: F401
    CalendarDimension,
    DayOfWeekDimension,
    FixedWidthDimension,
    HourOfDayDimension,
    bucket_keys,
    occupancy_dimension,
)
from presence_reports.engine.hierarchy import Hierarchy  # noqa: F401
from presence_reports.engine.intervals import Interval, Window, normalize, normalize_all  # noqa: F401
from presence_reports.engine.rollup import RollupCell, bucket_rollup, rollup_by, window_rollup  # noqa: F401
from presence_reports.engine.scope import ResolvedScope, Scope, ScopeKind, ScopeResolver, StoreFilter  # noqa: F401
