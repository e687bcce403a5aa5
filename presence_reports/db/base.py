from presence_reports.db.base_class import Base  # noqa

from presence_reports.models.building import Building  # noqa
from presence_reports.models.floor import Floor  # noqa
from presence_reports.models.floor_plan import FloorPlan  # noqa
from presence_reports.models.device import Device  # noqa
from presence_reports.models.person import Person  # noqa
from presence_reports.models.tag import Tag  # noqa
from presence_reports.models.person_group import PersonGroup, person_group_memberships  # noqa
from presence_reports.models.presence_session import PresenceSession  # noqa
from presence_reports.models.alert_event import AlertEvent  # noqa

__all__ = [
    "Base",
    "Building",
    "Floor",
    "FloorPlan",
    "Device",
    "Person",
    "Tag",
    "PersonGroup",
    "person_group_memberships",
    "PresenceSession",
    "AlertEvent",
]
