from .building import Building  # noqa: F401
from .floor import Floor  # noqa: F401
from .floor_plan import FloorPlan  # noqa: F401
from .device import Device  # noqa: F401
from .person import Person  # noqa: F401
from .tag import Tag  # noqa: F401
from .person_group import PersonGroup, person_group_memberships  # noqa: F401
from .presence_session import PresenceSession  # noqa: F401
from .alert_event import AlertEvent  # noqa: F401
