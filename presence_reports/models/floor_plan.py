from __future__ import annotations

from typing import List, TYPE_CHECKING

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from presence_reports.db.base_class import Base

if TYPE_CHECKING:
    from presence_reports.models.floor import Floor
    from presence_reports.models.device import Device


class FloorPlan(Base):
    __tablename__ = "floor_plans"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    floor_id: Mapped[int] = mapped_column(
        ForeignKey("floors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    floor: Mapped["Floor"] = relationship(back_populates="floor_plans")
    devices: Mapped[List["Device"]] = relationship(back_populates="floor_plan")
