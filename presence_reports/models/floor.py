from __future__ import annotations

from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from presence_reports.db.base_class import Base

if TYPE_CHECKING:
    from presence_reports.models.building import Building
    from presence_reports.models.floor_plan import FloorPlan


class Floor(Base):
    __tablename__ = "floors"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    building_id: Mapped[int] = mapped_column(
        ForeignKey("buildings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    level: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    building: Mapped["Building"] = relationship(back_populates="floors")
    floor_plans: Mapped[List["FloorPlan"]] = relationship(back_populates="floor")
