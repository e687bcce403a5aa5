from __future__ import annotations

from typing import Optional, TYPE_CHECKING

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from presence_reports.db.base_class import Base

if TYPE_CHECKING:
    from presence_reports.models.floor_plan import FloorPlan
    from presence_reports.models.floor import Floor


class Device(Base):
    """
    Gateway (ou outro device) visto pelos relatórios.

    O andar vem de floor_id; quando só a planta está preenchida,
    o andar é o da planta (floor_plans.floor_id).
    """

    __tablename__ = "devices"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    floor_plan_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("floor_plans.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    floor_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("floors.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False, default="BLE_GATEWAY")
    mac_address: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        unique=True,
        index=True,
    )

    floor_plan: Mapped[Optional["FloorPlan"]] = relationship(back_populates="devices")
    floor: Mapped[Optional["Floor"]] = relationship("Floor")
