from __future__ import annotations

from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from presence_reports.db.base_class import Base

if TYPE_CHECKING:
    from presence_reports.models.floor import Floor


class Building(Base):
    __tablename__ = "buildings"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    description: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    floors: Mapped[List["Floor"]] = relationship(back_populates="building")
