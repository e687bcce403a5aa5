from __future__ import annotations

from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import Boolean, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from presence_reports.db.base_class import Base

if TYPE_CHECKING:
    from presence_reports.models.tag import Tag
    from presence_reports.models.person_group import PersonGroup


class Person(Base):
    __tablename__ = "people"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    document_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("TRUE"))

    tags: Mapped[List["Tag"]] = relationship(back_populates="person")
    groups: Mapped[List["PersonGroup"]] = relationship(
        secondary="person_group_memberships",
        back_populates="people",
    )
