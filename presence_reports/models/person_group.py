from __future__ import annotations

from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import Column, ForeignKey, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from presence_reports.db.base_class import Base

if TYPE_CHECKING:
    from presence_reports.models.person import Person


person_group_memberships = Table(
    "person_group_memberships",
    Base.metadata,
    Column("person_id", ForeignKey("people.id", ondelete="CASCADE"), primary_key=True),
    Column("group_id", ForeignKey("person_groups.id", ondelete="CASCADE"), primary_key=True),
)


class PersonGroup(Base):
    __tablename__ = "person_groups"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    people: Mapped[List["Person"]] = relationship(
        "Person",
        secondary=person_group_memberships,
        back_populates="groups",
    )
