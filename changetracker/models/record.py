"""
Record and ProjectOutlook models.

Both are located by state_id/lga_id; those two columns are what the
record and outlook permission checks read.
"""

from typing import Any
from sqlalchemy import Integer, Float, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class Record(Base, TimestampMixin):
    """Yearly change data captured for a location."""

    __tablename__ = "records"
    __table_args__ = (
        UniqueConstraint("state_id", "lga_id", "ward_id", "year", name="uq_record_location_year"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    state_id: Mapped[int] = mapped_column(ForeignKey("states.id"), nullable=False, index=True)
    lga_id: Mapped[int] = mapped_column(ForeignKey("lgas.id"), nullable=False, index=True)
    ward_id: Mapped[int | None] = mapped_column(ForeignKey("wards.id"), nullable=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

    def __repr__(self) -> str:
        return f"<Record {self.id} state={self.state_id} lga={self.lga_id} year={self.year}>"


class ProjectOutlook(Base, TimestampMixin):
    """Yearly target for an LGA."""

    __tablename__ = "project_outlooks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    state_id: Mapped[int] = mapped_column(ForeignKey("states.id"), nullable=False, index=True)
    lga_id: Mapped[int] = mapped_column(ForeignKey("lgas.id"), nullable=False, index=True)
    outlook: Mapped[float] = mapped_column(Float, nullable=False)
    project_year: Mapped[int] = mapped_column(Integer, nullable=False)

    def __repr__(self) -> str:
        return f"<ProjectOutlook {self.id} lga={self.lga_id} year={self.project_year}>"
