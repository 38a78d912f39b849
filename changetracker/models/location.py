"""
Location models: State -> LGA -> Ward.

Parents are loaded eagerly (selectin) so that a loaded Ward already
carries its LGA and that LGA's State. Authorization walks this chain
synchronously and never triggers lazy loads. A State's LGAs are only
loaded on request, with selectinload(State.lgas).
"""

from decimal import Decimal
from typing import ClassVar
from sqlalchemy import String, Integer, Numeric, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from changetracker.core.permissions import LocationKind

from .base import Base, TimestampMixin


class State(Base, TimestampMixin):
    """Top level of the location tree."""

    __tablename__ = "states"

    location_kind: ClassVar[LocationKind] = LocationKind.STATE

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    status: Mapped[str | None] = mapped_column(String(50), nullable=True)

    lgas: Mapped[list["Lga"]] = relationship(
        "Lga",
        back_populates="state",
        lazy="raise",
        order_by="Lga.name",
    )

    def __repr__(self) -> str:
        return f"<State {self.id} {self.name}>"


class Lga(Base, TimestampMixin):
    """Local Government Area, always inside exactly one State."""

    __tablename__ = "lgas"

    location_kind: ClassVar[LocationKind] = LocationKind.LGA

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    state_id: Mapped[int] = mapped_column(
        ForeignKey("states.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    longitude: Mapped[Decimal | None] = mapped_column(Numeric(10, 7), nullable=True)
    latitude: Mapped[Decimal | None] = mapped_column(Numeric(10, 7), nullable=True)

    state: Mapped[State | None] = relationship(
        "State",
        back_populates="lgas",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Lga {self.id} {self.name}>"


class Ward(Base, TimestampMixin):
    """Ward, always inside exactly one LGA."""

    __tablename__ = "wards"

    location_kind: ClassVar[LocationKind] = LocationKind.WARD

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    lga_id: Mapped[int] = mapped_column(
        ForeignKey("lgas.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    lga: Mapped[Lga | None] = relationship("Lga", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Ward {self.id} {self.name}>"


LOCATION_MODELS: dict[LocationKind, type[Base]] = {
    LocationKind.STATE: State,
    LocationKind.LGA: Lga,
    LocationKind.WARD: Ward,
}
