"""
User model with role assignments and location grants.
"""

from uuid import UUID, uuid4
from sqlalchemy import String, Boolean, ForeignKey, Table, Column, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin
from .location import State, Lga, Ward
from .role import Role


user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", Uuid, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
)

# Direct location grants. Composite primary keys keep each grant unique.
user_state_grants = Table(
    "user_state_grants",
    Base.metadata,
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("state_id", Integer, ForeignKey("states.id", ondelete="CASCADE"), primary_key=True),
)

user_lga_grants = Table(
    "user_lga_grants",
    Base.metadata,
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("lga_id", Integer, ForeignKey("lgas.id", ondelete="CASCADE"), primary_key=True),
)

user_ward_grants = Table(
    "user_ward_grants",
    Base.metadata,
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("ward_id", Integer, ForeignKey("wards.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base, TimestampMixin):
    """User account model."""

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Everything authorization reads is loaded with the user
    roles: Mapped[list[Role]] = relationship(
        Role,
        secondary=user_roles,
        lazy="selectin",
    )
    state_grants: Mapped[list[State]] = relationship(
        State,
        secondary=user_state_grants,
        lazy="selectin",
    )
    lga_grants: Mapped[list[Lga]] = relationship(
        Lga,
        secondary=user_lga_grants,
        lazy="selectin",
    )
    ward_grants: Mapped[list[Ward]] = relationship(
        Ward,
        secondary=user_ward_grants,
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<User {self.email}>"
