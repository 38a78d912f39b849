"""
Location scope provider - filters list queries by the user's grants.

Admins see everything. Everyone else sees rows whose state_id is in
their State grants or whose lga_id is in their LGA grants. A user with
no grants sees nothing.

Usage:
    provider = LocationScopeProvider(engine)
    query = provider.scoped(user, select(Record), Record)
"""

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Select, select, or_, false
from sqlalchemy.orm import selectinload

from changetracker.core.permissions import LocationKind
from changetracker.models.location import State, Lga
from changetracker.models.user import User

from .engine import AuthorizationEngine


@dataclass
class DataScope:
    """
    Boundaries of what data a user can access.

    Examples:
        DataScope.global_access()  # No restrictions
        DataScope(level="location", filters={"state_id": [5], "lga_id": [9]})
    """
    level: str  # "global" or "location"
    filters: dict[str, list[Any]] = field(default_factory=dict)

    @classmethod
    def global_access(cls) -> "DataScope":
        """No data restrictions."""
        return cls(level="global", filters={})

    @property
    def is_global(self) -> bool:
        return self.level == "global"


class LocationScopeProvider:
    """Builds and applies location scopes."""

    def __init__(self, engine: AuthorizationEngine):
        self.engine = engine
        self.store = engine.store

    def get_scope(self, user: User) -> DataScope:
        """Get the data scope for a user."""
        if self.engine.is_admin(user):
            return DataScope.global_access()

        return DataScope(
            level="location",
            filters={
                "state_id": sorted(self.store.grant_ids(user, LocationKind.STATE)),
                "lga_id": sorted(self.store.grant_ids(user, LocationKind.LGA)),
            },
        )

    def apply_to_query(self, query: Select, scope: DataScope, model: type) -> Select:
        """
        Apply a scope to a SQLAlchemy query.

        Location filters are OR-ed: matching either the state or the LGA
        grants is enough.
        """
        if scope.is_global:
            return query

        conditions = [
            getattr(model, field_name).in_(ids)
            for field_name, ids in scope.filters.items()
            if ids and hasattr(model, field_name)
        ]
        if not conditions:
            return query.where(false())

        return query.where(or_(*conditions))

    def scoped(self, user: User, query: Select, model: type) -> Select:
        """Convenience: get_scope + apply_to_query."""
        return self.apply_to_query(query, self.get_scope(user), model)

    def accessible_states_query(self, user: User) -> Select:
        """States reachable through a State grant or a grant on one of its LGAs."""
        query = select(State).options(selectinload(State.lgas)).order_by(State.name)
        if self.engine.is_admin(user):
            return query

        state_ids = sorted(self.store.grant_ids(user, LocationKind.STATE))
        lga_ids = sorted(self.store.grant_ids(user, LocationKind.LGA))
        if not state_ids and not lga_ids:
            return query.where(false())

        return query.where(
            or_(
                State.id.in_(state_ids),
                State.id.in_(select(Lga.state_id).where(Lga.id.in_(lga_ids))),
            )
        )
