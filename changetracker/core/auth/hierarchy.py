"""
Hierarchy resolver - walks up the State -> LGA -> Ward tree.

Parents are plain foreign-key dereferences over eagerly loaded
relationships. A missing parent means referential integrity was broken
upstream: it is logged and raised, never defaulted to allow or deny.
"""

from typing import Any

import structlog

from changetracker.core.exceptions import IntegrityViolationError
from changetracker.core.permissions import LocationKind

logger = structlog.get_logger()


# Relationship holding each level's parent
PARENT_ATTRIBUTES: dict[LocationKind, str] = {
    LocationKind.LGA: "state",
    LocationKind.WARD: "lga",
}


class HierarchyResolver:
    """Parent lookups for locations."""

    def parent_of(self, location: Any) -> Any | None:
        """
        Parent of a location: LGA -> State, Ward -> LGA, State -> None.

        Raises:
            IntegrityViolationError: If the parent is missing
        """
        kind: LocationKind = location.location_kind
        parent_kind = kind.parent
        if parent_kind is None:
            return None

        parent = getattr(location, PARENT_ATTRIBUTES[kind], None)
        if parent is None:
            logger.error(
                "hierarchy.missing_parent",
                kind=kind.value,
                location_id=location.id,
                parent_kind=parent_kind.value,
            )
            raise IntegrityViolationError(kind.value, location.id, parent_kind.value)
        return parent

    def grandparent_of(self, ward: Any) -> Any:
        """State of a Ward (two lookups)."""
        return self.parent_of(self.parent_of(ward))
