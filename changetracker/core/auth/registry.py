"""
Permission registry.

Maps every PermissionName to the rule that evaluates it. The registry is
filled once during application startup and then frozen; after that it
is a read-only mapping that concurrent requests can share without
locking.

Usage:
    registry = build_default_registry()
    rule = registry.get("manage_lga_records")
    rule.evaluate(user, lga)

    # Custom registries (tests, tooling):
    registry = PermissionRegistry()
    registry.register(SimpleRule(PermissionName.MANAGE_USERS, store)).freeze()
"""

from types import MappingProxyType
from typing import Iterator, Mapping

import structlog

from changetracker.core.exceptions import DuplicatePermissionError, UnknownPermissionError
from changetracker.core.permissions import LocationKind, PermissionName
from changetracker.models.record import Record, ProjectOutlook

from .grants import GrantStore
from .hierarchy import HierarchyResolver
from .rules import PermissionRule, SimpleRule, HierarchicalRule, LocatedResourceRule

logger = structlog.get_logger()


# ============================================================
# DECLARATIVE PERMISSION TABLE
# ============================================================

SIMPLE_PERMISSIONS: tuple[PermissionName, ...] = (
    PermissionName.MANAGE_USERS,
    PermissionName.MANAGE_ROLES,
    PermissionName.CREATE_RECORDS,
    PermissionName.VIEW_PROJECT_OUTLOOKS,
    PermissionName.CREATE_PROJECT_OUTLOOKS,
    PermissionName.IS_ADMIN,
)

HIERARCHICAL_PERMISSIONS: dict[PermissionName, LocationKind] = {
    PermissionName.MANAGE_STATE_RECORDS: LocationKind.STATE,
    PermissionName.MANAGE_LGA_RECORDS: LocationKind.LGA,
    PermissionName.MANAGE_WARD_RECORDS: LocationKind.WARD,
}

LOCATED_PERMISSIONS: dict[PermissionName, type] = {
    PermissionName.VIEW_RECORDS: Record,
    PermissionName.EDIT_RECORDS: Record,
    PermissionName.DELETE_RECORDS: Record,
    PermissionName.EDIT_PROJECT_OUTLOOKS: ProjectOutlook,
    PermissionName.DELETE_PROJECT_OUTLOOKS: ProjectOutlook,
}


# ============================================================
# REGISTRY
# ============================================================

class PermissionRegistry:
    """
    Permission name -> rule table.

    register() refuses duplicates so that two features can never silently
    claim the same permission name; freeze() ends the registration phase.
    """

    def __init__(self) -> None:
        self._rules: dict[PermissionName, PermissionRule] = {}
        self._frozen: Mapping[PermissionName, PermissionRule] | None = None

    def register(self, rule: PermissionRule) -> "PermissionRegistry":
        """
        Add a rule.

        Raises:
            DuplicatePermissionError: If the permission already has a rule
            RuntimeError: If the registry is frozen
        """
        if self._frozen is not None:
            raise RuntimeError("Permission registry is frozen")
        if rule.permission in self._rules:
            raise DuplicatePermissionError(rule.permission.value)

        self._rules[rule.permission] = rule
        return self

    def freeze(self) -> "PermissionRegistry":
        """Make the registry read-only."""
        if self._frozen is None:
            self._frozen = MappingProxyType(dict(self._rules))
        return self

    @property
    def is_frozen(self) -> bool:
        return self._frozen is not None

    @property
    def rules(self) -> Mapping[PermissionName, PermissionRule]:
        if self._frozen is not None:
            return self._frozen
        return MappingProxyType(self._rules)

    def get(self, permission: "str | PermissionName") -> PermissionRule:
        """
        Look up the rule for a permission.

        Raises:
            UnknownPermissionError: If the name is not in the vocabulary or
                has no registered rule
        """
        name = PermissionName.parse(permission)
        rule = self.rules.get(name)
        if rule is None:
            raise UnknownPermissionError(name.value)
        return rule

    def names(self) -> list[str]:
        """List registered permission names."""
        return [name.value for name in self.rules]

    def __contains__(self, permission: object) -> bool:
        try:
            self.get(permission)  # type: ignore[arg-type]
        except UnknownPermissionError:
            return False
        return True

    def __iter__(self) -> Iterator[PermissionName]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)


def build_default_registry(
    store: GrantStore | None = None,
    resolver: HierarchyResolver | None = None,
) -> PermissionRegistry:
    """Build and freeze the registry for the full permission vocabulary."""
    store = store or GrantStore()
    resolver = resolver or HierarchyResolver()
    registry = PermissionRegistry()

    for permission in SIMPLE_PERMISSIONS:
        registry.register(SimpleRule(permission, store))

    for permission, kind in HIERARCHICAL_PERMISSIONS.items():
        registry.register(HierarchicalRule(permission, kind, store, resolver))

    for permission, model in LOCATED_PERMISSIONS.items():
        registry.register(LocatedResourceRule(permission, model, store))

    registry.freeze()

    missing = set(PermissionName) - set(registry)
    if missing:
        logger.warning(
            "permission_registry.unregistered",
            permissions=sorted(name.value for name in missing),
        )

    logger.info("permission_registry.ready", count=len(registry))
    return registry
