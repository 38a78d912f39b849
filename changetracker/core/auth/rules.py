"""
Permission rules.

A rule answers "is this permission granted to this user, optionally for
this resource?". Three shapes exist:

- SimpleRule: role-derived permission only; any resource is ignored.
- HierarchicalRule: permission plus a location grant at the resource's
  level or any level above it (State grant covers its LGAs and Wards).
- LocatedResourceRule: permission plus State/LGA access on the
  state_id/lga_id of a record-like row; other resources are ignored.

Rules are built once by build_default_registry() and never mutated.
"""

from abc import ABC, abstractmethod
from typing import Any

from changetracker.core.permissions import LocationKind, PermissionName
from changetracker.models.user import User

from .grants import GrantStore
from .hierarchy import HierarchyResolver


def has_scoped_access(
    store: GrantStore,
    resolver: HierarchyResolver,
    user: User,
    location: Any,
) -> bool:
    """
    Direct-or-inherited access to a location.

    Checks the location's own level first, then walks up one parent at a
    time. Parents are only resolved when the lower level did not match.
    """
    kind: LocationKind | None = location.location_kind
    while kind is not None:
        if store.has_direct_grant(user, kind, location.id):
            return True
        if kind.parent is None:
            return False
        location = resolver.parent_of(location)
        kind = kind.parent
    return False


class PermissionRule(ABC):
    """Evaluation rule for one permission name."""

    def __init__(self, permission: PermissionName, store: GrantStore):
        self.permission = permission
        self.store = store

    def has_basic_permission(self, user: User) -> bool:
        """Does any of the user's roles carry this permission?"""
        return self.store.has_permission(user, self.permission)

    @abstractmethod
    def evaluate(self, user: User, resource: Any | None = None) -> bool:
        """Return True if the permission is granted."""
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.permission.value}>"


class SimpleRule(PermissionRule):
    """Flat permission gate. The resource, if any, is ignored."""

    def evaluate(self, user: User, resource: Any | None = None) -> bool:
        return self.has_basic_permission(user)


class HierarchicalRule(PermissionRule):
    """
    Permission scoped to one location level.

    Without a resource this is the basic feature gate. With one, the
    resource must be a location of the rule's level and the user must
    hold a grant on it or on one of its ancestors.
    """

    def __init__(
        self,
        permission: PermissionName,
        kind: LocationKind,
        store: GrantStore,
        resolver: HierarchyResolver,
    ):
        super().__init__(permission, store)
        self.kind = kind
        self.resolver = resolver

    def evaluate(self, user: User, resource: Any | None = None) -> bool:
        if not self.has_basic_permission(user):
            return False

        if resource is None:
            return True

        if getattr(resource, "location_kind", None) is not self.kind:
            return False

        return has_scoped_access(self.store, self.resolver, user, resource)


class LocatedResourceRule(PermissionRule):
    """
    Permission on rows located by state_id/lga_id.

    Without a resource this is the basic feature gate. A resource of the
    rule's model additionally needs State access on its state_id or LGA
    access on its lga_id. Any other resource is ignored, as for a
    SimpleRule.
    """

    def __init__(
        self,
        permission: PermissionName,
        model: type,
        store: GrantStore,
    ):
        super().__init__(permission, store)
        self.model = model

    def evaluate(self, user: User, resource: Any | None = None) -> bool:
        if not self.has_basic_permission(user):
            return False

        if resource is None or not isinstance(resource, self.model):
            return True

        return self.store.has_state_or_lga_grant(user, resource.state_id, resource.lga_id)
