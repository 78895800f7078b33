"""Role permission table and the permission check used by every mutating service.

The table is closed: a role name outside :class:`RoleName` has no permissions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Permission, RoleName
from ..core.exceptions import PermissionDenied
from ..users.model import User

_VIEW_ONLY = frozenset({Permission.VIEW_ROSTER})

ROLE_PERMISSIONS: dict[RoleName, frozenset[Permission]] = {
    RoleName.STORE_MANAGER: frozenset(Permission),
    RoleName.SHIFT_IN_CHARGE: frozenset(
        {
            Permission.VIEW_OWN_STAFF,
            Permission.CRUD_USER,
            Permission.ASSIGN_SHIFT,
            Permission.CREATE_ROSTER,
            Permission.MODIFY_ROSTER,
            Permission.ASSIGN_TASK,
            Permission.VIEW_ROSTER,
            Permission.EXPORT_ROSTER,
            Permission.MANAGE_AD_HOC_PP,
        }
    ),
    RoleName.INVENTORY_EXECUTIVE: frozenset(
        {
            Permission.VIEW_ROSTER,
            Permission.ASSIGN_TASK,
            Permission.VIEW_REPORTS,
            Permission.CRUD_USER,
        }
    ),
    RoleName.DISPATCHER: _VIEW_ONLY,
    RoleName.PICKER_PACKER_WAREHOUSE: _VIEW_ONLY,
    RoleName.PICKER_PACKER_AD_HOC: _VIEW_ONLY,
}


@dataclass(frozen=True)
class PermissionCheckResult:
    allowed: bool
    reason: Optional[str] = None
    required_permission: Optional[Permission] = None


def _role_of(actor: User) -> Optional[RoleName]:
    try:
        return RoleName(actor.role_name) if actor.role_name else None
    except ValueError:
        return None


def can_perform_action(actor: User, permission: Permission) -> PermissionCheckResult:
    role = _role_of(actor)
    if role is None:
        return PermissionCheckResult(
            allowed=False, reason="User role not found", required_permission=permission
        )

    if permission in ROLE_PERMISSIONS[role]:
        return PermissionCheckResult(allowed=True)

    return PermissionCheckResult(
        allowed=False,
        reason=f'Role "{role.value}" does not have permission "{permission.value}"',
        required_permission=permission,
    )


class PermissionService:
    """Raises :class:`PermissionDenied` with the check's reason on denial."""

    def check(self, actor: User, permission: Permission) -> PermissionCheckResult:
        return can_perform_action(actor, permission)

    def require(self, actor: User, permission: Permission) -> None:
        result = self.check(actor, permission)
        if not result.allowed:
            raise PermissionDenied(
                result.reason or "You do not have permission to perform this action",
                details={"requiredPermission": permission.value},
            )
