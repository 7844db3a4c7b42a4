from __future__ import annotations

from typing import Final, Literal

Role = Literal["admin", "region"]
Permission = Literal[
    "view_all_regions",
    "manage_regions",
    "manage_users",
    "record_module_results",
    "edit_candidate_assignment",
    "edit_candidates",
    "import_candidates",
    "view_statistics",
]

ROLES: Final[tuple[Role, ...]] = ("admin", "region")

_ROLE_PERMISSIONS: Final[dict[Role, frozenset[Permission]]] = {
    "admin": frozenset(
        {
            "view_all_regions",
            "manage_regions",
            "manage_users",
            "record_module_results",
            "edit_candidate_assignment",
            "edit_candidates",
            "import_candidates",
            "view_statistics",
        }
    ),
    "region": frozenset(
        {
            "edit_candidates",
            "import_candidates",
            "view_statistics",
        }
    ),
}


def has_permission(role: Role, permission: Permission) -> bool:
    return permission in _ROLE_PERMISSIONS.get(role, frozenset())


def can_view_all_regions(role: Role) -> bool:
    return has_permission(role, "view_all_regions")


def can_manage_regions(role: Role) -> bool:
    return has_permission(role, "manage_regions")


def can_manage_users(role: Role) -> bool:
    return has_permission(role, "manage_users")


def can_record_module_results(role: Role) -> bool:
    return has_permission(role, "record_module_results")


def can_edit_candidate_assignment(role: Role) -> bool:
    return has_permission(role, "edit_candidate_assignment")
