from medcert.application.security.role_matrix import (
    ROLES,
    Permission,
    Role,
    can_edit_candidate_assignment,
    can_manage_regions,
    can_manage_users,
    can_record_module_results,
    can_view_all_regions,
    has_permission,
)

__all__ = [
    "ROLES",
    "Permission",
    "Role",
    "can_edit_candidate_assignment",
    "can_manage_regions",
    "can_manage_users",
    "can_record_module_results",
    "can_view_all_regions",
    "has_permission",
]
