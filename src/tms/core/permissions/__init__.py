"""Role-based permissions.

Role ids are the unit of authorization; codes are for display and for
routes to declare what they need.
"""

from tms.core.permissions.types import PermissionSet, RoleCode, RoleId, RoleRef, role_id


__all__ = ["PermissionSet", "RoleCode", "RoleId", "RoleRef", "role_id"]
