"""Import every ORM model so ``Base.metadata`` is complete.

Used by the app factory, Alembic and the test suite.
"""

from tms.core.audit.models import AuditLog
from tms.core.database import Base
from tms.modules.catalogs.models import ActionType, ProfileType, TenantType, UserStatus, UserType
from tms.modules.profiles.models import Profile, ProfileRole
from tms.modules.roles.models import Role
from tms.modules.tenants.models import Tenant
from tms.modules.users.models import User


__all__ = [
    "ActionType",
    "AuditLog",
    "Base",
    "Profile",
    "ProfileRole",
    "ProfileType",
    "Role",
    "Tenant",
    "TenantType",
    "User",
    "UserStatus",
    "UserType",
]
