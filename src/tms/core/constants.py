"""Application-wide constants.

This module defines constants used throughout the application
to avoid magic numbers and ensure consistency.
"""

# String field lengths
MAX_EMAIL_LENGTH = 255
MAX_NAME_LENGTH = 255
MAX_TAX_ID_LENGTH = 32
MAX_CODE_LENGTH = 100
MAX_MODULE_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 255
MAX_EXTERNAL_SUBJECT_LENGTH = 255
MAX_LOOKUP_CODE_LENGTH = 50

# Password requirements
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 72  # bcrypt only uses the first 72 bytes
MIN_BCRYPT_ROUNDS = 10

# Token settings
TOKEN_JTI_LENGTH = 16
ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"
ALLOWED_SESSION_ALGORITHMS = frozenset({"HS256", "HS384", "HS512"})
ALLOWED_EXTERNAL_ALGORITHMS = frozenset(
    {"RS256", "RS384", "RS512", "PS256", "PS384", "PS512", "ES256", "ES384", "ES512"}
)

# Key set fetch budget window
JWKS_RATE_WINDOW_SECONDS = 60

# Secret key requirements
MIN_SECRET_KEY_LENGTH = 32

# Lookup codes
USER_STATUS_ACTIVE = "ACTIVO"
USER_STATUS_INACTIVE = "INACTIVO"
USER_TYPE_DEFAULT = "ESTANDAR"
TENANT_TYPE_ADMIN = "ADMIN"
PROFILE_TYPE_ADMIN = "ADMINISTRADOR"

# Permission codes
PERM_VIEW_DASHBOARD = "ver_dashboard"
PERM_CREATE_ORDERS = "crear_ordenes"
PERM_EDIT_PROFILE = "editar_perfil"
PERM_MANAGE_USERS = "gestionar_usuarios"
PERM_MANAGE_PROFILES = "gestionar_perfiles"
PERM_MANAGE_ROLES = "gestionar_roles"

# (code, name, module, action type) granted to a freshly provisioned profile
STARTER_ROLES: tuple[tuple[str, str, str, str], ...] = (
    (PERM_VIEW_DASHBOARD, "Ver Dashboard", "dashboard", "VER"),
    (PERM_CREATE_ORDERS, "Crear Órdenes", "ordenes", "CREAR"),
    (PERM_EDIT_PROFILE, "Editar Perfil", "usuarios", "EDITAR"),
    (PERM_MANAGE_USERS, "Gestionar Usuarios", "usuarios", "ADMINISTRAR"),
    (PERM_MANAGE_PROFILES, "Gestionar Perfiles", "perfiles", "ADMINISTRAR"),
    (PERM_MANAGE_ROLES, "Gestionar Roles", "roles", "ADMINISTRAR"),
)
