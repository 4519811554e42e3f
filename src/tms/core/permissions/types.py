"""Permission identifiers.

A role has two identifiers that must never be interchanged:

- ``RoleId``: the stable role id, embedded in session tokens and checked
  at the API boundary. This is the authorization source of truth.
- ``RoleCode``: the human-readable key (``ver_dashboard``) shown in the
  admin UI and used by handlers to declare what they need.
"""

from dataclasses import dataclass
from typing import NewType
from uuid import UUID


RoleId = NewType("RoleId", str)
RoleCode = NewType("RoleCode", str)

PermissionSet = frozenset[RoleId]


def role_id(value: UUID | str) -> RoleId:
    """Normalize a role primary key into the token representation."""
    return RoleId(str(value))


@dataclass(frozen=True, slots=True)
class RoleRef:
    """A role's id and code, carried together for display."""

    id: RoleId
    code: RoleCode
