"""Capability checks for privileged fraud operations."""

from collections.abc import Iterable
from enum import StrEnum
from typing import Protocol

from .errors import NotAuthorized


class Role(StrEnum):
    VERIFIER = "verifier"
    ADMIN = "admin"


PRIVILEGED_ROLES: tuple[Role, ...] = (Role.VERIFIER, Role.ADMIN)


class RoleDirectory(Protocol):
    def has_role(self, user_id: str, role: Role) -> bool: ...


class StaticRoleDirectory:
    """Role directory backed by an in-process mapping of user id to roles."""

    def __init__(self, assignments: dict[str, set[Role]] | None = None) -> None:
        self._assignments: dict[str, set[Role]] = {
            user_id: set(roles) for user_id, roles in (assignments or {}).items()
        }

    @classmethod
    def from_lists(
        cls, verifiers: Iterable[str] = (), admins: Iterable[str] = ()
    ) -> "StaticRoleDirectory":
        directory = cls()
        for user_id in verifiers:
            directory.grant(user_id, Role.VERIFIER)
        for user_id in admins:
            directory.grant(user_id, Role.ADMIN)
        return directory

    def grant(self, user_id: str, role: Role) -> None:
        self._assignments.setdefault(user_id, set()).add(role)

    def revoke(self, user_id: str, role: Role) -> None:
        self._assignments.get(user_id, set()).discard(role)

    def has_role(self, user_id: str, role: Role) -> bool:
        return role in self._assignments.get(user_id, set())


def is_privileged(directory: RoleDirectory, user_id: str | None) -> bool:
    if not user_id:
        return False
    return any(directory.has_role(user_id, role) for role in PRIVILEGED_ROLES)


def require_privileged(directory: RoleDirectory, user_id: str | None, operation: str) -> None:
    """Raise NotAuthorized unless ``user_id`` is a verifier or admin."""
    if not is_privileged(directory, user_id):
        raise NotAuthorized(
            f"{user_id or 'anonymous'} may not {operation}: verifier or admin role required"
        )
