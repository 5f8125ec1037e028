"""
Session context: who is calling, with which role level and permissions.

SessionContext is an immutable value built from a freshly resolved
UserCompleteInformation. SessionStore holds the current context for a
long-lived client and changes it only through login() and logout().
"""
import threading
from dataclasses import dataclass, field
from typing import Optional

from app.features.access.resolver import highest_role_level
from app.features.access.schemas import UserCompleteInformation
from app.features.roles.models import RoleLevel


@dataclass(frozen=True)
class SessionContext:
    user_id: Optional[str] = None
    email: Optional[str] = None
    role_level: Optional[RoleLevel] = None
    permissions: frozenset[str] = field(default_factory=frozenset)
    token: Optional[str] = field(default=None, repr=False)

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @classmethod
    def anonymous(cls) -> "SessionContext":
        return cls()

    @classmethod
    def from_user_information(
        cls, info: UserCompleteInformation, token: Optional[str] = None
    ) -> "SessionContext":
        return cls(
            user_id=info.profile.id,
            email=str(info.profile.email),
            role_level=highest_role_level(info),
            permissions=frozenset(info.common_permissions),
            token=token,
        )


class SessionStore:
    """
    Holder of the current session for a client.

    Both mutators replace the whole context; readers always see either the
    previous or the next value, never a mix.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._current = SessionContext.anonymous()

    @property
    def current(self) -> SessionContext:
        return self._current

    @property
    def token(self) -> Optional[str]:
        return self._current.token

    def login(self, token: str, info: UserCompleteInformation) -> SessionContext:
        """Install a session for `token`. Refreshing is a login with the same token."""
        context = SessionContext.from_user_information(info, token=token)
        with self._lock:
            self._current = context
        return context

    def logout(self) -> SessionContext:
        with self._lock:
            self._current = SessionContext.anonymous()
        return self._current
