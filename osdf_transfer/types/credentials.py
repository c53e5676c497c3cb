"""Credential data models."""

import time
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ScopeEntry:
    """One ``action:path-prefix`` grant parsed from a token scope string."""

    action: str  # e.g. "storage.read", "storage.create", "storage.modify"
    path_prefix: str

    @classmethod
    def parse(cls, scope: str) -> "ScopeEntry | None":
        """Split on the first ``:``. Returns None for scopes without one."""
        action, sep, path_prefix = scope.partition(":")
        if not sep:
            return None
        return cls(action=action, path_prefix=path_prefix)

    def authorizes(self, actions: tuple[str, ...], path: str) -> bool:
        """Plain string prefix match; not path-segment aware."""
        return self.action in actions and path.startswith(self.path_prefix)


@dataclass(frozen=True)
class Credential:
    """A scoped bearer token as written by the credential manager."""

    access_token: str
    token_type: str
    expires_in: float
    expires_at: float
    scope: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Credential":
        """
        Build a credential from its JSON form.

        ``scope`` may be a list of strings or a single space-separated string.

        Raises:
            KeyError: If a required field is missing
            TypeError, ValueError: If a field has the wrong type
        """
        scope = data["scope"]
        if isinstance(scope, str):
            scope = scope.split()
        if not isinstance(scope, list) or not all(isinstance(s, str) for s in scope):
            raise TypeError("scope must be a list of strings")
        access_token = data["access_token"]
        if not isinstance(access_token, str):
            raise TypeError("access_token must be a string")

        return cls(
            access_token=access_token,
            token_type=str(data["token_type"]),
            expires_in=float(data["expires_in"]),
            expires_at=float(data["expires_at"]),
            scope=tuple(scope),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "access_token": self.access_token,
            "token_type": self.token_type,
            "expires_in": self.expires_in,
            "expires_at": self.expires_at,
            "scope": list(self.scope),
        }

    def scopes(self) -> list[ScopeEntry]:
        """Parsed scope entries in stored order, skipping unparseable ones."""
        entries = []
        for raw in self.scope:
            entry = ScopeEntry.parse(raw)
            if entry is not None:
                entries.append(entry)
        return entries

    def is_expired(self, now: float | None = None) -> bool:
        if now is None:
            now = time.time()
        return self.expires_at <= now

    def __repr__(self) -> str:
        # Keep the token out of tracebacks and debug output
        return (
            f"Credential(token_type={self.token_type!r}, expires_at={self.expires_at!r}, "
            f"scope={self.scope!r})"
        )
