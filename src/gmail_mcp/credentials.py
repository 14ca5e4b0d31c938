from __future__ import annotations


class CredentialCell:
    """Holds the single bearer token of one session.

    Passive store: no expiry, refresh or revocation. Only the ``authenticate``
    tool writes it; the proxy client reads it.
    """

    def __init__(self, token: str | None = None) -> None:
        self._token = token or None

    def set(self, token: str) -> str:
        self._token = token
        return "Authentication successful! You can now use Gmail tools."

    def get(self) -> str | None:
        return self._token

    @property
    def is_set(self) -> bool:
        return self._token is not None

    def __repr__(self) -> str:
        state = "set" if self.is_set else "empty"
        return f"CredentialCell({state})"
