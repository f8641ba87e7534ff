"""Domain-level protocol for persisting OAuth tokens."""

from __future__ import annotations

from typing import Optional, Protocol

from tokenstore.domain.token import Token


class TokenStorage(Protocol):
    """Abstraction for persisting a single OAuth token."""

    def read_tokens(self) -> Optional[Token]:
        """Return the persisted token if available, otherwise ``None``."""

    def save_tokens(self, token: Token) -> bool:
        """Persist the token; ``False`` when permissions could not be applied."""


__all__ = ["TokenStorage"]
