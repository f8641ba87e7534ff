"""Application service for reusing persisted tokens."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Mapping, Optional, Union

from tokenstore.config import settings
from tokenstore.domain.exceptions import OpenError
from tokenstore.domain.token import DEFAULT_REFRESH_WINDOW, CLIToken, Token
from tokenstore.domain.token_storage import TokenStorage
from tokenstore.infrastructure import persist
from tokenstore.infrastructure.log_utils import log_message
from tokenstore.infrastructure.token_storage import JsonFileTokenStorage

LOG_TAG = "AUTH"


class TokenService:
    """Looks up a reusable token before a caller falls back to re-authenticating.

    The persisted token file is consulted first; a CLI-managed token cache is
    used as a fallback and a matching entry found there is persisted for the
    next process.
    """

    def __init__(
        self,
        *,
        token_storage: Optional[TokenStorage] = None,
        cli_tokens_path: Optional[Path | str] = None,
        refresh_window: timedelta = DEFAULT_REFRESH_WINDOW,
    ) -> None:
        self._token_storage: TokenStorage = token_storage or JsonFileTokenStorage(
            settings.TOKENSTORE_TOKEN_PATH,
            mode=settings.TOKENSTORE_FILE_MODE,
        )
        self._cli_tokens_path = Path(cli_tokens_path or settings.TOKENSTORE_CLI_TOKENS_PATH)
        self._refresh_window = refresh_window

    def get_token(self) -> Optional[Token]:
        return self._token_storage.read_tokens()

    def store(self, token: Union[Token, Mapping[str, object]], *, now: Optional[datetime] = None) -> Token:
        """Persist ``token``, stamping ``expires_on`` from ``expires_in`` when missing."""

        record = token if isinstance(token, Token) else Token.model_validate(token)
        if record.expires_on is None and record.expires_in is not None:
            issued = now or datetime.now(timezone.utc)
            record = record.model_copy(update={"expires_on": int(issued.timestamp()) + record.expires_in})

        if not self._token_storage.save_tokens(record):
            log_message("Token persisted with degraded file permissions.", "WARN", tag=LOG_TAG)
        return record

    def load_cli_tokens(self) -> List[CLIToken]:
        """Entries of the CLI token cache; empty when the cache file does not exist."""
        try:
            return persist.load_cli_tokens(self._cli_tokens_path)
        except OpenError as exc:
            if isinstance(exc.cause, FileNotFoundError):
                return []
            raise

    def find_cli_token(self, resource: str, *, now: Optional[datetime] = None) -> Optional[Token]:
        """Return the newest CLI cache entry for ``resource`` outside the refresh window."""

        for entry in reversed(self.load_cli_tokens()):
            if entry.resource != resource:
                continue
            if entry.will_expire_in(self._refresh_window, now=now):
                continue
            return entry.to_token()
        return None

    def _is_reusable(self, token: Token, resource: Optional[str], now: Optional[datetime]) -> bool:
        if resource is not None and token.resource != resource:
            return False
        return not token.will_expire_in(self._refresh_window, now=now)

    def resolve(self, resource: Optional[str] = None, *, now: Optional[datetime] = None) -> Optional[Token]:
        """Return a token that can be reused right now, or ``None``.

        ``None`` tells the caller to run its own authentication flow.
        """

        stored = self.get_token()
        if stored is not None and self._is_reusable(stored, resource, now):
            log_message("Reusing persisted token.", "DEBUG", tag=LOG_TAG)
            return stored

        if resource is None:
            log_message("No reusable persisted token and no resource to look up.", "INFO", tag=LOG_TAG)
            return None

        cli_token = self.find_cli_token(resource, now=now)
        if cli_token is None:
            log_message(f"No usable CLI token cached for {resource}.", "INFO", tag=LOG_TAG)
            return None

        log_message(f"Using CLI cached token for {resource}.", "INFO", tag=LOG_TAG)
        self.store(cli_token, now=now)
        return cli_token


__all__ = ["TokenService"]
