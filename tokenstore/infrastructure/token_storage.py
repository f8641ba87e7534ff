"""Infrastructure implementations of token persistence."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional, Union

from tokenstore.config import DEFAULT_FILE_MODE
from tokenstore.domain.exceptions import FilePermissionError, TokenStoreError
from tokenstore.domain.token import Token
from tokenstore.domain.token_storage import TokenStorage
from tokenstore.infrastructure import persist
from tokenstore.infrastructure.log_utils import log_message

LOG_TAG = "STORE"


class JsonFileTokenStorage(TokenStorage):
    """Persist a token to a JSON file on disk using atomic replacement."""

    def __init__(self, path: Path | str, mode: int = DEFAULT_FILE_MODE) -> None:
        self._path = Path(path)
        self._mode = mode

    @property
    def path(self) -> Path:
        return self._path

    def read_tokens(self) -> Optional[Token]:
        if not self._path.exists():
            return None
        try:
            return persist.load_token(self._path)
        except TokenStoreError as exc:
            log_message(f"Failed to read token from {self._path}: {exc}", "ERROR", tag=LOG_TAG)
            raise

    def save_tokens(self, token: Union[Token, Mapping[str, object]]) -> bool:
        try:
            persist.save_token(self._path, self._mode, token)
        except FilePermissionError as exc:
            log_message(f"Token saved but could not set permissions on {self._path}: {exc.cause}", "WARN", tag=LOG_TAG)
            return False
        except TokenStoreError as exc:
            log_message(f"Failed to save token to {self._path}: {exc}", "ERROR", tag=LOG_TAG)
            raise
        log_message(f"Token saved to {self._path}", "DEBUG", tag=LOG_TAG)
        return True


__all__ = ["JsonFileTokenStorage"]
