"""Exception hierarchy for reading and writing token files."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class TokenStoreError(Exception):
    """Base exception for token file failures.

    Every error carries the offending ``path`` and the underlying ``cause``.
    """

    action = "access token file"

    def __init__(self, path: Path | str, cause: Optional[BaseException] = None) -> None:
        self.path = Path(path)
        self.cause = cause
        super().__init__(self._describe())

    def _describe(self) -> str:
        message = f"failed to {self.action} ({self.path})"
        if self.cause is not None:
            message = f"{message}: {self.cause}"
        return message


class TokenReadError(TokenStoreError):
    """Raised when a token file cannot be loaded."""


class OpenError(TokenReadError):
    action = "open token file"


class DecodeError(TokenReadError):
    action = "decode token file"


class TokenWriteError(TokenStoreError):
    """Raised when a token could not be published; the target is unchanged."""


class DirectoryCreateError(TokenWriteError):
    action = "create token directory"


class TempFileCreateError(TokenWriteError):
    action = "create temporary token file in directory"


class _TempFileError(TokenWriteError):
    """Failure on the temp file; ``path`` is the temp file, ``target`` the destination."""

    def __init__(
        self,
        path: Path | str,
        cause: Optional[BaseException] = None,
        *,
        target: Path | str | None = None,
    ) -> None:
        self.target = Path(target) if target is not None else None
        super().__init__(path, cause)


class EncodeError(_TempFileError):
    """Writing or syncing the temp file failed.

    When closing the temp file also failed afterwards, that error is kept in
    ``close_error``.
    """

    action = "encode token into temporary file"
    close_error: Optional[OSError] = None


class CloseError(_TempFileError):
    action = "close temporary token file"


class PublishError(TokenWriteError):
    """The rename onto the target failed; the temp file is left in place."""

    action = "move temporary token into place"

    def __init__(
        self,
        path: Path | str,
        cause: Optional[BaseException] = None,
        *,
        temp_path: Path | str,
    ) -> None:
        self.temp_path = Path(temp_path)
        super().__init__(path, cause)

    def _describe(self) -> str:
        message = f"failed to {self.action}: src={self.temp_path} dst={self.path}"
        if self.cause is not None:
            message = f"{message}: {self.cause}"
        return message


class FilePermissionError(TokenStoreError):
    """The token was published but its permission bits could not be applied.

    Not a :class:`TokenWriteError`: the new content is already in place.
    """

    action = "chmod token file"
    published = True

    def __init__(
        self,
        path: Path | str,
        cause: Optional[BaseException] = None,
        *,
        mode: int,
    ) -> None:
        self.mode = mode
        super().__init__(path, cause)

    def _describe(self) -> str:
        message = f"failed to {self.action} ({self.path}) to {self.mode:04o}"
        if self.cause is not None:
            message = f"{message}: {self.cause}"
        return message


__all__ = [
    "TokenStoreError",
    "TokenReadError",
    "OpenError",
    "DecodeError",
    "TokenWriteError",
    "DirectoryCreateError",
    "TempFileCreateError",
    "EncodeError",
    "CloseError",
    "PublishError",
    "FilePermissionError",
]
