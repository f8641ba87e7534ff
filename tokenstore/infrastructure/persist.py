"""Load and atomically save token files.

``save_token`` never writes the target in place. The token is written to a
temporary file created next to the target and then renamed over it, so any
process opening the target sees either the previous content or the new one
in full. The temporary file must live in the target's directory: a rename is
only atomic within a single filesystem.

A failed write can leave a ``token*`` temporary file behind in the target
directory. It is not removed. If both writing and closing the temporary file
fail, the :class:`EncodeError` is raised and carries the close failure as
``close_error``.

Nothing here logs or retries; every failure is raised as a
:class:`~tokenstore.domain.exceptions.TokenStoreError` subclass.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import IO, List, Mapping, Union

from pydantic import TypeAdapter, ValidationError

from tokenstore.domain.exceptions import (
    CloseError,
    DecodeError,
    DirectoryCreateError,
    EncodeError,
    FilePermissionError,
    OpenError,
    PublishError,
    TempFileCreateError,
)
from tokenstore.domain.token import CLIToken, Token

TEMP_FILE_PREFIX = "token"

_CLI_TOKEN_LIST = TypeAdapter(List[CLIToken])

PathLike = Union[str, "os.PathLike[str]"]


def _read_text(path: Path) -> str:
    try:
        handle = path.open("r", encoding="utf-8")
    except OSError as exc:
        raise OpenError(path, exc) from exc
    with handle:
        try:
            return handle.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise DecodeError(path, exc) from exc


def load_token(path: PathLike) -> Token:
    """Restore a :class:`Token` from the JSON file at ``path``."""
    source = Path(path)
    text = _read_text(source)
    try:
        return Token.model_validate_json(text)
    except ValidationError as exc:
        raise DecodeError(source, exc) from exc


def load_cli_tokens(path: PathLike) -> List[CLIToken]:
    """Restore the list of CLI cache entries stored at ``path``.

    An empty JSON array is a valid, empty result.
    """
    source = Path(path)
    text = _read_text(source)
    try:
        return _CLI_TOKEN_LIST.validate_json(text)
    except ValidationError as exc:
        raise DecodeError(source, exc) from exc


def _write_token(
    handle: IO[str],
    token: Union[Token, Mapping[str, object]],
    temp_path: Path,
    target: Path,
) -> None:
    try:
        record = token if isinstance(token, Token) else Token.model_validate(token)
        handle.write(record.model_dump_json())
        handle.write("\n")
        handle.flush()
        os.fsync(handle.fileno())
    except (OSError, ValueError, TypeError) as exc:
        raise EncodeError(temp_path, exc, target=target) from exc


def save_token(
    path: PathLike,
    mode: int,
    token: Union[Token, Mapping[str, object]],
) -> Path:
    """Persist ``token`` at ``path`` and apply ``mode`` to the published file.

    Missing parent directories are created. A mapping is validated into a
    :class:`Token` first.

    Raises a :class:`~tokenstore.domain.exceptions.TokenWriteError` subclass
    when nothing was published. :class:`FilePermissionError` means the token
    *was* published and only the chmod failed.
    """
    target = Path(path)
    directory = target.parent

    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise DirectoryCreateError(directory, exc) from exc

    try:
        fd, temp_name = tempfile.mkstemp(prefix=TEMP_FILE_PREFIX, dir=directory)
    except OSError as exc:
        raise TempFileCreateError(directory, exc) from exc
    temp_path = Path(temp_name)

    handle = os.fdopen(fd, "w", encoding="utf-8")
    try:
        _write_token(handle, token, temp_path, target)
    except EncodeError as exc:
        try:
            handle.close()
        except OSError as close_exc:
            exc.close_error = close_exc
        raise
    except BaseException:
        handle.close()
        raise

    try:
        handle.close()
    except OSError as exc:
        raise CloseError(temp_path, exc, target=target) from exc

    try:
        os.replace(temp_path, target)
    except OSError as exc:
        raise PublishError(target, exc, temp_path=temp_path) from exc

    try:
        os.chmod(target, mode)
    except OSError as exc:
        raise FilePermissionError(target, exc, mode=mode) from exc

    return target


__all__ = ["TEMP_FILE_PREFIX", "load_cli_tokens", "load_token", "save_token"]
