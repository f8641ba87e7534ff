"""
Centralised config for tokenstore.

Settings are read from environment variables (and an optional ``.env`` file)
and exposed through a singleton ``settings`` object with typed, validated
access.
"""

import os
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_FILE = Path(__file__).resolve()

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "tokenstore"
DEFAULT_FILE_MODE = 0o600


def _discover_project_root(config_file: Path) -> tuple[Path, Path]:
    """Return a project root and env file path without assuming ``.env`` exists.

    Walks the parents of the config module looking for a ``.env`` file and
    falls back to the repository root (detected via common project markers)
    when there is none, which is the normal case for installed packages and CI.
    """

    parents = list(config_file.parents)

    for parent in parents:
        env_file = parent / ".env"
        if env_file.exists():
            return parent, env_file

    for marker in ("pyproject.toml", ".git"):
        for parent in parents:
            if (parent / marker).exists():
                return parent, parent / ".env"

    fallback_root = parents[1] if len(parents) > 1 else parents[0]
    return fallback_root, fallback_root / ".env"


PROJECT_ROOT, ENV_FILE_PATH = _discover_project_root(CONFIG_FILE)


T = TypeVar("T")

MAX_FILE_MODE = 0o7777


def check_mode_range(mode: int) -> int:
    if not 0 <= mode <= MAX_FILE_MODE:
        raise ValueError(f"file mode {mode:o} is outside the permission bit range 0..7777")
    return mode


def parse_octal_mode(raw: str) -> int:
    """Parse permission bits written in octal (``600``, ``0600`` or ``0o600``)."""
    text = raw.strip().lower()
    if text.startswith("0o"):
        text = text[2:]
    return check_mode_range(int(text, 8))


# Overrides whose string form is not what ``_coerce_type`` would infer.
_ENV_PARSERS: dict[str, Callable[[str], Any]] = {
    "TOKENSTORE_FILE_MODE": parse_octal_mode,
}


class Settings(BaseSettings):
    """
    Centralised and validated tokenstore settings.
    """
    model_config = SettingsConfigDict(
        env_file=ENV_FILE_PATH,
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # --- TOKEN FILES ---
    TOKENSTORE_TOKEN_PATH: Path = DEFAULT_CONFIG_DIR / "token.json"
    TOKENSTORE_CLI_TOKENS_PATH: Path = Path.home() / ".azure" / "accessTokens.json"
    TOKENSTORE_FILE_MODE: int = DEFAULT_FILE_MODE

    # --- LOGGING ---
    TOKENSTORE_LOG_LEVEL: str = "INFO"
    TOKENSTORE_LOG_TO_CONSOLE: bool = True
    TOKENSTORE_LOG_DIR: Optional[Path] = None

    @field_validator("TOKENSTORE_TOKEN_PATH", "TOKENSTORE_CLI_TOKENS_PATH", mode="after")
    @classmethod
    def _expand_user(cls, value: Path) -> Path:
        return value.expanduser()

    @field_validator("TOKENSTORE_FILE_MODE", mode="before")
    @classmethod
    def _parse_octal_mode(cls, value: Any) -> Any:
        """Environment values are permission bits written in octal, e.g. ``0600``."""
        if isinstance(value, str):
            return parse_octal_mode(value)
        return value

    @field_validator("TOKENSTORE_FILE_MODE", mode="after")
    @classmethod
    def _check_mode_range(cls, value: int) -> int:
        return check_mode_range(value)

    # --- DYNAMIC FILE PATHS ---
    @property
    def log_path(self) -> Path:
        """Path for the tokenstore log file.

        Uses ``TOKENSTORE_LOG_DIR`` when configured, otherwise a ``logs``
        directory under the per-user config directory.
        """
        if self.TOKENSTORE_LOG_DIR is not None:
            return Path(self.TOKENSTORE_LOG_DIR).expanduser() / "tokenstore.log"
        return DEFAULT_CONFIG_DIR / "logs" / "tokenstore.log"


# Create a single, importable instance of the settings for the entire application.
settings = Settings()


def _to_bool(raw: str) -> bool:
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _coerce_type(raw: str, template: Any) -> Any:
    if isinstance(template, bool):
        return _to_bool(raw)
    if isinstance(template, int) and not isinstance(template, bool):
        return int(raw)
    if isinstance(template, float):
        return float(raw)
    if isinstance(template, Path):
        return Path(raw)
    return raw


def get_env(
    name: str,
    default: T | None = None,
    *,
    parser: Callable[[str], T] | None = None,
) -> T | Any | None:
    """Return a configuration value resolving environment overrides consistently.

    The resolution order is:

    1. Explicit environment variable overrides at runtime.
    2. Typed values provided by the Pydantic ``settings`` object.
    3. The supplied ``default`` value.

    When an override is read directly from :mod:`os.environ`, ``parser`` (or the
    inferred type from ``settings``) is used to coerce the string into the
    expected type.
    """

    if name in os.environ:
        raw_value = os.environ[name]
        parser = parser or _ENV_PARSERS.get(name)
        if parser is not None:
            return parser(raw_value)
        if hasattr(settings, name):
            template = getattr(settings, name)
            try:
                return _coerce_type(raw_value, template)
            except (TypeError, ValueError):
                return template
        return raw_value

    if hasattr(settings, name):
        return getattr(settings, name)

    return default
