from .config import DEFAULT_FILE_MODE, Settings, get_env, parse_octal_mode, settings

__all__ = ["DEFAULT_FILE_MODE", "Settings", "settings", "get_env", "parse_octal_mode"]
