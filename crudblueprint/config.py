"""Environment configuration loaded from ``.env`` files and the process environment."""

from __future__ import annotations

import logging
import os
import re
from collections.abc import MutableMapping

logger = logging.getLogger(__name__)

_WHITESPACE = " \t\r\n"
_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1

_TRUE_WORDS = frozenset({"true", "1", "yes"})
_FALSE_WORDS = frozenset({"false", "0", "no"})

_ENGINE_ALIASES = {
    "postgres": "postgresql",
    "pg": "postgresql",
    "mysql": "mysql",
    "mariadb": "mysql",
    "sqlite": "sqlite3",
    "sqlite3": "sqlite3",
}

_DEFAULT_PORTS = {"postgresql": 5432, "mysql": 3306}


def parse_env_line(line: str) -> tuple[str, str] | None:
    """Parse one ``KEY=VALUE`` line; return ``None`` for blanks, comments and malformed lines."""
    line = line.strip(_WHITESPACE)
    if not line or line.startswith("#"):
        return None

    key, sep, value = line.partition("=")
    if not sep:
        return None

    key = key.rstrip(" \t")
    if not key:
        return None

    value = value.lstrip(" \t")

    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        value = value[1:-1]

    comment_pos = value.find(" #")
    if comment_pos != -1:
        value = value[:comment_pos]
        trimmed = value.rstrip(" \t")
        if trimmed:
            value = trimmed

    return key, value


def normalize_engine(engine: str) -> str:
    """Map database engine aliases to their canonical names; unknown names pass through."""
    return _ENGINE_ALIASES.get(engine, engine)


class EnvConfig:
    """Typed access to environment variables, optionally seeded from a ``.env`` file."""

    def __init__(self, environ: MutableMapping[str, str] | None = None) -> None:
        self._environ = os.environ if environ is None else environ
        self._loaded = False

    def load(self, filepath: str | os.PathLike[str] = ".env") -> None:
        """Load a ``.env`` file once; existing variables are never overridden."""
        if self._loaded:
            return
        try:
            with open(filepath, encoding="utf-8") as handle:
                for raw in handle:
                    parsed = parse_env_line(raw)
                    if parsed is not None:
                        key, value = parsed
                        self._environ.setdefault(key, value)
        except OSError:
            logger.warning(
                "Could not open %s, using system environment variables only.",
                filepath,
            )
        self._loaded = True

    def get(self, key: str, default: str = "") -> str:
        return self._environ.get(key, default)

    def get_int(self, key: str, default: int = 0) -> int:
        """Return the leading integer of the value, or ``default`` if absent or unparseable."""
        raw = self._environ.get(key)
        if raw is None:
            return default
        match = _INT_PREFIX.match(raw)
        if match is None:
            return default
        number = int(match.group(1))
        if not _INT_MIN <= number <= _INT_MAX:
            return default
        return number

    def get_bool(self, key: str, default: bool = False) -> bool:
        raw = self._environ.get(key)
        if raw is None:
            return default
        word = raw.lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        return default

    def get_list(self, key: str, delimiter: str = ",") -> list[str]:
        """Split the value on ``delimiter``, trimming items and dropping empty ones."""
        raw = self.get(key)
        if not raw:
            return []
        items = (item.strip(" \t") for item in raw.split(delimiter))
        return [item for item in items if item]

    def has(self, key: str) -> bool:
        return key in self._environ

    def db_rdbms(self) -> str:
        """The canonical RDBMS name derived from ``DB_ENGINE``."""
        return normalize_engine(self.get("DB_ENGINE", "postgresql"))

    def db_default_port(self) -> int:
        """The default port for the configured engine; 0 when it has none."""
        return _DEFAULT_PORTS.get(self.db_rdbms(), 0)