"""
Static configuration for the Arise progression engine.

Purpose
-------
Process-level settings read once from the environment (and a `.env` file
when present): deployment environment, logging, where the content YAML
lives, and whether invariant violations raise.

Non-Responsibilities
--------------------
- Game balance (XP curve, drop rates, floors): see arise.core.content
- Character state: owned and persisted by the host

Environment Variables
---------------------
- ENVIRONMENT            development | testing | staging | production
- DEBUG                  default false
- LOG_LEVEL              default INFO
- LOG_JSON               default: JSON only in production
- LOG_COLORS             default true (only applies on a TTY)
- ARISE_CONTENT_DIR      default: the packaged `arise/content`
- STRICT_INVARIANTS      default: true outside production
- DEFAULT_STARTING_STAT  default 10

Invalid values are logged and replaced by the default; configuration never
stops the engine from starting.
"""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

load_dotenv()

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off"})
_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Environment(Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"

    @classmethod
    def from_string(cls, value: str) -> "Environment":
        """
        Parse an environment name; unknown names mean development.

        >>> Environment.from_string("Production") is Environment.PRODUCTION
        True
        """
        normalized = value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        # Runs before arise logging is configured.
        logging.warning("Unknown ENVIRONMENT %r, using development", value)
        return cls.DEVELOPMENT


class _EnvReader:
    """Reads typed values from os.environ and remembers where each came from."""

    def __init__(self) -> None:
        self.sources: Dict[str, str] = {}
        self.rejected: Dict[str, str] = {}

    def _raw(self, key: str) -> Optional[str]:
        raw = os.environ.get(key)
        self.sources[key] = "default" if raw is None else "environment"
        return raw

    def reject(self, key: str, raw: str, reason: str) -> None:
        self.sources[key] = "default"
        self.rejected[key] = f"{raw!r} {reason}"
        logging.warning("Ignoring %s=%r: %s", key, raw, reason)

    def text(self, key: str, default: str) -> str:
        raw = self._raw(key)
        return default if raw is None else raw

    def flag(self, key: str) -> Optional[bool]:
        raw = self._raw(key)
        if raw is None:
            return None
        normalized = raw.strip().lower()
        if normalized in _TRUTHY:
            return True
        if normalized in _FALSY:
            return False
        self.reject(key, raw, "is not a boolean")
        return None

    def integer(self, key: str, default: int, low: int, high: int) -> int:
        raw = self._raw(key)
        if raw is None:
            return default
        try:
            value = int(raw)
        except ValueError:
            self.reject(key, raw, "is not an integer")
            return default
        if not low <= value <= high:
            self.reject(key, raw, f"is outside [{low}, {high}]")
            return default
        return value

    def summary(self) -> Dict[str, Any]:
        defaults: List[str] = [key for key, source in self.sources.items() if source == "default"]
        return {
            "total_configs": len(self.sources),
            "from_environment": len(self.sources) - len(defaults),
            "from_defaults": len(defaults),
            "validation_errors": len(self.rejected),
            "defaults_used": defaults,
        }


class Config:
    """
    Class-level settings, populated by `Config.load()` at import.

    Tests change os.environ and call `Config.load()` again.
    """

    PACKAGED_CONTENT_DIR = Path(__file__).resolve().parents[2] / "content"

    ENVIRONMENT: str = Environment.DEVELOPMENT.value
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_JSON: Optional[bool] = None
    LOG_COLORS: bool = True
    CONTENT_DIR: Path = PACKAGED_CONTENT_DIR
    STRICT_INVARIANTS: bool = True
    DEFAULT_STARTING_STAT: int = 10

    _reader: Optional[_EnvReader] = None

    @classmethod
    def load(cls) -> None:
        env = _EnvReader()

        cls.ENVIRONMENT = Environment.from_string(env.text("ENVIRONMENT", Environment.DEVELOPMENT.value)).value
        cls.DEBUG = bool(env.flag("DEBUG"))

        level = env.text("LOG_LEVEL", "INFO").strip().upper()
        if level not in _LEVELS:
            env.reject("LOG_LEVEL", level, "is not a logging level")
            level = "INFO"
        cls.LOG_LEVEL = level
        cls.LOG_JSON = env.flag("LOG_JSON")
        colors = env.flag("LOG_COLORS")
        cls.LOG_COLORS = True if colors is None else colors

        content_dir = env.text("ARISE_CONTENT_DIR", "")
        cls.CONTENT_DIR = Path(content_dir).expanduser().resolve() if content_dir else cls.PACKAGED_CONTENT_DIR

        strict = env.flag("STRICT_INVARIANTS")
        cls.STRICT_INVARIANTS = (not cls.is_production()) if strict is None else strict
        cls.DEFAULT_STARTING_STAT = env.integer("DEFAULT_STARTING_STAT", 10, low=0, high=10_000)

        cls._reader = env

    @classmethod
    def is_production(cls) -> bool:
        return cls.ENVIRONMENT == Environment.PRODUCTION.value

    @classmethod
    def is_testing(cls) -> bool:
        return cls.ENVIRONMENT == Environment.TESTING.value

    @classmethod
    def get_config_summary(cls) -> Dict[str, Any]:
        """Effective settings plus where each one came from."""
        return {
            "environment": cls.ENVIRONMENT,
            "debug": cls.DEBUG,
            "log_level": cls.LOG_LEVEL,
            "content_dir": str(cls.CONTENT_DIR),
            "strict_invariants": cls.STRICT_INVARIANTS,
            "default_starting_stat": cls.DEFAULT_STARTING_STAT,
            "load": cls._reader.summary() if cls._reader else {},
        }


Config.load()
