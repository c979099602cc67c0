"""Configuration management for org-grep."""

import logging
import math
import re
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError

PUBLIC_HOST = "github.com"
PUBLIC_API_URL = "https://api.github.com/"

# Finer than DEBUG; registered with the logging module by the CLI
TRACE = 5

LOG_LEVELS: Dict[str, int] = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
}

_LOG_LEVEL_ALIASES = {"warning": "warn"}

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_duration(value: Any) -> float:
    """Parse a duration such as ``5s``, ``250ms`` or ``1m30s`` into seconds.

    Bare numbers are taken as seconds.

    Raises:
        ValueError: If the value is not a valid, finite duration
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return _finite(float(value), value)

    text = str(value).strip()
    if not text:
        raise ValueError("empty duration")

    try:
        seconds = float(text)
    except ValueError:
        seconds = _sum_units(text)
    return _finite(seconds, text)


def _sum_units(text: str) -> float:
    total = 0.0
    position = 0
    for part in _DURATION_PART.finditer(text):
        if part.start() != position:
            break
        total += float(part.group(1)) * _DURATION_UNITS[part.group(2)]
        position = part.end()

    if position != len(text) or position == 0:
        raise ValueError(f"invalid duration {text!r}")
    return total


def _finite(seconds: float, value: Any) -> float:
    if not math.isfinite(seconds):
        raise ValueError(f"duration {value!r} is not finite")
    return seconds


class SearchConfig(BaseModel):
    """Immutable run configuration built once from the command line."""

    model_config = ConfigDict(frozen=True)

    patterns: Tuple[str, ...] = Field(
        ..., description="Pattern arguments, joined into a single expression"
    )
    pattern_separator: str = Field(
        default=" ", description="Separator used to join pattern arguments"
    )
    log_level: str = Field(default="info", description="Logging level name")
    host: str = Field(default=PUBLIC_HOST, description="GitHub host to use")
    organization: str = Field(
        default="",
        description="Organization or user to list; empty means the authenticated user",
    )
    http_timeout: float = Field(
        default=5.0, description="Timeout for HTTP requests in seconds"
    )
    delimiter: str = Field(default=",", description="Output field delimiter")
    include_binary: bool = Field(
        default=False, description="Also search files that look binary"
    )

    @field_validator("patterns", mode="before")
    @classmethod
    def validate_patterns(cls, v: Any) -> Tuple[str, ...]:
        """Require at least one pattern argument."""
        if v is None or isinstance(v, str):
            v = () if not v else (v,)
        patterns = tuple(v)
        if not patterns:
            raise ValueError("no patterns passed")
        return patterns

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: Any) -> str:
        """Normalize the log level name and reject unknown ones."""
        name = str(v).strip().lower()
        name = _LOG_LEVEL_ALIASES.get(name, name)
        if name not in LOG_LEVELS:
            choices = ", ".join(LOG_LEVELS)
            raise ValueError(f"can not parse log level {v!r} (expected one of {choices})")
        return name

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        """Reject empty hosts and drop trailing slashes."""
        host = v.strip().rstrip("/")
        if not host:
            raise ValueError("host must not be empty")
        return host

    @field_validator("http_timeout", mode="before")
    @classmethod
    def validate_http_timeout(cls, v: Any) -> float:
        """Accept durations like ``5s`` and require a positive value."""
        seconds = parse_duration(v)
        if seconds <= 0:
            raise ValueError("http timeout must be positive")
        return seconds

    @field_validator("delimiter")
    @classmethod
    def validate_delimiter(cls, v: str) -> str:
        """Require a single character that can not break record framing."""
        if len(v) != 1 or v in ('"', "\r", "\n"):
            raise ValueError(f"invalid delimiter {v!r}")
        return v

    @classmethod
    def from_options(cls, **options: Any) -> "SearchConfig":
        """Build a configuration, converting validation failures to ConfigError."""
        try:
            return cls(**options)
        except ValidationError as e:
            error = e.errors()[0]
            message = str(error.get("msg", e))
            if message.startswith("Value error, "):
                message = message[len("Value error, ") :]
            field = ".".join(str(part) for part in error.get("loc", ()))
            raise ConfigError(message, f"option {field}" if field else None) from e

    @property
    def pattern_source(self) -> str:
        """The single regular expression built from the pattern arguments."""
        return self.pattern_separator.join(self.patterns)

    @property
    def logging_level(self) -> int:
        """Numeric level for the stdlib logging module."""
        return LOG_LEVELS[self.log_level]

    @property
    def is_public_host(self) -> bool:
        return self.host == PUBLIC_HOST

    def compile_pattern(self) -> "re.Pattern[str]":
        """Compile the search pattern once for the whole run.

        Raises:
            ConfigError: If the pattern is not a valid regular expression
        """
        source = self.pattern_source
        try:
            return re.compile(source)
        except re.error as e:
            raise ConfigError(f"can not parse {source!r}", str(e)) from e

    def api_base_url(self, protocol: Optional[str] = None) -> str:
        """REST API base URL for the configured host.

        The public host uses api.github.com; any other host is treated as
        GitHub Enterprise and served under ``/api/v3/``.
        """
        if self.is_public_host:
            return PUBLIC_API_URL

        protocol = protocol or "https"
        host = self.host
        if not host.startswith(protocol):
            host = f"{protocol}://{host}"
        return f"{host}/api/v3/"
