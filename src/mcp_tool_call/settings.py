# Copyright (c) 2025 Airbyte, Inc., all rights reserved.
"""Runtime settings resolved from environment variables.

Settings are not command-line flags: every flag that the CLI does not
recognize belongs to the server command line, so tuning knobs travel through the
environment instead.

Environment Variables:
    MCP_CALL_LOG_LEVEL: Level for diagnostics on stderr (default: INFO)
    MCP_CALL_TIMEOUT: Request timeout in seconds (default: none)

Every lookup takes an explicit environment mapping so callers (and tests) control
exactly which variables are visible.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from mcp_tool_call.errors import UsageError

ENV_LOG_LEVEL = "MCP_CALL_LOG_LEVEL"
ENV_REQUEST_TIMEOUT = "MCP_CALL_TIMEOUT"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class SettingArg:
    """Description of a single environment-backed setting.

    Attributes:
        name: Unique name of the setting.
        env_var: Environment variable that supplies the value.
        default: Value used when the variable is unset or empty.
        normalize_fn: Optional function converting the raw string into the final
            value. It may raise `ValueError` for invalid input; the message is
            reported as a usage error naming the variable.
    """

    name: str
    env_var: str
    default: Any = None
    normalize_fn: Callable[[str], Any] | None = None


def _normalize_log_level(value: str) -> str:
    level = value.strip().upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"expected one of {', '.join(_LOG_LEVELS)}")
    return level


def _normalize_timeout(value: str) -> float:
    seconds = float(value)
    if seconds <= 0:
        raise ValueError("must be a positive number of seconds")
    return seconds


LOG_LEVEL_SETTING = SettingArg(
    name="log_level",
    env_var=ENV_LOG_LEVEL,
    default="INFO",
    normalize_fn=_normalize_log_level,
)
REQUEST_TIMEOUT_SETTING = SettingArg(
    name="request_timeout",
    env_var=ENV_REQUEST_TIMEOUT,
    default=None,
    normalize_fn=_normalize_timeout,
)


def resolve_setting(setting: SettingArg, environ: Mapping[str, str]) -> Any:
    """Resolve one setting from the given environment.

    Args:
        setting: The setting to resolve.
        environ: Environment mapping to read from.

    Returns:
        The normalized value, or the setting's default when unset.

    Raises:
        UsageError: If the variable is set to a value the normalizer rejects.
    """
    raw = environ.get(setting.env_var)
    if not raw:
        return setting.default
    if setting.normalize_fn is None:
        return raw
    try:
        return setting.normalize_fn(raw)
    except ValueError as ex:
        raise UsageError(f"Invalid value for {setting.env_var}={raw!r}: {ex}") from ex


@dataclass(frozen=True)
class CliSettings:
    """Settings that tune a single CLI run."""

    log_level: str = "INFO"
    request_timeout: float | None = None

    @classmethod
    def from_environ(cls, environ: Mapping[str, str]) -> CliSettings:
        """Create settings from an environment mapping."""
        return cls(
            log_level=resolve_setting(LOG_LEVEL_SETTING, environ),
            request_timeout=resolve_setting(REQUEST_TIMEOUT_SETTING, environ),
        )


def configure_logging(log_level: str) -> None:
    """Send diagnostics to stderr; stdout is reserved for the tool result."""
    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


__all__ = [
    "ENV_LOG_LEVEL",
    "ENV_REQUEST_TIMEOUT",
    "CliSettings",
    "SettingArg",
    "configure_logging",
    "resolve_setting",
]
