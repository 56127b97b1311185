# Copyright (c) 2025 Airbyte, Inc., all rights reserved.
"""Error types for a single MCP tool call.

Every failure the CLI can report is an `McpCallError`. Components raise these and
the top-level dispatcher in `mcp_tool_call.cli` is the only place that turns them
into a diagnostic message and an exit code.

Taxonomy
--------
- `UsageError`: invalid or missing command-line flags (detected before spawning).
- `ConfigError`: the configuration file or the selected server profile is unusable.
- `LaunchError`: the server executable could not be started.
- `TransportError`: the server died before the handshake or in the middle of the call.
- `ProtocolError`: the server answered with a protocol-level error response.
- `RemoteToolError`: the tool itself reported a failure.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


class McpCallError(Exception):
    """Base class for all errors raised while resolving or executing a tool call."""

    category = "error"

    def __init__(
        self,
        message: str,
        *,
        code: int | None = None,
        details: Any = None,
    ) -> None:
        """Create an error with an optional protocol error code and details."""
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly description of the error."""
        return {
            "type": self.category,
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }


class UsageError(McpCallError):
    """Invalid combination of command-line flags or out-of-band values."""

    category = "usage"


class ConfigError(McpCallError):
    """The configuration document or server profile could not be used."""

    category = "config"


class ConfigNotFoundError(ConfigError):
    """The configuration file does not exist."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Config file not found: {path}", details={"path": str(path)})
        self.path = path


class ConfigParseError(ConfigError):
    """The configuration file is not valid JSON."""

    def __init__(self, path: Path, diagnostic: str) -> None:
        super().__init__(
            f"Invalid JSON in config file {path}: {diagnostic}",
            details={"path": str(path)},
        )
        self.path = path
        self.diagnostic = diagnostic


class ProfileNotFoundError(ConfigError):
    """The requested server profile is absent from the configuration document."""

    def __init__(self, server_name: str, path: Path, available: list[str]) -> None:
        super().__init__(
            f"Server '{server_name}' not found in config file {path}. "
            f"Available servers: {json.dumps(available)}",
            details={"server": server_name, "available": available},
        )
        self.server_name = server_name
        self.available = available


class InvalidProfileError(ConfigError):
    """The server profile exists but has fields of the wrong shape."""


class LaunchError(McpCallError):
    """The MCP server process could not be started."""

    category = "launch"


class TransportError(McpCallError):
    """The stdio channel to the server failed (early exit or disconnect)."""

    category = "transport"


class ProtocolError(McpCallError):
    """The server answered the request with a protocol-level error."""

    category = "protocol"


class RemoteToolError(McpCallError):
    """The server executed the tool and reported that it failed."""

    category = "tool"


__all__ = [
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigParseError",
    "InvalidProfileError",
    "LaunchError",
    "McpCallError",
    "ProfileNotFoundError",
    "ProtocolError",
    "RemoteToolError",
    "TransportError",
    "UsageError",
]
