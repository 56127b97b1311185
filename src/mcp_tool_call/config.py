# Copyright (c) 2025 Airbyte, Inc., all rights reserved.
"""Server profiles loaded from an `mcpServers` configuration document.

The document format is shared with other MCP clients::

    {
      "mcpServers": {
        "my-server": {
          "command": "node",
          "args": ["build/index.js"],
          "env": {"API_KEY": "..."}
        }
      }
    }

A profile is read fresh from disk each time `resolve_server_profile` is called and
is never written back.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from mcp_tool_call.errors import (
    ConfigError,
    ConfigNotFoundError,
    ConfigParseError,
    InvalidProfileError,
    ProfileNotFoundError,
)

logger = logging.getLogger(__name__)

MCP_SERVERS_KEY = "mcpServers"


@dataclass(frozen=True)
class ServerProfile:
    """Connection parameters for one named MCP server."""

    command: str
    args: tuple[str, ...] = ()
    env: Mapping[str, str] = field(default_factory=dict)


def _profile_from_dict(server_name: str, raw: Any) -> ServerProfile:
    """Validate the shape of a raw profile entry."""
    if not isinstance(raw, dict):
        raise InvalidProfileError(f"Server '{server_name}' must be a JSON object")

    command = raw.get("command")
    if not isinstance(command, str):
        raise InvalidProfileError(
            f"Server '{server_name}' must define 'command' as a string"
        )

    args = raw.get("args") or []
    if not isinstance(args, list) or not all(isinstance(arg, str) for arg in args):
        raise InvalidProfileError(
            f"Server '{server_name}' must define 'args' as a list of strings"
        )

    env = raw.get("env") or {}
    if not isinstance(env, dict) or not all(
        isinstance(key, str) and isinstance(value, str) for key, value in env.items()
    ):
        raise InvalidProfileError(
            f"Server '{server_name}' must define 'env' as an object of strings"
        )

    return ServerProfile(command=command, args=tuple(args), env=dict(env))


def resolve_server_profile(
    config_path: str | Path,
    server_name: str,
    *,
    cwd: str | Path | None = None,
) -> ServerProfile:
    """Load the profile named `server_name` from a configuration file.

    Args:
        config_path: Path to the JSON document; relative paths are resolved
            against `cwd`.
        server_name: Key under `mcpServers` to select.
        cwd: Base directory for relative paths (defaults to the process cwd).

    Returns:
        The selected profile, with `args` and `env` defaulted to empty.

    Raises:
        ConfigNotFoundError: If the file does not exist.
        ConfigParseError: If the file is not valid UTF-8 encoded JSON.
        ConfigError: If the file cannot be read.
        ProfileNotFoundError: If `mcpServers` is missing or lacks `server_name`.
        InvalidProfileError: If the profile fields have the wrong types.
    """
    path = Path(config_path)
    if not path.is_absolute():
        base = Path(cwd) if cwd is not None else Path.cwd()
        path = (base / path).resolve()

    if not path.is_file():
        raise ConfigNotFoundError(path)

    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as ex:
        raise ConfigParseError(path, str(ex)) from ex
    except OSError as ex:
        raise ConfigError(
            f"Cannot read config file {path}: {ex}",
            details={"path": str(path)},
        ) from ex

    servers = document.get(MCP_SERVERS_KEY) if isinstance(document, dict) else None
    if not isinstance(servers, dict):
        servers = {}

    if server_name not in servers:
        raise ProfileNotFoundError(server_name, path, list(servers))

    profile = _profile_from_dict(server_name, servers[server_name])
    logger.info("Using server configuration '%s' from %s", server_name, path)
    return profile


__all__ = ["MCP_SERVERS_KEY", "ServerProfile", "resolve_server_profile"]
