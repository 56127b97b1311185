# Copyright (c) 2025 Airbyte, Inc., all rights reserved.
"""Preparation of the stdio transport for the MCP server process.

The launcher resolves which executable actually runs, builds the server
environment, and hands both to FastMCP's `StdioTransport`. The process itself is
spawned when the transport connects; its stdin/stdout carry protocol traffic and
its stderr is passed through to our stderr.

Environment precedence (later layers win):

1. The ambient environment of this process.
2. Protocol defaults (the variables MCP clients always forward, such as `PATH`).
3. Out-of-band overrides from `MCP_CALL_ENV_VARS`.
4. The invocation's own overrides (`--env` flags or the server profile).
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path

from fastmcp.client.transports import StdioTransport
from mcp.client.stdio import DEFAULT_INHERITED_ENV_VARS

from mcp_tool_call.descriptor import InvocationDescriptor
from mcp_tool_call.errors import LaunchError
from mcp_tool_call.out_of_band import load_out_of_band_env

logger = logging.getLogger(__name__)

LAUNCHER_PREFIX = b"#!"
_LAUNCHER_LINE_LIMIT = 1024
_WINDOWS_EXECUTABLE_SUFFIXES = (".exe", ".com", ".bat", ".cmd")


def protocol_default_environment(ambient: Mapping[str, str]) -> dict[str, str]:
    """Return the default variables an MCP stdio client forwards to servers."""
    return {
        key: ambient[key]
        for key in DEFAULT_INHERITED_ENV_VARS
        # Exported shell functions are not forwarded.
        if key in ambient and not ambient[key].startswith("()")
    }


def build_server_environment(
    ambient: Mapping[str, str],
    *,
    out_of_band: Mapping[str, str] | None = None,
    overrides: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Merge the environment layers for the server process.

    Args:
        ambient: Environment of the current process.
        out_of_band: Overrides passed by a parent process via `MCP_CALL_ENV_VARS`.
        overrides: Overrides from the invocation descriptor.

    Returns:
        The complete environment for the child process.
    """
    server_env = dict(ambient)
    server_env.update(protocol_default_environment(ambient))
    if out_of_band:
        server_env.update(out_of_band)
    if overrides:
        server_env.update(overrides)
    return server_env


def _which(command: str, environ: Mapping[str, str]) -> str | None:
    search_path = environ.get("PATH", os.defpath)
    return shutil.which(command, path=search_path) or shutil.which(
        command, mode=os.F_OK, path=search_path
    )


def _can_execute_directly(path: str) -> bool:
    if sys.platform == "win32":
        return path.lower().endswith(_WINDOWS_EXECUTABLE_SUFFIXES)
    return os.access(path, os.X_OK)


def _read_launcher_line(path: str) -> list[str] | None:
    """Return the interpreter command of a `#!` script, or None for other files."""
    try:
        with open(path, "rb") as f:
            first_line = f.readline(_LAUNCHER_LINE_LIMIT)
    except OSError as ex:
        raise LaunchError(f"Cannot read server command {path}: {ex}") from ex

    if not first_line.startswith(LAUNCHER_PREFIX):
        return None

    tokens = shlex.split(first_line[len(LAUNCHER_PREFIX) :].decode("utf-8", "replace"))
    if tokens and Path(tokens[0]).name == "env":
        tokens = tokens[1:]
        if tokens and tokens[0] == "-S":
            tokens = tokens[1:]
    return tokens or None


def find_actual_executable(
    command: str,
    args: Sequence[str],
    *,
    environ: Mapping[str, str],
) -> tuple[str, list[str]]:
    """Resolve the program that has to be spawned for `command`.

    Commands are looked up on the `PATH` of `environ`. A script that cannot be
    executed directly but starts with a `#!` line is run through its interpreter,
    with the script path inserted before the original arguments.

    Args:
        command: Server command as given by the user or the profile.
        args: Server arguments.
        environ: Environment used for the `PATH` lookup.

    Returns:
        Tuple of (executable, arguments) to spawn.

    Raises:
        LaunchError: If the command cannot be found or cannot be executed.
    """
    path = _which(command, environ)
    if path is None:
        raise LaunchError(f"Server command not found: {command}")

    if _can_execute_directly(path):
        return path, list(args)

    launcher = _read_launcher_line(path)
    if launcher is None:
        raise LaunchError(f"Permission denied: server command {path} is not executable")

    interpreter, *interpreter_args = launcher
    interpreter_path = _which(interpreter, environ)
    if interpreter_path is None:
        raise LaunchError(f"Interpreter '{interpreter}' for server command {path} not found")

    logger.debug("Running %s through its interpreter %s", path, interpreter_path)
    return interpreter_path, [*interpreter_args, path, *args]


def launch_transport(
    descriptor: InvocationDescriptor,
    *,
    environ: Mapping[str, str],
    cwd: str | Path | None = None,
) -> StdioTransport:
    """Create the stdio transport that will spawn the MCP server.

    Args:
        descriptor: The resolved invocation.
        environ: Ambient environment of this process.
        cwd: Working directory of the server process.

    Returns:
        A transport whose process is started on connect and stopped on close.

    Raises:
        LaunchError: If the server executable cannot be resolved.
        UsageError: If `MCP_CALL_ENV_VARS` is malformed.
    """
    command, args = find_actual_executable(
        descriptor.server_command,
        descriptor.server_args,
        environ=environ,
    )
    server_env = build_server_environment(
        environ,
        out_of_band=load_out_of_band_env(environ),
        overrides=descriptor.env_overrides,
    )

    logger.info("Launching MCP server: %s", shlex.join([command, *args]))
    return StdioTransport(
        command=command,
        args=args,
        env=server_env,
        cwd=str(cwd) if cwd is not None else None,
        keep_alive=False,
    )


__all__ = [
    "build_server_environment",
    "find_actual_executable",
    "launch_transport",
    "protocol_default_environment",
]
