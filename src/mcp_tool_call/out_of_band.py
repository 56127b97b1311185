# Copyright (c) 2025 Airbyte, Inc., all rights reserved.
"""Invocation values supplied through environment variables.

When `mcp-tool-call` is started by another program that has already resolved the
invocation, re-escaping everything onto a command line is fragile. The launcher
can instead leave the command line empty and set either one structured variable:

    MCP_CALL_INVOCATION: JSON object with `command`, `args`, `env`, `toolName`
        and `toolArgs`

or the individual variables:

    MCP_CALL_TOOL_NAME: tool to call
    MCP_CALL_TOOL_ARGS: JSON object of tool arguments
    MCP_CALL_COMMAND: server command
    MCP_CALL_COMMAND_ARGS: server arguments, space separated (shell quoting applies)
    MCP_CALL_ENV_VARS: JSON object of environment overrides

`MCP_CALL_ENV_VARS` is also layered into every server environment, whichever
channel supplied the invocation.
"""

from __future__ import annotations

import json
import shlex
from collections.abc import Mapping
from typing import Any

from mcp_tool_call.descriptor import ParsedArguments
from mcp_tool_call.errors import UsageError

ENV_INVOCATION = "MCP_CALL_INVOCATION"
ENV_TOOL_NAME = "MCP_CALL_TOOL_NAME"
ENV_TOOL_ARGS = "MCP_CALL_TOOL_ARGS"
ENV_COMMAND = "MCP_CALL_COMMAND"
ENV_COMMAND_ARGS = "MCP_CALL_COMMAND_ARGS"
ENV_ENV_VARS = "MCP_CALL_ENV_VARS"


def _load_json(environ: Mapping[str, str], name: str) -> Any:
    raw = environ.get(name)
    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as ex:
        raise UsageError(f"Invalid JSON in {name}: {ex}") from ex


def _require_object(value: Any, name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise UsageError(f"{name} must be a JSON object")
    return value


def _require_string_map(value: Any, name: str) -> dict[str, str]:
    mapping = _require_object(value, name)
    if not all(isinstance(item, str) for item in mapping.values()):
        raise UsageError(f"{name} must map names to string values")
    return mapping


def load_out_of_band_env(environ: Mapping[str, str]) -> dict[str, str]:
    """Return the environment overrides passed in `MCP_CALL_ENV_VARS`."""
    return _require_string_map(_load_json(environ, ENV_ENV_VARS), ENV_ENV_VARS)


def has_out_of_band_invocation(environ: Mapping[str, str]) -> bool:
    """Whether the environment carries an invocation."""
    return bool(environ.get(ENV_INVOCATION) or environ.get(ENV_TOOL_NAME))


def parsed_arguments_from_environ(environ: Mapping[str, str]) -> ParsedArguments:
    """Read invocation values from the environment.

    The result feeds `build_invocation_descriptor` exactly like parsed command-line
    flags do, so both channels are validated the same way.

    Raises:
        UsageError: If a variable holds malformed JSON or values of the wrong type.
    """
    payload = _load_json(environ, ENV_INVOCATION)
    if payload is not None:
        payload = _require_object(payload, ENV_INVOCATION)
        command = payload.get("command") or ""
        args = payload.get("args") or []
        tool_name = payload.get("toolName") or None
        if (
            not isinstance(command, str)
            or not isinstance(args, list)
            or not all(isinstance(arg, str) for arg in args)
            or not isinstance(tool_name, (str, type(None)))
        ):
            raise UsageError(
                f"{ENV_INVOCATION} must hold 'command' and 'toolName' as strings "
                "and 'args' as a list of strings"
            )
        return ParsedArguments(
            positionals=[command, *args] if command else [],
            env=_require_string_map(payload.get("env"), f"{ENV_INVOCATION}.env"),
            tool_name=tool_name,
            tool_args=_require_object(payload.get("toolArgs"), f"{ENV_INVOCATION}.toolArgs"),
        )

    command = environ.get(ENV_COMMAND, "")
    args = shlex.split(environ.get(ENV_COMMAND_ARGS, ""))
    return ParsedArguments(
        positionals=[command, *args] if command else [],
        env=load_out_of_band_env(environ),
        tool_name=environ.get(ENV_TOOL_NAME) or None,
        tool_args=_require_object(_load_json(environ, ENV_TOOL_ARGS), ENV_TOOL_ARGS),
    )


__all__ = [
    "ENV_COMMAND",
    "ENV_COMMAND_ARGS",
    "ENV_ENV_VARS",
    "ENV_INVOCATION",
    "ENV_TOOL_ARGS",
    "ENV_TOOL_NAME",
    "has_out_of_band_invocation",
    "load_out_of_band_env",
    "parsed_arguments_from_environ",
]
