# Copyright (c) 2025 Airbyte, Inc., all rights reserved.
"""End-to-end tests that spawn a real stdio MCP server.

The server is `tests/fixtures/calc_server.py`, started with the current Python
interpreter.
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Any

import pytest

from mcp_tool_call.cli import main
from mcp_tool_call.reporter import EXIT_FAILURE, EXIT_SUCCESS


@pytest.fixture
def environ() -> dict[str, str]:
    """Ambient environment with a bounded request timeout."""
    return {**os.environ, "MCP_CALL_TIMEOUT": "30"}


def _run(
    argv: list[str], environ: dict[str, str], capfd: pytest.CaptureFixture[str], cwd: Path
) -> tuple[int, str, str]:
    exit_code = main(argv, environ=environ, cwd=cwd)
    captured = capfd.readouterr()
    return exit_code, captured.out, captured.err


@pytest.mark.integration
def test_calc_tool_call(
    calc_server_path: Path,
    environ: dict[str, str],
    capfd: pytest.CaptureFixture[str],
    tmp_path: Path,
) -> None:
    """Test a direct invocation with string tool arguments."""
    exit_code, out, _ = _run(
        [sys.executable, str(calc_server_path), "--tool-name", "calc"]
        + ["--tool-arg", "a=5", "--tool-arg", "b=10"],
        environ,
        capfd,
        tmp_path,
    )

    assert exit_code == EXIT_SUCCESS
    result = json.loads(out)
    assert result["structuredContent"] == {"result": 15}
    assert result["isError"] is False


@pytest.mark.integration
def test_repeated_invocations_print_identical_output(
    calc_server_path: Path,
    environ: dict[str, str],
    capfd: pytest.CaptureFixture[str],
    tmp_path: Path,
) -> None:
    """Test that running the same invocation twice prints the same result."""
    argv = [sys.executable, str(calc_server_path), "--tool-name", "calc"]
    argv += ["--tool-arg", "a=2", "--tool-arg", "b=3"]

    first = _run(argv, environ, capfd, tmp_path)
    second = _run(argv, environ, capfd, tmp_path)

    assert first[0] == second[0] == EXIT_SUCCESS
    assert first[1] == second[1]


@pytest.mark.integration
def test_server_arguments_after_separator(
    calc_server_path: Path,
    environ: dict[str, str],
    capfd: pytest.CaptureFixture[str],
    tmp_path: Path,
) -> None:
    """Test that the server command line can be given after `--`."""
    exit_code, out, _ = _run(
        ["--tool-name", "calc", "--tool-arg", "a=1", "--tool-arg", "b=1"]
        + ["--", sys.executable, str(calc_server_path)],
        environ,
        capfd,
        tmp_path,
    )

    assert exit_code == EXIT_SUCCESS
    assert json.loads(out)["structuredContent"] == {"result": 2}


@pytest.mark.integration
def test_env_flag_reaches_server(
    calc_server_path: Path,
    environ: dict[str, str],
    capfd: pytest.CaptureFixture[str],
    tmp_path: Path,
) -> None:
    """Test that `-e` overrides are visible to the server process."""
    exit_code, out, _ = _run(
        [sys.executable, str(calc_server_path), "-e", "CALC_MODE=a=b"]
        + ["--tool-name", "echo_env", "--tool-arg", "name=CALC_MODE"],
        environ,
        capfd,
        tmp_path,
    )

    assert exit_code == EXIT_SUCCESS
    assert json.loads(out)["structuredContent"] == {"name": "CALC_MODE", "value": "a=b"}


@pytest.mark.integration
def test_config_profile(
    calc_server_path: Path,
    environ: dict[str, str],
    capfd: pytest.CaptureFixture[str],
    tmp_path: Path,
    write_config: Any,
) -> None:
    """Test that a server profile supplies command, args and env."""
    write_config(
        {
            "mcpServers": {
                "calc": {
                    "command": sys.executable,
                    "args": [str(calc_server_path)],
                    "env": {"CALC_GREETING": "hello"},
                }
            }
        }
    )

    exit_code, out, _ = _run(
        ["--config", "mcp.json", "--server", "calc"]
        + ["--tool-name", "echo_env", "--tool-arg", "name=CALC_GREETING"],
        environ,
        capfd,
        tmp_path,
    )

    assert exit_code == EXIT_SUCCESS
    assert json.loads(out)["structuredContent"]["value"] == "hello"


@pytest.mark.integration
def test_remote_tool_failure(
    calc_server_path: Path,
    environ: dict[str, str],
    capfd: pytest.CaptureFixture[str],
    tmp_path: Path,
) -> None:
    """Test that a failing tool exits with 1 and keeps stdout empty."""
    exit_code, out, err = _run(
        [sys.executable, str(calc_server_path)]
        + ["--tool-name", "fail", "--tool-arg", "message=out of cheese"],
        environ,
        capfd,
        tmp_path,
    )

    assert exit_code == EXIT_FAILURE
    assert out == ""
    assert "out of cheese" in err


@pytest.mark.integration
def test_missing_server_command(
    environ: dict[str, str], capfd: pytest.CaptureFixture[str], tmp_path: Path
) -> None:
    """Test that an unknown server command is reported without a traceback."""
    exit_code, out, err = _run(
        ["definitely-not-an-mcp-server-3f9a", "--tool-name", "calc"],
        environ,
        capfd,
        tmp_path,
    )

    assert exit_code == EXIT_FAILURE
    assert out == ""
    assert "Server command not found: definitely-not-an-mcp-server-3f9a" in err
    assert "Traceback" not in err


@pytest.mark.integration
def test_server_exits_before_handshake(
    environ: dict[str, str], capfd: pytest.CaptureFixture[str], tmp_path: Path
) -> None:
    """Test that a server dying on startup is a failure, not a hang."""
    crash = tmp_path / "crash.py"
    crash.write_text("import sys\nsys.exit(3)\n", encoding="utf-8")
    environ["MCP_CALL_TIMEOUT"] = "10"

    exit_code, out, err = _run(
        ["--tool-name", "calc", "--", sys.executable, str(crash)],
        environ,
        capfd,
        tmp_path,
    )

    assert exit_code == EXIT_FAILURE
    assert out == ""
    assert err.strip().splitlines()[-1].startswith("Error: ")
