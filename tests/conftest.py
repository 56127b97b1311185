# Copyright (c) 2025 Airbyte, Inc., all rights reserved.
"""Shared test fixtures."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from fastmcp import FastMCP

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def calc_server_path() -> Path:
    """Path of the stdio MCP server script used by integration tests."""
    return FIXTURES_DIR / "calc_server.py"


@pytest.fixture
def calc_app() -> FastMCP:
    """In-memory MCP server with a calculator tool and a failing tool."""
    app = FastMCP("calc-test")

    @app.tool()
    def calc(a: int, b: int) -> dict[str, int]:
        """Add two integers."""
        return {"result": a + b}

    @app.tool()
    def fail(message: str) -> str:
        """Always fail with the given message."""
        raise ValueError(message)

    return app


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[..., Path]:
    """Write a configuration document into the temporary directory."""

    def _write(document: Any, name: str = "mcp.json", *, raw: str | None = None) -> Path:
        path = tmp_path / name
        path.write_text(raw if raw is not None else json.dumps(document), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def anyio_backend() -> str:
    """Run anyio-marked tests on asyncio, the event loop the MCP client requires."""
    return "asyncio"
