# Copyright (c) 2025 Airbyte, Inc., all rights reserved.
"""Parsing of repeatable `key=value` flags (`--tool-arg`, `-e/--env`)."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

logger = logging.getLogger(__name__)


def parse_key_value_pair(
    value: str,
    previous: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Fold one `key=value` token into an accumulated mapping.

    The token is split on the first `=` only, so `a=b=c` sets `a` to `b=c`.
    A token with no `=`, an empty key, or an empty value is dropped and the
    previous mapping is returned unchanged. A repeated key keeps the position
    where it was first seen and takes the latest value.

    Args:
        value: The raw flag value.
        previous: Mapping accumulated from earlier occurrences of the flag.

    Returns:
        A new mapping; `previous` itself is never modified.
    """
    result = dict(previous or {})
    key, sep, val = value.partition("=")
    if not sep or not key or not val:
        logger.warning("Ignoring malformed key=value pair: %r", value)
        return result

    result[key] = val
    return result


def parse_key_value_pairs(values: Iterable[str]) -> dict[str, str]:
    """Apply `parse_key_value_pair` to every occurrence of a repeatable flag."""
    result: dict[str, str] = {}
    for value in values:
        result = parse_key_value_pair(value, result)
    return result


__all__ = ["parse_key_value_pair", "parse_key_value_pairs"]
