"""
Schemas & Canonicalization
File: canonical.py

Purpose: Deterministic serialization for allowlist artifacts and UTC
normalisation for campaign timestamps.

CRITICAL: All outputs from this module MUST be deterministic across runs.
"""

import json
import math
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel

from .errors import InvalidInputException

# Canonical JSON separators - no whitespace
CANONICAL_JSON_SEPARATORS: tuple[str, str] = (",", ":")


def ensure_utc(dt: datetime) -> datetime:
    """
    Ensure a datetime is timezone-aware and in UTC.

    Rules:
        - If naive (no tzinfo): treat as UTC
        - If aware: convert to UTC
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    else:
        return dt.astimezone(timezone.utc)


def format_datetime_canonical(dt: datetime) -> str:
    """
    Format a datetime as ISO-8601 with Z suffix for UTC.

    Returns:
        ISO-8601 formatted string with Z suffix (e.g., "2026-01-27T21:35:00Z").
    """
    utc_dt = ensure_utc(dt)
    if utc_dt.microsecond == 0:
        return utc_dt.strftime("%Y-%m-%dT%H:%M:%SZ")
    else:
        return utc_dt.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def canonicalize_value(value: Any, path: str = "") -> Any:
    """
    Recursively canonicalize a value for deterministic JSON serialization.

    Args:
        value: Any Python value to canonicalize.
        path: Current path for error reporting.

    Raises:
        InvalidInputException: If the value cannot be canonicalized
            (e.g., contains NaN/Infinity floats).
    """
    if value is None:
        return None

    if isinstance(value, bool):
        # Must check bool before int since bool is subclass of int
        return value

    if isinstance(value, int):
        return value

    if isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidInputException(
                message=f"Non-finite float value encountered: {value}",
                field_path=path or None,
            )
        return value

    if isinstance(value, str):
        return value

    if isinstance(value, datetime):
        return format_datetime_canonical(value)

    if isinstance(value, BaseModel):
        dumped = value.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=True,
        )
        return canonicalize_value(dumped, path)

    if isinstance(value, dict):
        # Keys will be sorted during JSON serialization
        return {
            k: canonicalize_value(v, f"{path}.{k}" if path else k)
            for k, v in value.items()
            if v is not None
        }

    if isinstance(value, (list, tuple)):
        return [
            canonicalize_value(item, f"{path}[{i}]")
            for i, item in enumerate(value)
        ]

    if isinstance(value, bytes):
        # 0x-prefixed to match the hash rendering used everywhere else
        return "0x" + value.hex()

    raise InvalidInputException(
        message=f"Cannot canonicalize value of type {type(value).__name__}",
        field_path=path or None,
        details={"type": type(value).__name__},
    )


def dumps_canonical(obj: Any) -> str:
    """
    Serialize an object to canonical JSON string.

    Produces sorted keys, no extra whitespace, no None fields, datetimes
    as ISO-8601 with Z suffix and bytes as 0x-prefixed hex.

    Example:
        >>> dumps_canonical({"b": 2, "a": 1})
        '{"a":1,"b":2}'
    """
    canonicalized = canonicalize_value(obj)
    return json.dumps(
        canonicalized,
        sort_keys=True,
        separators=CANONICAL_JSON_SEPARATORS,
        ensure_ascii=False,
    )
