"""Typed readers over untyped action parameter mappings.

Action parameters arrive from tool calls and CLI flags as a loose
``str -> Any`` mapping. These helpers read one key with the expected type,
treat malformed or empty values as absent, and raise
``MissingParameterError`` only when the caller marks the key as required.
"""

from __future__ import annotations

import math
from typing import Any, Mapping

from courier.core.domain.errors import MissingParameterError

Params = Mapping[str, Any]


def _missing(key: str, label: str | None) -> MissingParameterError:
    name = label or key
    return MissingParameterError(f"{name} required", param=key)


def read_string_param(
    params: Params,
    key: str,
    *,
    required: bool = False,
    trim: bool = True,
    label: str | None = None,
    allow_empty: bool = False,
) -> str | None:
    """Read a string parameter.

    Non-string values are treated as absent. With ``trim`` (the default)
    surrounding whitespace is removed before the emptiness check, so a
    whitespace-only value counts as empty.

    Args:
        params: Parameter mapping.
        key: Key to read.
        required: Raise when the value is absent.
        trim: Strip surrounding whitespace.
        label: Name used in the error message (defaults to ``key``).
        allow_empty: Return ``""`` instead of treating it as absent.

    Returns:
        The string value, or None when absent.

    Raises:
        MissingParameterError: If ``required`` and the value is absent.
    """
    raw = params.get(key)
    if not isinstance(raw, str):
        if required:
            raise _missing(key, label)
        return None
    value = raw.strip() if trim else raw
    if not value and not allow_empty:
        if required:
            raise _missing(key, label)
        return None
    return value


def read_string_array_param(
    params: Params,
    key: str,
    *,
    required: bool = False,
    label: str | None = None,
) -> list[str] | None:
    """Read a list of strings; a single string becomes a one-element list.

    Entries are trimmed and empty entries dropped.
    """
    raw = params.get(key)
    values: list[str] = []
    if isinstance(raw, (list, tuple)):
        values = [entry.strip() for entry in raw if isinstance(entry, str)]
        values = [entry for entry in values if entry]
    elif isinstance(raw, str):
        value = raw.strip()
        if value:
            values = [value]
    if not values:
        if required:
            raise _missing(key, label)
        return None
    return values


def read_number_param(
    params: Params,
    key: str,
    *,
    required: bool = False,
    integer: bool = False,
    label: str | None = None,
) -> int | float | None:
    """Read a numeric parameter from a number or a numeric string.

    Non-numeric input, and non-integral input when ``integer`` is set,
    is treated exactly like an absent value.
    """
    raw = params.get(key)
    value: float | int | None = None
    if isinstance(raw, bool):
        value = None
    elif isinstance(raw, int):
        try:
            float(raw)
        except OverflowError:
            # Beyond double range: not a finite number.
            value = None
        else:
            value = raw
    elif isinstance(raw, float):
        value = raw
    elif isinstance(raw, str):
        text = raw.strip()
        if text:
            try:
                value = float(text)
            except ValueError:
                value = None

    if value is not None and not math.isfinite(value):
        value = None
    if value is not None and integer:
        value = int(value) if float(value).is_integer() else None

    if value is None:
        if required:
            raise _missing(key, label)
        return None
    return value


def read_boolean_param(params: Params, key: str) -> bool | None:
    """Read a boolean flag.

    Accepts real booleans and the strings ``"true"``/``"false"`` in any case.
    Anything else yields None so callers can apply their own default.
    """
    raw = params.get(key)
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        text = raw.strip().lower()
        if text == "true":
            return True
        if text == "false":
            return False
    return None
