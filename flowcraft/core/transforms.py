"""Value transformations applied by transform nodes.

All operations are pure. Inputs are JSON values: strings, numbers, booleans,
``None``, lists and dicts. Dicts are treated as records whose string (or, for
multiply, numeric) members are transformed one level deep. Lists are not
records and pass through the case and append operations unchanged.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Any

from flowcraft.core.errors import (
    InvalidMultiplierError,
    MissingMultiplierError,
    TypeMismatchError,
    UnknownOperationError,
)

# Leading float literal, the same prefix parseFloat-style readers accept
_FLOAT_PREFIX = re.compile(
    r"^\s*([+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))"
)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _json_type_name(value: Any) -> str:
    """Name a value's type the way a JSON document would."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if _is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _to_text(value: Any) -> str:
    """Render an append value as text (``3`` not ``3.0``, ``true`` not ``True``)."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _normalize_number(value: float) -> int | float:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _map_strings(record: dict[str, Any], func: Callable[[str], str]) -> dict[str, Any]:
    return {key: func(val) if isinstance(val, str) else val for key, val in record.items()}


def apply_uppercase(input_value: Any) -> Any:
    if isinstance(input_value, str):
        return input_value.upper()
    if isinstance(input_value, dict):
        return _map_strings(input_value, str.upper)
    return input_value


def apply_lowercase(input_value: Any) -> Any:
    if isinstance(input_value, str):
        return input_value.lower()
    if isinstance(input_value, dict):
        return _map_strings(input_value, str.lower)
    return input_value


def apply_append(input_value: Any, value: str | int | float | None = "") -> Any:
    suffix = _to_text(value)
    if isinstance(input_value, str):
        return input_value + suffix
    if isinstance(input_value, dict):
        return _map_strings(input_value, lambda s: s + suffix)
    return input_value


def parse_multiplier(value: str | int | float) -> int | float:
    """Read a multiplier from a number or a numeric string.

    Strings are read up to the end of their leading float literal, so
    ``"2.5x"`` gives ``2.5``.

    Raises:
        InvalidMultiplierError: If the value has no leading number.
    """
    if _is_number(value):
        return value
    if isinstance(value, str):
        match = _FLOAT_PREFIX.match(value)
        if not match:
            raise InvalidMultiplierError(f'Invalid multiplier value: "{value}". Expected a number.')
        return _normalize_number(float(match.group(1)))
    raise InvalidMultiplierError("Multiplier must be a number or numeric string")


def apply_multiply(input_value: Any, value: str | int | float | None = None) -> Any:
    """Multiply a number, or every numeric member of a record.

    Raises:
        MissingMultiplierError: If no multiplier is configured.
        InvalidMultiplierError: If the multiplier is not numeric.
        TypeMismatchError: If the input (or a record member) is a string, or the
            input is neither a number nor a record.
    """
    if value is None or value == "":
        raise MissingMultiplierError("Multiply operation requires a multiplier value")

    multiplier = parse_multiplier(value)

    if isinstance(input_value, str):
        raise TypeMismatchError(
            "Cannot multiply strings. Multiply operation only works with numbers."
        )

    if _is_number(input_value):
        return input_value * multiplier

    if isinstance(input_value, dict):
        result: dict[str, Any] = {}
        for key, val in input_value.items():
            if isinstance(val, str):
                raise TypeMismatchError(
                    f'Cannot multiply string value at key "{key}". '
                    f"Multiply operation only works with numbers."
                )
            result[key] = val * multiplier if _is_number(val) else val
        return result

    raise TypeMismatchError(
        f'Cannot multiply input of type "{_json_type_name(input_value)}". '
        f"Multiply operation only works with numbers."
    )


OPERATIONS: dict[str, Callable[[Any, Any], Any]] = {
    "uppercase": lambda input_value, _value: apply_uppercase(input_value),
    "lowercase": lambda input_value, _value: apply_lowercase(input_value),
    "append": apply_append,
    "multiply": apply_multiply,
}


def apply_transformation(
    input_value: Any,
    operation: str,
    value: str | int | float | None = None,
) -> Any:
    """Apply a named transformation to ``input_value``.

    Raises:
        UnknownOperationError: If ``operation`` is not a supported name.
        TransformError: Any operation-specific failure.
    """
    handler = OPERATIONS.get(operation)
    if handler is None:
        raise UnknownOperationError(f"Unknown transformation operation: {operation}")
    return handler(input_value, value)
