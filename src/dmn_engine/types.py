"""typeRef coercion for input subjects and output values.

DMN columns may declare a typeRef. Values are converted to the matching
Python type before comparison (inputs) or before being placed into a
result (outputs):

    string            -> str
    integer, long     -> int
    double, number    -> float (int kept as int for "number")
    boolean           -> bool
    date              -> datetime.date
    <none>/<unknown>  -> value passed through unchanged

None always stays None. With strict=False a value that cannot be converted
is passed through unchanged; with strict=True a TypeCoercionError is raised.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable

__all__ = [
    "TypeCoercionError",
    "coerce_value",
    "normalize_type_ref",
    "KNOWN_TYPE_REFS",
]

logger = logging.getLogger(__name__)


class TypeCoercionError(ValueError):
    """A value could not be converted to the declared typeRef."""

    def __init__(self, value: Any, type_ref: str) -> None:
        super().__init__(f"Cannot convert {value!r} to type '{type_ref}'")
        self.value = value
        self.type_ref = type_ref


def _to_string(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _to_integer(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("booleans are not integers")
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        if value != int(value):
            raise ValueError("value has a fractional part")
        return int(value)
    if isinstance(value, str):
        return int(value.strip())
    raise ValueError("unsupported value")


def _to_double(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError("booleans are not numbers")
    if isinstance(value, (int, float, Decimal)):
        return float(value)
    if isinstance(value, str):
        return float(value.strip())
    raise ValueError("unsupported value")


def _to_number(value: Any) -> int | float:
    if isinstance(value, bool):
        raise ValueError("booleans are not numbers")
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, Decimal):
        return int(value) if value == int(value) else float(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            return float(text)
    raise ValueError("unsupported value")


def _to_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    raise ValueError("not a boolean")


def _to_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip())
    raise ValueError("unsupported value")


_CONVERTERS: dict[str, Callable[[Any], Any]] = {
    "string": _to_string,
    "integer": _to_integer,
    "long": _to_integer,
    "double": _to_double,
    "number": _to_number,
    "boolean": _to_boolean,
    "date": _to_date,
}

KNOWN_TYPE_REFS: frozenset[str] = frozenset(_CONVERTERS)


def normalize_type_ref(type_ref: str | None) -> str | None:
    """Normalize a typeRef attribute.

    Strips whitespace and namespace prefixes ("feel:string" -> "string")
    and lowercases the name. Empty values become None.
    """
    if type_ref is None:
        return None
    name = type_ref.strip()
    if ":" in name:
        name = name.rsplit(":", 1)[1]
    return name.lower() or None


def coerce_value(value: Any, type_ref: str | None, strict: bool = False) -> Any:
    """Convert a value to the declared typeRef.

    Args:
        value: Raw value.
        type_ref: Normalized typeRef (see normalize_type_ref) or None.
        strict: Raise instead of passing through unconvertible values.

    Returns:
        The converted value, or the original value when no conversion applies.

    Raises:
        TypeCoercionError: If strict and the value cannot be converted.
    """
    if value is None or type_ref is None:
        return value

    converter = _CONVERTERS.get(type_ref)
    if converter is None:
        return value

    try:
        return converter(value)
    except (ValueError, TypeError, ArithmeticError) as e:
        if strict:
            raise TypeCoercionError(value, type_ref) from e
        logger.debug("Passing %r through unconverted for typeRef '%s': %s", value, type_ref, e)
        return value
