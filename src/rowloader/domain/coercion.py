"""Coerce raw cell values into the value type an operator expects."""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import TYPE_CHECKING, Final

from .errors import BindError

if TYPE_CHECKING:
    from collections.abc import Callable

_TRUE: Final[frozenset[str]] = frozenset({"1", "true", "t", "yes", "y", "on"})
_FALSE: Final[frozenset[str]] = frozenset({"0", "false", "f", "no", "n", "off"})


def is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def coerce_value(value: object, value_type: type | None) -> object:
    """Return ``value`` converted to ``value_type``.

    Blank cells become ``None``. Unknown types leave the (stripped) value as-is.
    Raises ``BindError`` if the value cannot be converted.
    """

    if is_blank(value):
        return None
    if isinstance(value, str):
        value = value.strip()
    if value_type is None or isinstance(value, value_type):
        return value

    converter = _converter_for(value_type)
    try:
        return converter(value)
    except (ValueError, TypeError, ArithmeticError, KeyError) as exc:
        raise BindError(
            f"Cannot convert {value!r} to {value_type.__name__}: {exc}"
        ) from exc


def _converter_for(value_type: type) -> Callable[[object], object]:
    if issubclass(value_type, Enum):
        return lambda value: _to_enum(value, value_type)
    # datetime subclasses date, so it must be checked first.
    for candidate, converter in _CONVERTERS:
        if issubclass(value_type, candidate):
            return converter
    return value_type


def _to_bool(value: object) -> bool:
    if isinstance(value, (int, float)):
        return bool(value)
    lowered = str(value).strip().casefold()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _to_int(value: object) -> int:
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"not an integer: {value!r}")
        return int(value)
    text = str(value).replace(",", "")
    try:
        return int(text)
    except ValueError:
        number = Decimal(text)
        if number != number.to_integral_value():
            raise
        return int(number)


def _to_decimal(value: object) -> Decimal:
    try:
        return Decimal(str(value).replace(",", ""))
    except InvalidOperation as exc:
        raise ValueError(f"not a decimal: {value!r}") from exc


def _to_float(value: object) -> float:
    return float(str(value).replace(",", ""))


def _to_datetime(value: object) -> datetime:
    if isinstance(value, date):
        return datetime.combine(value, time())
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _to_date(value: object) -> date:
    if isinstance(value, datetime):
        return value.date()
    return date.fromisoformat(str(value)[:10])


def _to_time(value: object) -> time:
    if isinstance(value, datetime):
        return value.time()
    return time.fromisoformat(str(value))


def _to_str(value: object) -> str:
    return str(value)


def _to_enum(value: object, enum_type: type[Enum]) -> Enum:
    try:
        return enum_type(value)
    except ValueError:
        return enum_type[str(value).strip().upper()]


_CONVERTERS: Final[tuple[tuple[type, Callable[[object], object]], ...]] = (
    (bool, _to_bool),
    (int, _to_int),
    (Decimal, _to_decimal),
    (float, _to_float),
    (datetime, _to_datetime),
    (date, _to_date),
    (time, _to_time),
    (str, _to_str),
)
