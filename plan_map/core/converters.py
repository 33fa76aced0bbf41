"""Type converter registry.

Pluggable value conversion keyed by (source type, destination type).
Built-in converters are seeded at construction and can be shadowed by
user registrations for the same pair.

Resolution order for ``convert``:
    None passthrough -> identity/assignable passthrough -> optional unwrap
    -> registered converter -> built-in coercion -> None

A built-in that cannot parse its input yields None. A user converter
that raises is not caught.
"""

from __future__ import annotations

import datetime
import decimal
import enum
import logging
import threading
import typing
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from plan_map.core.introspection import is_enum, unwrap_optional
from plan_map.core.type_pair import TypePair

logger = logging.getLogger(__name__)

Converter = Callable[[Any], Any]

# Errors a built-in parser may raise on malformed input.
_PARSE_ERRORS = (ValueError, TypeError, ArithmeticError, KeyError, OverflowError)

# Pairs the built-in coercion can attempt, used by static validation.
BUILTIN_CONVERTIBLE: tuple[type, ...] = (
    str,
    int,
    float,
    bool,
    decimal.Decimal,
    datetime.datetime,
    datetime.date,
)

_TRUE_STRINGS = frozenset({"true", "1", "yes", "y", "on"})
_FALSE_STRINGS = frozenset({"false", "0", "no", "n", "off"})


@dataclass(frozen=True)
class ConverterEntry:
    """A registered conversion function."""

    type_pair: TypePair
    func: Converter
    builtin: bool = False


def _is_plain_class(tp: Any) -> bool:
    return isinstance(tp, type) and typing.get_origin(tp) is None


def _parse_bool(value: str) -> bool:
    text = value.strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ValueError(f"Not a boolean string: {value!r}")


def _parse_enum(value: Any, enum_type: type[enum.Enum]) -> enum.Enum:
    if isinstance(value, str) and value in enum_type.__members__:
        return enum_type[value]
    return enum_type(value)


def _str_to_datetime(value: str) -> datetime.datetime:
    return datetime.datetime.fromisoformat(value.strip())


def _str_to_date(value: str) -> datetime.date:
    return datetime.date.fromisoformat(value.strip())


def _str_to_time(value: str) -> datetime.time:
    return datetime.time.fromisoformat(value.strip())


def _str_to_int(value: str) -> int:
    return int(value.strip())


def _str_to_decimal(value: str) -> decimal.Decimal:
    return decimal.Decimal(value.strip())


class TypeConverterRegistry:
    """Thread-safe registry of value converters.

    Writes are serialized and published copy-on-write, so ``convert``
    never takes a lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._converters: dict[TypePair, ConverterEntry] = {}
        self._register_builtins()

    def _register_builtins(self) -> None:
        builtins: list[tuple[type, type, Converter]] = [
            (object, str, str),
            (str, int, _str_to_int),
            (str, float, float),
            (str, decimal.Decimal, _str_to_decimal),
            (str, bool, _parse_bool),
            (str, datetime.datetime, _str_to_datetime),
            (str, datetime.date, _str_to_date),
            (str, datetime.time, _str_to_time),
            (str, uuid.UUID, uuid.UUID),
            (int, float, float),
            (int, decimal.Decimal, decimal.Decimal),
            (float, decimal.Decimal, lambda v: decimal.Decimal(str(v))),
        ]
        for source_type, destination_type, func in builtins:
            self._store(ConverterEntry(TypePair(source_type, destination_type), func, builtin=True))

    def _store(self, entry: ConverterEntry) -> None:
        with self._lock:
            converters = dict(self._converters)
            converters[entry.type_pair] = entry
            self._converters = converters

    def add_converter(self, source_type: type, destination_type: type, func: Converter) -> None:
        """Register a converter. The last registration for a pair wins."""
        if not callable(func):
            raise TypeError(f"Converter for {source_type} -> {destination_type} must be callable")
        self._store(ConverterEntry(TypePair(source_type, destination_type), func))
        logger.debug("Registered converter %s -> %s", source_type, destination_type)

    def _find_entry(self, source_type: Any, destination_type: Any) -> ConverterEntry | None:
        converters = self._converters
        entry = converters.get(TypePair(source_type, destination_type))
        if entry is not None:
            return entry
        if not isinstance(source_type, type):
            return None
        for base in source_type.__mro__[1:]:
            entry = converters.get(TypePair(base, destination_type))
            if entry is not None:
                return entry
        if is_enum(destination_type):
            for base in source_type.__mro__:
                entry = converters.get(TypePair(base, enum.Enum))
                if entry is not None:
                    return entry
        return None

    def try_get_converter(self, source_type: Any, destination_type: Any) -> Converter | None:
        """Return the converter for an exact pair, or None."""
        entry = self._converters.get(TypePair(source_type, destination_type))
        return entry.func if entry is not None else None

    def has_converter(self, source_type: Any, destination_type: Any) -> bool:
        """Check if any registered or built-in converter applies to the pair."""
        if self._find_entry(source_type, destination_type) is not None:
            return True
        if is_enum(destination_type) and isinstance(source_type, type):
            return issubclass(source_type, (str, int))
        return False

    def convert(self, value: Any, source_type: Any, destination_type: Any) -> Any:
        """Convert a value between types, returning None when unresolvable."""
        if value is None:
            return None

        if destination_type is Any or destination_type is object or destination_type is None:
            return value
        if source_type == destination_type:
            return value
        if _is_plain_class(destination_type) and isinstance(value, destination_type):
            return value

        unwrapped_destination, destination_optional = unwrap_optional(destination_type)
        if destination_optional:
            return self.convert(value, source_type, unwrapped_destination)
        unwrapped_source, source_optional = unwrap_optional(source_type)
        if source_optional:
            return self.convert(value, unwrapped_source, destination_type)

        entry = self._find_entry(source_type, destination_type)
        if entry is not None:
            if not entry.builtin:
                return entry.func(value)
            try:
                return entry.func(value)
            except _PARSE_ERRORS:
                return None

        return self._builtin_coercion(value, destination_type)

    def _builtin_coercion(self, value: Any, destination_type: Any) -> Any:
        if not _is_plain_class(destination_type):
            return None
        try:
            if is_enum(destination_type):
                return _parse_enum(value, destination_type)
            if destination_type in BUILTIN_CONVERTIBLE:
                return destination_type(value)
        except _PARSE_ERRORS:
            return None
        return None

    def can_convert_builtin(self, source_type: Any, destination_type: Any) -> bool:
        """Check if the pair falls inside the built-in convertible primitive set."""
        if is_enum(destination_type):
            return isinstance(source_type, type) and issubclass(source_type, (str, int))
        return source_type in BUILTIN_CONVERTIBLE and destination_type in BUILTIN_CONVERTIBLE

    def __len__(self) -> int:
        return len(self._converters)
