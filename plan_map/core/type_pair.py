"""TypePair - the (source, destination) identity key."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


def type_name(tp: Any) -> str:
    """Short display name for a type or annotation."""
    return getattr(tp, "__qualname__", None) or repr(tp)


@dataclass(frozen=True)
class TypePair:
    """Lookup key for plans, converters and validation memoization."""

    source_type: Any
    destination_type: Any

    def __str__(self) -> str:
        return f"{type_name(self.source_type)} -> {type_name(self.destination_type)}"
