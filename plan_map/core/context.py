"""Per-call recursion tracking.

A MappingContext belongs to exactly one logical mapping call tree. The
Mapper creates a fresh context per root ``map`` call and every plan
passes it down explicitly to nested plans, so concurrent root calls
never share depth counters.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterator
from contextlib import contextmanager

from plan_map.core.config import DEFAULT_MAX_DEPTH
from plan_map.core.type_pair import TypePair


class MappingContext:
    """Depth counter over in-progress type pairs.

    Args:
        max_depth: Nesting level at which a pair stops recursing.
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        if max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {max_depth}")
        self._max_depth = max_depth
        self._depths: Counter[TypePair] = Counter()
        self.truncations = 0

    @property
    def max_depth(self) -> int:
        return self._max_depth

    def depth(self, type_pair: TypePair) -> int:
        """Current nesting depth of a pair."""
        return self._depths[type_pair]

    def is_at_limit(self, type_pair: TypePair) -> bool:
        """True when entering the pair again would exceed the maximum depth."""
        return self._depths[type_pair] >= self._max_depth

    def enter(self, type_pair: TypePair) -> None:
        self._depths[type_pair] += 1

    def exit(self, type_pair: TypePair) -> None:
        depth = self._depths[type_pair]
        if depth <= 1:
            self._depths.pop(type_pair, None)
        else:
            self._depths[type_pair] = depth - 1

    @contextmanager
    def track(self, type_pair: TypePair) -> Iterator[None]:
        """Enter a pair for the duration of a ``with`` block."""
        self.enter(type_pair)
        try:
            yield
        finally:
            self.exit(type_pair)

    def record_truncation(self) -> None:
        self.truncations += 1

    @property
    def active_pairs(self) -> frozenset[TypePair]:
        return frozenset(self._depths)

    def reset(self) -> None:
        self._depths.clear()
        self.truncations = 0
