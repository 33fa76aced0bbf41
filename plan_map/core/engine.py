"""Mapping facade.

The Mapper resolves the plan for the runtime source type and the
requested destination type, then executes it with a fresh
MappingContext per root call.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING, Any, TypeVar

from plan_map.core.context import MappingContext
from plan_map.core.exceptions import NullSourceError

if TYPE_CHECKING:
    from plan_map.core.registry import MapperConfiguration

T = TypeVar("T")


class Mapper:
    """Executes plans from a MapperConfiguration.

    A Mapper holds no per-call state and can be shared between threads.
    """

    def __init__(self, configuration: MapperConfiguration) -> None:
        self._configuration = configuration

    @property
    def configuration(self) -> MapperConfiguration:
        return self._configuration

    def new_context(self) -> MappingContext:
        """A recursion guard sized from the configuration options."""
        return MappingContext(self._configuration.options.max_depth)

    def map(
        self,
        source: Any,
        destination_type: type[T],
        destination: T | None = None,
        *,
        context: MappingContext | None = None,
    ) -> T:
        """Map a source object to ``destination_type``.

        Args:
            source: Object to read from.
            destination_type: Type to produce.
            destination: Existing instance to populate instead of creating one.
            context: Recursion guard to reuse; a fresh one is created if omitted.

        Returns:
            The populated destination.

        Raises:
            NullSourceError: If source is None.
            ConfigurationMissingError: If no plan exists for the pair.
        """
        if source is None:
            raise NullSourceError(destination_type)
        plan = self._configuration.get_plan(type(source), destination_type)
        if context is None:
            context = self.new_context()
        return plan.map(source, destination, self, context)  # type: ignore[no-any-return]

    def map_into(self, source: Any, destination: T, *, context: MappingContext | None = None) -> T:
        """Populate an existing destination instance in place."""
        return self.map(source, type(destination), destination, context=context)

    def map_many(self, sources: Iterable[Any], destination_type: type[T]) -> list[T]:
        """Map each source independently, each with its own context."""
        if sources is None:
            raise NullSourceError(destination_type)
        return [self.map(source, destination_type) for source in sources]

    def iter_map(self, sources: Iterable[Any], destination_type: type[T]) -> Iterator[T]:
        """Lazily map each source. A None iterable is rejected immediately."""
        if sources is None:
            raise NullSourceError(destination_type)
        return (self.map(source, destination_type) for source in sources)

    def __repr__(self) -> str:
        return f"Mapper({self._configuration!r})"
