"""Mapping expression DSL.

Provides a fluent builder for configuring the plan of one type pair.
A builder bound to a MapperConfiguration republishes its plan after
every configuration call; a detached builder (recorded by a Profile or
created through ``MapperConfiguration.build_plan``) only builds on
request.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from plan_map.core.config import MapperOptions
from plan_map.core.enums import PlanStrategy
from plan_map.core.exceptions import MemberNotFoundError, PlanCompilationError
from plan_map.core.introspection import writable_members
from plan_map.core.type_pair import TypePair, type_name
from plan_map.mapping.compiled import CompiledMapPlan
from plan_map.mapping.flattening import FlatteningMapPlan
from plan_map.mapping.path import PropertyPath, find_source_path
from plan_map.mapping.plan import (
    NO_SUBSTITUTE,
    Condition,
    Constructor,
    Hook,
    MapPlan,
    MemberPlan,
    Resolver,
    SourceGetter,
)
from plan_map.mapping.reflection import ReflectionMapPlan

if TYPE_CHECKING:
    from plan_map.core.registry import MapperConfiguration

logger = logging.getLogger(__name__)

PLAN_CLASSES: dict[PlanStrategy, type[MapPlan]] = {
    PlanStrategy.REFLECTIVE: ReflectionMapPlan,
    PlanStrategy.FLATTENING: FlatteningMapPlan,
    PlanStrategy.COMPILED: CompiledMapPlan,
}


def select_strategy(options: MapperOptions, flattening: bool) -> PlanStrategy:
    """Pick the plan variant for the given options."""
    if options.use_compiled_plans:
        return PlanStrategy.COMPILED
    if flattening:
        return PlanStrategy.FLATTENING
    return PlanStrategy.REFLECTIVE


class MemberOptions:
    """Per-member overrides collected by ``MappingExpression.for_member``."""

    def __init__(self, source_type: type, destination_path: PropertyPath) -> None:
        self._source_type = source_type
        self._destination_path = destination_path
        self._source_path: PropertyPath | None = None
        self._source_getter: SourceGetter | None = None
        self._resolver: Resolver | None = None
        self._ignore = False
        self._condition: Condition | None = None
        self._null_substitute: Any = NO_SUBSTITUTE

    @property
    def destination_path(self) -> PropertyPath:
        return self._destination_path

    @property
    def has_source_override(self) -> bool:
        return (
            self._source_path is not None
            or self._source_getter is not None
            or self._resolver is not None
        )

    def map_from(self, source: SourceGetter | str) -> MemberOptions:
        """Read the value from a callable ``source -> value`` or a dotted source path.

        Raises:
            MemberNotFoundError: If a dotted path does not exist on the source type.
        """
        if isinstance(source, str):
            self._source_path = PropertyPath.parse(self._source_type, source)
            self._source_getter = None
        elif callable(source):
            self._source_getter = source
            self._source_path = None
        else:
            raise TypeError(f"map_from expects a callable or a dotted path, got {source!r}")
        self._ignore = False
        return self

    def ignore(self) -> MemberOptions:
        """Never populate this member."""
        self._ignore = True
        return self

    def condition(self, predicate: Condition) -> MemberOptions:
        """Assign only when ``predicate(source, destination)`` is true."""
        self._condition = predicate
        return self

    def null_substitute(self, value: Any) -> MemberOptions:
        """Use ``value`` when the resolved value is None."""
        self._null_substitute = value
        return self

    def resolve_using(self, resolver: Resolver) -> MemberOptions:
        """Compute the value with ``resolver(source, destination)``."""
        self._resolver = resolver
        self._ignore = False
        return self

    def to_member_plan(self, default_source: PropertyPath | None) -> MemberPlan:
        source_path = self._source_path
        if not self.has_source_override:
            source_path = default_source
        final = self._destination_path.final_member
        return MemberPlan(
            destination_name=str(self._destination_path),
            destination_path=self._destination_path,
            destination_type=final.annotation,
            source_path=source_path,
            source_getter=self._source_getter,
            resolver=self._resolver,
            ignore=self._ignore,
            condition=self._condition,
            null_substitute=self._null_substitute,
            explicit=self.has_source_override,
        )


class MappingExpression:
    """Fluent builder for the plan of one (source, destination) pair.

    Args:
        source_type: Type read from.
        destination_type: Type written to.
        configuration: Registry supplying options and receiving published plans.
        publish: Whether configuration calls republish the plan to the registry.
    """

    def __init__(
        self,
        source_type: type,
        destination_type: type,
        configuration: MapperConfiguration | None = None,
        *,
        publish: bool = True,
    ) -> None:
        self._type_pair = TypePair(source_type, destination_type)
        self._configuration = configuration
        self._publish = publish and configuration is not None
        self._members: dict[str, MemberOptions] = {}
        self._constructor: Constructor | None = None
        self._before_map: Hook | None = None
        self._after_map: Hook | None = None
        self._flattening: bool | None = None
        self._strategy: PlanStrategy | None = None
        self._deferred = 0

    @property
    def type_pair(self) -> TypePair:
        return self._type_pair

    @property
    def source_type(self) -> type:
        return self._type_pair.source_type

    @property
    def destination_type(self) -> type:
        return self._type_pair.destination_type

    @property
    def configuration(self) -> MapperConfiguration | None:
        return self._configuration

    @property
    def is_bound(self) -> bool:
        return self._publish

    @property
    def options(self) -> MapperOptions:
        if self._configuration is None:
            return MapperOptions()
        return self._configuration.options

    @property
    def flattening_enabled(self) -> bool:
        if self._flattening is not None:
            return self._flattening
        return self.options.enable_flattening

    @property
    def strategy(self) -> PlanStrategy:
        if self._strategy is not None:
            return self._strategy
        return select_strategy(self.options, self.flattening_enabled)

    def attach(self, configuration: MapperConfiguration) -> MappingExpression:
        """Bind a detached builder to a registry and publish its plan."""
        self._configuration = configuration
        self._publish = True
        self._changed()
        return self

    @contextmanager
    def deferred(self) -> Iterator[MappingExpression]:
        """Batch configuration calls and publish once on exit."""
        self._deferred += 1
        try:
            yield self
        finally:
            self._deferred -= 1
        self._changed()

    def _changed(self) -> None:
        configuration = self._configuration
        if configuration is None or not self._publish or self._deferred:
            return
        configuration.publish(self.build_plan())

    # --- Member configuration ---

    def for_member(
        self,
        destination_member: str,
        configure: Callable[[MemberOptions], Any],
    ) -> MappingExpression:
        """Configure one destination member, e.g. ``"total"`` or ``"address.city"``.

        Raises:
            MemberNotFoundError: If the path does not exist on the destination type.
            PlanCompilationError: If the final member cannot be assigned.
        """
        member_options = self._members.get(destination_member)
        if member_options is None:
            path = PropertyPath.parse(self.destination_type, destination_member)
            if not path.final_member.writable:
                raise PlanCompilationError(
                    f"Member '{destination_member}' on type "
                    f"'{type_name(self.destination_type)}' is not writable"
                )
            member_options = MemberOptions(self.source_type, path)
        configure(member_options)
        self._members[destination_member] = member_options
        self._changed()
        return self

    def ignore_members(self, *destination_members: str) -> MappingExpression:
        """Mark several destination members as ignored."""
        with self.deferred():
            for name in destination_members:
                self.for_member(name, lambda options: options.ignore())
        return self

    # --- Construction and hooks ---

    def construct_using(self, factory: Constructor) -> MappingExpression:
        """Create destinations with ``factory(source)``."""
        self._constructor = factory
        self._changed()
        return self

    def before_map(self, hook: Hook) -> MappingExpression:
        """Run ``hook(source, destination)`` before any member is assigned."""
        self._before_map = hook
        self._changed()
        return self

    def after_map(self, hook: Hook) -> MappingExpression:
        """Run ``hook(source, destination)`` after every member is assigned."""
        self._after_map = hook
        self._changed()
        return self

    # --- Plan options ---

    def enable_flattening(self, enabled: bool = True) -> MappingExpression:
        self._flattening = enabled
        self._changed()
        return self

    def disable_flattening(self) -> MappingExpression:
        return self.enable_flattening(False)

    def use_strategy(self, strategy: PlanStrategy) -> MappingExpression:
        """Force a plan variant regardless of the global options."""
        self._strategy = strategy
        self._changed()
        return self

    # --- Build ---

    def _default_source(
        self, destination_path: PropertyPath, flattening: bool
    ) -> PropertyPath | None:
        if not destination_path.is_nested:
            return find_source_path(self.source_type, destination_path.head, flattening)
        try:
            return PropertyPath.parse(self.source_type, str(destination_path))
        except MemberNotFoundError:
            return None

    def member_plans(self, flattening: bool | None = None) -> list[MemberPlan]:
        """Resolve a member plan for every writable destination member."""
        if flattening is None:
            flattening = self.flattening_enabled

        plans: list[MemberPlan] = []
        for name, member in writable_members(self.destination_type).items():
            member_options = self._members.get(name)
            if member_options is None:
                member_options = MemberOptions(self.source_type, PropertyPath((member,)))
            default_source = None
            if not member_options.has_source_override:
                default_source = self._default_source(member_options.destination_path, flattening)
            plans.append(member_options.to_member_plan(default_source))

        for name, member_options in self._members.items():
            if "." not in name:
                continue
            default_source = None
            if not member_options.has_source_override:
                default_source = self._default_source(member_options.destination_path, flattening)
            plans.append(member_options.to_member_plan(default_source))
        return plans

    def build_plan(self, strategy: PlanStrategy | None = None) -> MapPlan:
        """Compile the current configuration into a plan.

        Building is idempotent: the same configuration always yields an
        equivalent plan.
        """
        flattening = self.flattening_enabled
        if strategy is None:
            strategy = self.strategy
        plan_class = PLAN_CLASSES[strategy]
        plan = plan_class(
            self._type_pair,
            self.member_plans(flattening),
            constructor=self._constructor,
            before_map=self._before_map,
            after_map=self._after_map,
        )
        logger.debug("Built %s plan for %s", strategy.value, self._type_pair)
        return plan

    def __repr__(self) -> str:
        return f"MappingExpression({self._type_pair})"
