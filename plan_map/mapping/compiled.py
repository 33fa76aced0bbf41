"""Compiled plan.

Member plans are lowered once, at plan construction, into specialized
per-member closures (prebound readers, writers and converters) composed
into a single run function. Ordering of null substitution, conditions,
conversion and hooks is identical to the reflective plan.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

from plan_map.core.context import MappingContext
from plan_map.core.enums import PlanStrategy
from plan_map.core.type_pair import TypePair
from plan_map.mapping.plan import (
    Constructor,
    Hook,
    MapPlan,
    MemberPlan,
    convert_value,
)

if TYPE_CHECKING:
    from plan_map.core.engine import Mapper

Reader = Callable[[Any, Any], Any]
Step = Callable[[Any, Any, "Mapper", MappingContext], None]
Run = Callable[[Any, Any, "Mapper", MappingContext], None]


def _lower_reader(member_plan: MemberPlan) -> Reader:
    if member_plan.resolver is not None:
        return member_plan.resolver
    if member_plan.source_getter is not None:
        getter = member_plan.source_getter
        return lambda source, destination: getter(source)
    read = member_plan.source_path.getter()  # type: ignore[union-attr]
    return lambda source, destination: read(source)


def _lower_member(member_plan: MemberPlan) -> Step:
    read = _lower_reader(member_plan)
    write = member_plan.destination_path.setter()
    condition = member_plan.condition
    target = member_plan.destination_type

    if member_plan.has_null_substitute:
        substitute = member_plan.null_substitute
        resolve = read

        def read(source: Any, destination: Any) -> Any:
            value = resolve(source, destination)
            return substitute if value is None else value

    if target is None:

        def assign(destination: Any, value: Any, mapper: Mapper, context: MappingContext) -> None:
            write(destination, value)

    else:

        def assign(destination: Any, value: Any, mapper: Mapper, context: MappingContext) -> None:
            write(destination, convert_value(value, target, mapper, context))

    if condition is None:

        def step(source: Any, destination: Any, mapper: Mapper, context: MappingContext) -> None:
            assign(destination, read(source, destination), mapper, context)

    else:

        def step(source: Any, destination: Any, mapper: Mapper, context: MappingContext) -> None:
            value = read(source, destination)
            if condition(source, destination):
                assign(destination, value, mapper, context)

    return step


def compile_plan(
    member_plans: Sequence[MemberPlan],
    before_map: Hook | None,
    after_map: Hook | None,
) -> Run:
    """Lower member plans and hooks into one run function."""
    steps = tuple(
        _lower_member(member_plan)
        for member_plan in member_plans
        if not member_plan.ignore and member_plan.is_resolved
    )

    def run_members(source: Any, destination: Any, mapper: Mapper, context: MappingContext) -> None:
        for step in steps:
            step(source, destination, mapper, context)

    if before_map is None and after_map is None:
        return run_members

    def run(source: Any, destination: Any, mapper: Mapper, context: MappingContext) -> None:
        if before_map is not None:
            before_map(source, destination)
        run_members(source, destination, mapper, context)
        if after_map is not None:
            after_map(source, destination)

    return run


class CompiledMapPlan(MapPlan):
    """Executes a run function prebuilt from its member plans."""

    strategy = PlanStrategy.COMPILED

    def __init__(
        self,
        type_pair: TypePair,
        member_plans: Sequence[MemberPlan],
        constructor: Constructor | None = None,
        before_map: Hook | None = None,
        after_map: Hook | None = None,
    ) -> None:
        super().__init__(type_pair, member_plans, constructor, before_map, after_map)
        self._run = compile_plan(self._member_plans, before_map, after_map)

    def _execute(
        self,
        source: Any,
        destination: Any,
        mapper: Mapper,
        context: MappingContext,
    ) -> None:
        self._run(source, destination, mapper, context)
