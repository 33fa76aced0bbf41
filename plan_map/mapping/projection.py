"""Projection of a realized plan.

A Projection is a pure ``source -> destination`` function over a
registered pair, plus the member bindings a query-translation layer
needs to decide whether the plan can be pushed down. Bindings that rely
on callables (getters, resolvers, conditions) or on hooks are reported
as unrepresentable; the in-memory function handles them all.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from plan_map.core.engine import Mapper
from plan_map.core.type_pair import TypePair
from plan_map.mapping.plan import MapPlan, MemberPlan

if TYPE_CHECKING:
    from plan_map.core.registry import MapperConfiguration


@dataclass(frozen=True)
class ProjectionBinding:
    """Where one destination member comes from.

    ``source_path`` is None when the member is unresolved, ignored, or
    computed by a callable (then ``custom`` is True).
    """

    destination_member: str
    source_path: tuple[str, ...] | None
    custom: bool = False
    ignored: bool = False


@dataclass(frozen=True)
class Projection:
    """Pure projection function for one type pair."""

    type_pair: TypePair
    bindings: tuple[ProjectionBinding, ...]
    function: Callable[[Any], Any]
    unrepresentable_members: tuple[str, ...]
    uses_hooks: bool = False

    @property
    def representable(self) -> bool:
        """True when every binding is a plain member path and no hooks run."""
        return not self.unrepresentable_members and not self.uses_hooks

    def binding(self, destination_member: str) -> ProjectionBinding | None:
        for binding in self.bindings:
            if binding.destination_member == destination_member:
                return binding
        return None

    def __call__(self, source: Any) -> Any:
        return self.function(source)

    def project(self, sources: Iterable[Any]) -> Iterator[Any]:
        """Lazily project an iterable of sources."""
        for source in sources:
            yield self.function(source)


def _binding(member_plan: MemberPlan) -> ProjectionBinding:
    if member_plan.ignore:
        return ProjectionBinding(member_plan.destination_name, None, ignored=True)
    if member_plan.resolver is not None or member_plan.source_getter is not None:
        return ProjectionBinding(member_plan.destination_name, None, custom=True)
    source_path = member_plan.source_path.names if member_plan.source_path is not None else None
    return ProjectionBinding(
        member_plan.destination_name,
        source_path,
        custom=member_plan.condition is not None,
    )


def build_projection(configuration: MapperConfiguration, plan: MapPlan) -> Projection:
    mapper = Mapper(configuration)

    def function(source: Any) -> Any:
        return plan.map(source, None, mapper)

    bindings = tuple(_binding(member_plan) for member_plan in plan.member_plans)
    unrepresentable = tuple(
        member_plan.destination_name
        for member_plan in plan.member_plans
        if not member_plan.ignore and member_plan.uses_callables
    )
    return Projection(
        type_pair=plan.type_pair,
        bindings=bindings,
        function=function,
        unrepresentable_members=unrepresentable,
        uses_hooks=plan.has_hooks,
    )
