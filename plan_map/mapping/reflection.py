"""Reflective plan: member plans are interpreted on every call.

Source members are read and destination members written by name through
``getattr``/``setattr`` at call time.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from plan_map.core.context import MappingContext
from plan_map.core.enums import PlanStrategy
from plan_map.mapping.plan import MapPlan, MemberPlan, convert_value

if TYPE_CHECKING:
    from plan_map.core.engine import Mapper


class ReflectionMapPlan(MapPlan):
    """Interprets its member plans via introspection at call time."""

    strategy = PlanStrategy.REFLECTIVE

    def _execute(
        self,
        source: Any,
        destination: Any,
        mapper: Mapper,
        context: MappingContext,
    ) -> None:
        if self._before_map is not None:
            self._before_map(source, destination)

        for member_plan in self._member_plans:
            if member_plan.ignore or not member_plan.is_resolved:
                continue

            value = self._resolve_value(member_plan, source, destination)

            if value is None and member_plan.has_null_substitute:
                value = member_plan.null_substitute

            if member_plan.condition is not None and not member_plan.condition(source, destination):
                continue

            value = convert_value(value, member_plan.destination_type, mapper, context)
            self._assign(member_plan, destination, value)

        if self._after_map is not None:
            self._after_map(source, destination)

    def _resolve_value(self, member_plan: MemberPlan, source: Any, destination: Any) -> Any:
        if member_plan.resolver is not None:
            return member_plan.resolver(source, destination)
        if member_plan.source_getter is not None:
            return member_plan.source_getter(source)
        return self._read_source(member_plan, source)

    def _read_source(self, member_plan: MemberPlan, source: Any) -> Any:
        current = source
        for name in member_plan.source_path.names:  # type: ignore[union-attr]
            if current is None:
                return None
            current = getattr(current, name, None)
        return current

    def _assign(self, member_plan: MemberPlan, destination: Any, value: Any) -> None:
        path = member_plan.destination_path
        target = destination
        for name in path.names[:-1]:
            target = getattr(target, name, None)
            if target is None:
                return
        if path.final_member.frozen:
            object.__setattr__(target, path.final_member.name, value)
        else:
            setattr(target, path.final_member.name, value)
