"""Flattening plan.

Same execution as the reflective plan, but source values are read
through resolved PropertyPath objects, so auto-derived multi-hop paths
(``customer_first_name`` <- ``customer.first_name``) are followed with a
single None short-circuit.
"""

from __future__ import annotations

from typing import Any

from plan_map.core.enums import PlanStrategy
from plan_map.mapping.plan import MemberPlan
from plan_map.mapping.reflection import ReflectionMapPlan


class FlatteningMapPlan(ReflectionMapPlan):
    """Reflective plan with resolved multi-hop source paths."""

    strategy = PlanStrategy.FLATTENING

    @property
    def flattened_members(self) -> dict[str, str]:
        """Destination member -> dotted source path, for auto-flattened members."""
        return {
            member_plan.destination_name: str(member_plan.source_path)
            for member_plan in self._member_plans
            if member_plan.is_flattened
        }

    def _read_source(self, member_plan: MemberPlan, source: Any) -> Any:
        return member_plan.source_path.get_value(source)  # type: ignore[union-attr]

    def _assign(self, member_plan: MemberPlan, destination: Any, value: Any) -> None:
        member_plan.destination_path.set_value(destination, value)
