"""Plan protocol.

All plan strategies implement this interface. The Mapper and nested
member conversion only ever call ``map``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from plan_map.core.context import MappingContext
from plan_map.core.type_pair import TypePair

if TYPE_CHECKING:
    from plan_map.core.engine import Mapper
    from plan_map.mapping.plan import MemberPlan


@runtime_checkable
class Plan(Protocol):
    """Executable transformation for one type pair."""

    @property
    def type_pair(self) -> TypePair:
        """The (source, destination) pair this plan maps."""
        ...

    @property
    def member_plans(self) -> tuple[MemberPlan, ...]:
        """Per-member resolution rules, in destination declaration order."""
        ...

    def map(
        self,
        source: Any,
        destination: Any,
        mapper: Mapper,
        context: MappingContext | None = None,
    ) -> Any:
        """Map source onto destination (created when None) and return it."""
        ...
