"""Mapping plan data model.

MemberPlan is a frozen dataclass describing how one destination member
is populated. MapPlan is the base for the three execution strategies;
it owns the recursion guard and destination construction so that every
strategy follows the same order of operations:

    guard entry -> construct -> before_map -> members -> after_map -> guard exit
"""

from __future__ import annotations

import logging
import typing
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

from plan_map.core.context import MappingContext
from plan_map.core.enums import PlanStrategy
from plan_map.core.exceptions import ConstructionError, NullSourceError
from plan_map.core.introspection import collection_element, create_instance, unwrap_optional
from plan_map.core.type_pair import TypePair
from plan_map.mapping.path import PropertyPath

if TYPE_CHECKING:
    from plan_map.core.engine import Mapper

logger = logging.getLogger(__name__)

SourceGetter = Callable[[Any], Any]
Resolver = Callable[[Any, Any], Any]
Condition = Callable[[Any, Any], bool]
Constructor = Callable[[Any], Any]
Hook = Callable[[Any, Any], None]


class _NoSubstitute:
    def __repr__(self) -> str:
        return "NO_SUBSTITUTE"


NO_SUBSTITUTE: Any = _NoSubstitute()


@dataclass(frozen=True)
class MemberPlan:
    """Resolution rule for a single destination member.

    Precedence: ignore, then resolver, then source getter, then source path.
    A plan with none of them is unresolved and leaves the member untouched.
    """

    destination_name: str
    destination_path: PropertyPath
    destination_type: Any = None
    source_path: PropertyPath | None = None
    source_getter: SourceGetter | None = None
    resolver: Resolver | None = None
    ignore: bool = False
    condition: Condition | None = None
    null_substitute: Any = NO_SUBSTITUTE
    explicit: bool = False

    @property
    def has_null_substitute(self) -> bool:
        return self.null_substitute is not NO_SUBSTITUTE

    @property
    def is_resolved(self) -> bool:
        return (
            self.resolver is not None
            or self.source_getter is not None
            or self.source_path is not None
        )

    @property
    def is_flattened(self) -> bool:
        """Auto-derived from a multi-hop source path."""
        return (
            not self.explicit
            and self.source_path is not None
            and self.source_path.is_nested
        )

    @property
    def uses_callables(self) -> bool:
        return (
            self.resolver is not None
            or self.source_getter is not None
            or self.condition is not None
        )


def convert_value(value: Any, target: Any, mapper: Mapper, context: MappingContext) -> Any:
    """Convert a resolved member value to its declared destination type.

    Registered/built-in converters are tried first, then a nested plan
    for the runtime pair. Anything else is returned unconverted. Typed
    homogeneous collections are converted element by element.
    """
    if value is None or target is None:
        return value
    target, _ = unwrap_optional(target)

    collection = collection_element(target)
    if collection is not None:
        factory, element = collection
        if element is None or isinstance(value, (str, bytes, dict)):
            return value
        if not isinstance(value, Iterable):
            return value
        return factory(convert_value(item, element, mapper, context) for item in value)

    if not isinstance(target, type) or typing.get_origin(target) is not None:
        return value
    source_type = type(value)
    if source_type is target:
        return value

    configuration = mapper.configuration
    converted = configuration.type_converters.convert(value, source_type, target)
    if converted is not None:
        return converted
    plan = configuration.find_plan(source_type, target)
    if plan is not None:
        return plan.map(value, None, mapper, context)
    return value


class MapPlan(ABC):
    """Realized, executable transformation for one type pair.

    Plans are read-only after construction and safe to share between
    threads; all per-call state lives in the MappingContext.
    """

    strategy: ClassVar[PlanStrategy]

    def __init__(
        self,
        type_pair: TypePair,
        member_plans: Sequence[MemberPlan],
        constructor: Constructor | None = None,
        before_map: Hook | None = None,
        after_map: Hook | None = None,
    ) -> None:
        self._type_pair = type_pair
        self._member_plans = tuple(member_plans)
        self._constructor = constructor
        self._before_map = before_map
        self._after_map = after_map

    @property
    def type_pair(self) -> TypePair:
        return self._type_pair

    @property
    def source_type(self) -> Any:
        return self._type_pair.source_type

    @property
    def destination_type(self) -> Any:
        return self._type_pair.destination_type

    @property
    def member_plans(self) -> tuple[MemberPlan, ...]:
        return self._member_plans

    @property
    def constructor(self) -> Constructor | None:
        return self._constructor

    @property
    def before_map(self) -> Hook | None:
        return self._before_map

    @property
    def after_map(self) -> Hook | None:
        return self._after_map

    @property
    def has_hooks(self) -> bool:
        return (
            self._constructor is not None
            or self._before_map is not None
            or self._after_map is not None
        )

    def member_plan(self, destination_name: str) -> MemberPlan | None:
        for member_plan in self._member_plans:
            if member_plan.destination_name == destination_name:
                return member_plan
        return None

    def map(
        self,
        source: Any,
        destination: Any,
        mapper: Mapper,
        context: MappingContext | None = None,
    ) -> Any:
        """Map source onto destination, creating the destination if None.

        Raises:
            NullSourceError: If source is None.
        """
        if source is None:
            raise NullSourceError(self.destination_type)
        if context is None:
            context = mapper.new_context()

        type_pair = self._type_pair
        if context.is_at_limit(type_pair):
            context.record_truncation()
            logger.debug(
                "Max depth %d reached for %s; truncating branch", context.max_depth, type_pair
            )
            return destination if destination is not None else self._create_destination(source)

        with context.track(type_pair):
            if destination is None:
                destination = self._create_destination(source)
            self._execute(source, destination, mapper, context)
        return destination

    def _create_destination(self, source: Any) -> Any:
        if self._constructor is not None:
            instance = self._constructor(source)
            if instance is None:
                raise ConstructionError(self.destination_type, "constructor returned None")
            return instance
        return create_instance(self.destination_type)

    @abstractmethod
    def _execute(
        self,
        source: Any,
        destination: Any,
        mapper: Mapper,
        context: MappingContext,
    ) -> None:
        """Run hooks and member plans against a constructed destination."""

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self._type_pair}, "
            f"members={[m.destination_name for m in self._member_plans]})"
        )
