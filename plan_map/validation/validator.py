"""Static configuration validation.

Audits realized plans without executing them:

- destination members with no correspondence (Error for complex types,
  Warning otherwise) and source members nothing reads (Warning);
- type compatibility of members resolved from a source path;
- circular chains between registered pairs.

Members populated by callables or resolvers are not type-audited.
"""

from __future__ import annotations

import logging
import typing
from collections.abc import Collection
from typing import TYPE_CHECKING, Any

from plan_map.core.introspection import (
    collection_element,
    get_members,
    is_complex,
    is_object_type,
    readable_members,
    unwrap_optional,
)
from plan_map.core.type_pair import TypePair, type_name
from plan_map.mapping.plan import MapPlan, MemberPlan
from plan_map.validation.result import ValidationResult

if TYPE_CHECKING:
    from plan_map.core.registry import MapperConfiguration

logger = logging.getLogger(__name__)


def _member_type(annotation: Any) -> Any:
    """Strip Optional and typed-collection wrappers down to the element type."""
    inner, _ = unwrap_optional(annotation)
    collection = collection_element(inner)
    if collection is not None and collection[1] is not None:
        return _member_type(collection[1])
    return inner


class ConfigurationValidator:
    """Validates the plans of one MapperConfiguration.

    Results are memoized per pair for the lifetime of the validator, so
    each pair is audited once per ``validate_all`` run.
    """

    def __init__(self, configuration: MapperConfiguration) -> None:
        self._configuration = configuration
        self._validated: dict[TypePair, ValidationResult] = {}

    def validate_all(self) -> ValidationResult:
        result = ValidationResult()
        plans = self._configuration.plans
        for plan in plans.values():
            result.merge(self._validate_plan(plan))
        result.merge(self.check_circular_references())
        return result

    def validate_mapping(self, source_type: type, destination_type: type) -> ValidationResult:
        plan = self._configuration.try_get_plan(source_type, destination_type)
        if plan is None:
            result = ValidationResult()
            result.add_error(
                "No mapping configuration found", TypePair(source_type, destination_type)
            )
            return result
        return self._validate_plan(plan)

    def _validate_plan(self, plan: MapPlan) -> ValidationResult:
        type_pair = plan.type_pair
        if type_pair in self._validated:
            return ValidationResult()

        result = ValidationResult()
        self._validated[type_pair] = result

        used_sources: set[str] = set()
        for member_plan in plan.member_plans:
            if member_plan.source_path is not None:
                used_sources.add(member_plan.source_path.head)
            if member_plan.ignore:
                continue
            if not member_plan.is_resolved:
                self._report_unmapped(member_plan, type_pair, result)
                continue
            if member_plan.resolver is not None or member_plan.source_getter is not None:
                continue
            self._check_member_types(member_plan, type_pair, result)

        destination_names = set(get_members(plan.destination_type))
        for name in readable_members(plan.source_type):
            if name not in used_sources and name not in destination_names:
                result.add_warning(
                    f"Source member '{name}' is not mapped to any destination member",
                    type_pair,
                    name,
                )
        return result

    def _report_unmapped(
        self,
        member_plan: MemberPlan,
        type_pair: TypePair,
        result: ValidationResult,
    ) -> None:
        name = member_plan.destination_name
        if is_complex(member_plan.destination_type):
            result.add_error(
                f"Cannot map complex destination member '{name}' of type "
                f"'{type_name(member_plan.destination_type)}' - no mapping configuration found",
                type_pair,
                name,
            )
        else:
            result.add_warning(f"Unmapped destination member '{name}'", type_pair, name)

    def _check_member_types(
        self,
        member_plan: MemberPlan,
        type_pair: TypePair,
        result: ValidationResult,
    ) -> None:
        source_type = member_plan.source_path.final_type  # type: ignore[union-attr]
        destination_type = member_plan.destination_type
        if self._is_compatible(source_type, destination_type):
            return
        result.add_error(
            f"Cannot map member '{member_plan.source_path}' of type {type_name(source_type)} "
            f"to member '{member_plan.destination_name}' of type {type_name(destination_type)}",
            type_pair,
            member_plan.destination_name,
        )

    def _is_compatible(self, source_type: Any, destination_type: Any) -> bool:
        if source_type is None or destination_type is None:
            return True
        if source_type == destination_type:
            return True

        source_inner, _ = unwrap_optional(source_type)
        destination_inner, _ = unwrap_optional(destination_type)
        if source_inner == destination_inner or destination_inner is object:
            return True

        source_collection = collection_element(source_inner)
        destination_collection = collection_element(destination_inner)
        if destination_collection is not None:
            if source_collection is None:
                return typing.get_origin(source_inner) is None and isinstance(source_inner, type)
            return self._is_compatible(source_collection[1], destination_collection[1])

        if not isinstance(source_inner, type) or not isinstance(destination_inner, type):
            source_origin = typing.get_origin(source_inner) or source_inner
            destination_origin = typing.get_origin(destination_inner) or destination_inner
            return bool(source_origin == destination_origin)

        if issubclass(source_inner, destination_inner):
            return True

        converters = self._configuration.type_converters
        if converters.has_converter(source_inner, destination_inner):
            return True
        if self._has_nested_plan(source_inner, destination_inner):
            return True
        return converters.can_convert_builtin(source_inner, destination_inner)

    def _has_nested_plan(self, source_type: type, destination_type: type) -> bool:
        plans = self._configuration.plans
        for base in source_type.__mro__:
            if TypePair(base, destination_type) in plans:
                return True
        return (
            self._configuration.options.create_missing_maps
            and is_object_type(source_type)
            and is_object_type(destination_type)
        )

    # --- Cycles ---

    def _edges(self, plan: MapPlan, pairs: Collection[TypePair]) -> list[TypePair]:
        edges: list[TypePair] = []
        for member_plan in plan.member_plans:
            if member_plan.ignore or member_plan.source_path is None:
                continue
            if member_plan.resolver is not None or member_plan.source_getter is not None:
                continue
            nested = TypePair(
                _member_type(member_plan.source_path.final_type),
                _member_type(member_plan.destination_type),
            )
            if nested in pairs and nested != plan.type_pair and nested not in edges:
                edges.append(nested)
        return edges

    def check_circular_references(self) -> ValidationResult:
        """Report each distinct cycle of two or more mutually referencing pairs."""
        result = ValidationResult()
        plans = self._configuration.plans
        graph = {pair: self._edges(plan, plans) for pair, plan in plans.items()}

        finished: set[TypePair] = set()
        reported: set[frozenset[TypePair]] = set()
        stack: list[TypePair] = []

        def visit(pair: TypePair) -> None:
            stack.append(pair)
            for nested in graph[pair]:
                if nested in stack:
                    cycle = stack[stack.index(nested) :]
                    key = frozenset(cycle)
                    if key not in reported:
                        reported.add(key)
                        chain = " => ".join(f"({p})" for p in [*cycle, nested])
                        result.add_error(
                            f"Circular reference detected in mapping chain: {chain}", cycle[0]
                        )
                elif nested not in finished:
                    visit(nested)
            stack.pop()
            finished.add(pair)

        for pair in graph:
            if pair not in finished:
                visit(pair)

        if reported:
            logger.debug("Found %d circular mapping chains", len(reported))
        return result
