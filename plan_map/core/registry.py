"""Mapper configuration - the registry of realized plans.

Plans are keyed by TypePair. The plan table is copy-on-write: writers
take the registry lock and swap in a new dict, readers look up the
current dict without locking and so never observe a half-built plan.
"""

from __future__ import annotations

import logging
import threading
import types
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from plan_map.core.config import MapperOptions
from plan_map.core.converters import Converter, TypeConverterRegistry
from plan_map.core.engine import Mapper
from plan_map.core.exceptions import ConfigurationInvalidError, ConfigurationMissingError
from plan_map.core.introspection import is_object_type
from plan_map.core.type_pair import TypePair
from plan_map.mapping.builder import MappingExpression
from plan_map.mapping.plan import MapPlan
from plan_map.mapping.projection import Projection, build_projection
from plan_map.validation.result import ValidationResult
from plan_map.validation.validator import ConfigurationValidator

if TYPE_CHECKING:
    from plan_map.mapping.profile import Profile

logger = logging.getLogger(__name__)


class MapperConfiguration:
    """Holds every plan, converter and option of one mapper setup.

    Args:
        options: Global options. Keyword overrides are applied on top.

    Example:
        config = MapperConfiguration(max_depth=5)
        config.create_map(Order, OrderDto)
        mapper = config.create_mapper()
    """

    def __init__(self, options: MapperOptions | None = None, **overrides: Any) -> None:
        if options is None:
            options = MapperOptions(**overrides)
        elif overrides:
            options = MapperOptions(**{**options.model_dump(), **overrides})
        self._options = options
        self._type_converters = TypeConverterRegistry()
        self._lock = threading.RLock()
        self._plans: dict[TypePair, MapPlan] = {}
        self._expressions: dict[TypePair, MappingExpression] = {}

    @property
    def options(self) -> MapperOptions:
        return self._options

    @property
    def type_converters(self) -> TypeConverterRegistry:
        return self._type_converters

    # --- Registration ---

    def create_map(
        self,
        source_type: type,
        destination_type: type,
        configure: Callable[[MappingExpression], Any] | None = None,
    ) -> MappingExpression:
        """Register a type pair and publish its plan.

        Args:
            source_type: Type read from.
            destination_type: Type written to.
            configure: Optional callback receiving the builder. All calls it
                makes are published as a single plan.

        Returns:
            The builder, bound to this configuration.
        """
        expression = MappingExpression(source_type, destination_type, self)
        with expression.deferred():
            if configure is not None:
                configure(expression)
        with self._lock:
            self._expressions[expression.type_pair] = expression
        return expression

    def build_plan(
        self,
        source_type: type,
        destination_type: type,
        configure: Callable[[MappingExpression], Any] | None = None,
    ) -> MapPlan:
        """Build a plan with this configuration's options without publishing it."""
        expression = MappingExpression(source_type, destination_type, self, publish=False)
        if configure is not None:
            configure(expression)
        return expression.build_plan()

    def publish(self, plan: MapPlan) -> None:
        """Atomically replace the plan for its type pair."""
        with self._lock:
            plans = dict(self._plans)
            plans[plan.type_pair] = plan
            self._plans = plans
        logger.debug("Published %s for %s", type(plan).__name__, plan.type_pair)

    def add_type_converter(
        self,
        source_type: type,
        destination_type: type,
        converter: Converter,
    ) -> MapperConfiguration:
        self._type_converters.add_converter(source_type, destination_type, converter)
        return self

    def add_profile(self, profile: Profile | type[Profile]) -> MapperConfiguration:
        """Replay a profile's mapping definitions against this configuration."""
        if isinstance(profile, type):
            profile = profile()
        expressions = profile.expressions
        for expression in expressions:
            expression.attach(self)
            with self._lock:
                self._expressions[expression.type_pair] = expression
        logger.debug("Added profile %s (%d maps)", profile.name, len(expressions))
        return self

    def add_profiles(self, *profiles: Profile | type[Profile]) -> MapperConfiguration:
        for profile in profiles:
            self.add_profile(profile)
        return self

    # --- Lookup ---

    def try_get_plan(self, source_type: Any, destination_type: Any) -> MapPlan | None:
        """Exact-pair lookup."""
        return self._plans.get(TypePair(source_type, destination_type))

    def find_plan(self, source_type: Any, destination_type: Any) -> MapPlan | None:
        """Exact pair, then the source's base classes, then an on-demand plan.

        The on-demand plan is only created when ``create_missing_maps`` is
        left on (the default) and both types are object shapes.
        """
        plans = self._plans
        plan = plans.get(TypePair(source_type, destination_type))
        if plan is not None:
            return plan
        if isinstance(source_type, type):
            for base in source_type.__mro__[1:]:
                plan = plans.get(TypePair(base, destination_type))
                if plan is not None:
                    return plan
        if (
            self._options.create_missing_maps
            and is_object_type(source_type)
            and is_object_type(destination_type)
        ):
            return self.ensure_plan(source_type, destination_type)
        return None

    def get_plan(self, source_type: Any, destination_type: Any) -> MapPlan:
        """Like ``find_plan`` but raises when nothing applies.

        Raises:
            ConfigurationMissingError: If no plan exists for the pair.
        """
        plan = self.find_plan(source_type, destination_type)
        if plan is None:
            raise ConfigurationMissingError(source_type, destination_type)
        return plan

    def ensure_plan(self, source_type: type, destination_type: type) -> MapPlan:
        """Return the plan for a pair, creating a default one if absent."""
        type_pair = TypePair(source_type, destination_type)
        plan = self._plans.get(type_pair)
        if plan is not None:
            return plan
        with self._lock:
            plan = self._plans.get(type_pair)
            if plan is None:
                self.create_map(source_type, destination_type)
                plan = self._plans[type_pair]
                logger.debug("Created missing map for %s", type_pair)
        return plan

    def expression(self, source_type: type, destination_type: type) -> MappingExpression | None:
        """The builder that produced the current plan for a pair, if any."""
        return self._expressions.get(TypePair(source_type, destination_type))

    def has_plan(self, source_type: Any, destination_type: Any) -> bool:
        return TypePair(source_type, destination_type) in self._plans

    @property
    def type_pairs(self) -> list[TypePair]:
        """Registered pairs in registration order."""
        return list(self._plans)

    @property
    def plans(self) -> types.MappingProxyType[TypePair, MapPlan]:
        """Read-only snapshot of the plan table."""
        return types.MappingProxyType(self._plans)

    def __len__(self) -> int:
        return len(self._plans)

    # --- Validation ---

    def validate_all(self) -> ValidationResult:
        """Validate every registered pair and check for circular mapping chains."""
        result = ConfigurationValidator(self).validate_all()
        logger.info(
            "Validated %d mappings: %d errors, %d warnings",
            len(self._plans),
            len(result.errors),
            len(result.warnings),
        )
        return result

    def validate_mapping(self, source_type: type, destination_type: type) -> ValidationResult:
        return ConfigurationValidator(self).validate_mapping(source_type, destination_type)

    def assert_valid(self) -> ValidationResult:
        """Validate everything and raise if any error was found.

        Raises:
            ConfigurationInvalidError: Carrying the full validation result.
        """
        result = self.validate_all()
        if not result.is_valid:
            raise ConfigurationInvalidError(result)
        return result

    # --- Collaborators ---

    def create_mapper(self) -> Mapper:
        return Mapper(self)

    def projection(self, source_type: type, destination_type: type) -> Projection:
        """Pure projection function plus member bindings for a registered pair.

        Raises:
            ConfigurationMissingError: If no plan exists for the pair.
        """
        return build_projection(self, self.get_plan(source_type, destination_type))

    def __repr__(self) -> str:
        return f"MapperConfiguration(plans={len(self._plans)}, options={self._options!r})"
