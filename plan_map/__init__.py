"""PlanMap - typed object-to-object mapping plans."""

from __future__ import annotations

from plan_map.core.config import MapperOptions
from plan_map.core.context import MappingContext
from plan_map.core.converters import TypeConverterRegistry
from plan_map.core.engine import Mapper
from plan_map.core.enums import PlanStrategy
from plan_map.core.exceptions import (
    ConfigurationError,
    ConfigurationInvalidError,
    ConfigurationMissingError,
    ConstructionError,
    MappingError,
    MemberNotFoundError,
    NullSourceError,
    PlanCompilationError,
    PlanMapError,
)
from plan_map.core.registry import MapperConfiguration
from plan_map.core.type_pair import TypePair
from plan_map.mapping.builder import MappingExpression, MemberOptions
from plan_map.mapping.plan import MapPlan, MemberPlan
from plan_map.mapping.profile import Profile
from plan_map.mapping.projection import Projection, ProjectionBinding
from plan_map.validation.result import ValidationMessage, ValidationResult
from plan_map.validation.validator import ConfigurationValidator

__all__ = [
    # Configuration
    "MapperConfiguration",
    "MapperOptions",
    "MappingExpression",
    "MemberOptions",
    "Profile",
    # Execution
    "Mapper",
    "MappingContext",
    "MapPlan",
    "MemberPlan",
    "PlanStrategy",
    "TypePair",
    "Projection",
    "ProjectionBinding",
    # Conversion
    "TypeConverterRegistry",
    # Validation
    "ConfigurationValidator",
    "ValidationResult",
    "ValidationMessage",
    # Exceptions
    "PlanMapError",
    "ConfigurationError",
    "ConfigurationMissingError",
    "ConfigurationInvalidError",
    "PlanCompilationError",
    "MemberNotFoundError",
    "MappingError",
    "NullSourceError",
    "ConstructionError",
]
