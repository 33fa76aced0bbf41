"""PlanMap exception hierarchy.

Errors raised by user code (resolvers, converters, hooks, constructors)
are never wrapped: they propagate to the caller of ``map`` unchanged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from plan_map.core.type_pair import type_name

if TYPE_CHECKING:
    from plan_map.validation.result import ValidationResult


class PlanMapError(Exception):
    """Base exception for all PlanMap errors."""


# --- Configuration ---


class ConfigurationError(PlanMapError):
    """Base for mapping configuration errors."""


class ConfigurationMissingError(ConfigurationError):
    """Raised when no plan is registered for a type pair and none can be derived."""

    def __init__(self, source_type: Any, destination_type: Any) -> None:
        self.source_type = source_type
        self.destination_type = destination_type
        super().__init__(
            f"No mapping configured for {type_name(source_type)} -> "
            f"{type_name(destination_type)}"
        )


class ConfigurationInvalidError(ConfigurationError):
    """Raised by ``assert_valid`` when validation reports at least one error."""

    def __init__(self, result: ValidationResult) -> None:
        self.result = result
        super().__init__(f"Mapping configuration is invalid:\n{result}")


class PlanCompilationError(ConfigurationError):
    """Raised when a mapping expression cannot be lowered into a plan."""


class MemberNotFoundError(PlanCompilationError):
    """Raised when a configured member path does not exist on its type."""

    def __init__(self, type_name: str, member: str, path: str) -> None:
        self.type_name = type_name
        self.member = member
        self.path = path
        super().__init__(f"Member '{member}' not found on type '{type_name}' in path '{path}'")


# --- Mapping ---


class MappingError(PlanMapError):
    """Base for errors raised while executing a plan."""


class NullSourceError(MappingError, ValueError):
    """Raised when ``None`` is passed as the source object."""

    def __init__(self, destination_type: Any) -> None:
        self.destination_type = destination_type
        super().__init__(f"Cannot map None to {type_name(destination_type)}: source is required")


class ConstructionError(MappingError):
    """Raised when a destination instance cannot be created."""

    def __init__(self, destination_type: Any, detail: str) -> None:
        self.destination_type = destination_type
        super().__init__(f"Cannot construct {type_name(destination_type)}: {detail}")
