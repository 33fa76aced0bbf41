"""Static validation of mapping configurations."""

from __future__ import annotations

from plan_map.validation.result import ValidationMessage, ValidationResult
from plan_map.validation.validator import ConfigurationValidator

__all__ = [
    "ConfigurationValidator",
    "ValidationMessage",
    "ValidationResult",
]
