"""Validation result container."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from plan_map.core.type_pair import TypePair, type_name


@dataclass(frozen=True)
class ValidationMessage:
    """One validation finding, optionally tied to a pair and member."""

    message: str
    source_type: Any = None
    destination_type: Any = None
    member_name: str | None = None

    def __str__(self) -> str:
        parts = []
        if self.source_type is not None and self.destination_type is not None:
            parts.append(f"[{type_name(self.source_type)} -> {type_name(self.destination_type)}]")
        if self.member_name is not None:
            parts.append(f"{self.member_name}:")
        parts.append(self.message)
        return " ".join(parts)


@dataclass
class ValidationResult:
    """Errors and warnings accumulated by the configuration validator.

    A result is valid iff it holds no errors; warnings never affect validity.
    """

    errors: list[ValidationMessage] = field(default_factory=list)
    warnings: list[ValidationMessage] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add_error(
        self,
        message: str,
        type_pair: TypePair | None = None,
        member_name: str | None = None,
    ) -> None:
        self.errors.append(_message(message, type_pair, member_name))

    def add_warning(
        self,
        message: str,
        type_pair: TypePair | None = None,
        member_name: str | None = None,
    ) -> None:
        self.warnings.append(_message(message, type_pair, member_name))

    def merge(self, other: ValidationResult) -> ValidationResult:
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        return self

    def __str__(self) -> str:
        lines = [f"ERROR: {e}" for e in self.errors]
        lines.extend(f"WARNING: {w}" for w in self.warnings)
        return "\n".join(lines) if lines else "Configuration is valid"


def _message(
    message: str, type_pair: TypePair | None, member_name: str | None
) -> ValidationMessage:
    if type_pair is None:
        return ValidationMessage(message, member_name=member_name)
    return ValidationMessage(
        message,
        type_pair.source_type,
        type_pair.destination_type,
        member_name,
    )
