"""Plan strategy enumeration."""

from __future__ import annotations

from enum import Enum


class PlanStrategy(Enum):
    """Execution strategies a realized plan can use."""

    REFLECTIVE = "reflective"
    FLATTENING = "flattening"
    COMPILED = "compiled"
