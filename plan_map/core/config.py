"""Mapper options.

MapperOptions is a Pydantic model so that invalid settings fail at
construction time rather than in the middle of a mapping call.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_MAX_DEPTH = 10


class MapperOptions(BaseModel):
    """Global options shared by every plan in a MapperConfiguration."""

    model_config = ConfigDict(frozen=True)

    use_compiled_plans: bool = True
    enable_flattening: bool = True
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1)
    create_missing_maps: bool = True
