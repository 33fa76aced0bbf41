"""Mapping layer - plans, member paths and the configuration DSL."""

from __future__ import annotations

from plan_map.mapping.builder import MappingExpression, MemberOptions
from plan_map.mapping.compiled import CompiledMapPlan
from plan_map.mapping.flattening import FlatteningMapPlan
from plan_map.mapping.path import PropertyPath, find_source_path
from plan_map.mapping.plan import NO_SUBSTITUTE, MapPlan, MemberPlan
from plan_map.mapping.profile import Profile
from plan_map.mapping.projection import Projection, ProjectionBinding
from plan_map.mapping.protocol import Plan
from plan_map.mapping.reflection import ReflectionMapPlan

__all__ = [
    "MappingExpression",
    "MemberOptions",
    "Plan",
    "MapPlan",
    "MemberPlan",
    "NO_SUBSTITUTE",
    "ReflectionMapPlan",
    "FlatteningMapPlan",
    "CompiledMapPlan",
    "PropertyPath",
    "find_source_path",
    "Profile",
    "Projection",
    "ProjectionBinding",
]
