"""Shared test fixtures."""

from __future__ import annotations

import pytest

from plan_map.core.engine import Mapper
from plan_map.core.enums import PlanStrategy
from plan_map.core.registry import MapperConfiguration


@pytest.fixture
def configuration() -> MapperConfiguration:
    """Configuration with default options."""
    return MapperConfiguration()


@pytest.fixture
def mapper(configuration: MapperConfiguration) -> Mapper:
    """Mapper bound to the ``configuration`` fixture."""
    return configuration.create_mapper()


@pytest.fixture(params=list(PlanStrategy), ids=lambda s: s.value)
def strategy(request: pytest.FixtureRequest) -> PlanStrategy:
    """Every plan strategy, for behavior that must not depend on the variant."""
    return request.param
