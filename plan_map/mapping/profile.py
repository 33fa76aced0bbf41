"""Mapping profiles.

A Profile groups related mapping definitions. Subclasses override
``configure`` and call ``self.create_map``; the recorded builders stay
detached until the profile is added to a MapperConfiguration.

Example:
    class OrderProfile(Profile):
        def configure(self) -> None:
            self.create_map(Order, OrderDto).for_member(
                "total", lambda m: m.map_from(lambda o: o.subtotal + o.tax)
            )

    config = MapperConfiguration()
    config.add_profile(OrderProfile)
"""

from __future__ import annotations

from plan_map.mapping.builder import MappingExpression


class Profile:
    """Base class for groups of mapping definitions."""

    def __init__(self) -> None:
        self._expressions: list[MappingExpression] = []
        self._configured = False

    @property
    def name(self) -> str:
        return type(self).__name__

    def configure(self) -> None:
        """Declare mappings with ``self.create_map``. Called once."""

    def create_map(self, source_type: type, destination_type: type) -> MappingExpression:
        expression = MappingExpression(source_type, destination_type)
        self._expressions.append(expression)
        return expression

    @property
    def expressions(self) -> tuple[MappingExpression, ...]:
        """Recorded builders, running ``configure`` on first access."""
        if not self._configured:
            self._configured = True
            self.configure()
        return tuple(self._expressions)

    def __repr__(self) -> str:
        return f"{self.name}(maps={len(self._expressions)})"
