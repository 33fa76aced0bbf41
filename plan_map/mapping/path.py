"""Member paths.

A PropertyPath is a resolved chain of members, e.g. ``customer.first_name``
on ``Order``. Reading short-circuits to None as soon as any hop is None
or is missing from the instance.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from plan_map.core.exceptions import MemberNotFoundError
from plan_map.core.introspection import (
    MemberInfo,
    get_members,
    is_object_type,
    readable_members,
    set_member,
    unwrap_optional,
)
from plan_map.core.type_pair import type_name


@dataclass(frozen=True)
class PropertyPath:
    """A resolved chain of members starting at a root type."""

    members: tuple[MemberInfo, ...]

    def __post_init__(self) -> None:
        if not self.members:
            raise ValueError("PropertyPath requires at least one member")

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(m.name for m in self.members)

    @property
    def head(self) -> str:
        return self.members[0].name

    @property
    def final_member(self) -> MemberInfo:
        return self.members[-1]

    @property
    def final_type(self) -> Any:
        return self.members[-1].annotation

    @property
    def is_nested(self) -> bool:
        return len(self.members) > 1

    @classmethod
    def parse(cls, root_type: type, path: str) -> PropertyPath:
        """Resolve a dotted path against a type.

        Raises:
            MemberNotFoundError: If a segment is not a member of the type
                reached so far, or that type cannot be determined.
        """
        members: list[MemberInfo] = []
        current: Any = root_type
        for part in path.split("."):
            owner, _ = unwrap_optional(current)
            if not isinstance(owner, type):
                raise MemberNotFoundError(type_name(owner), part, path)
            member = get_members(owner).get(part)
            if member is None:
                raise MemberNotFoundError(type_name(owner), part, path)
            members.append(member)
            current = member.annotation
        return cls(tuple(members))

    def get_value(self, source: Any) -> Any:
        current = source
        for member in self.members:
            if current is None:
                return None
            current = getattr(current, member.name, None)
        return current

    def set_value(self, target: Any, value: Any) -> bool:
        """Assign the final member; returns False when an intermediate object is None."""
        current = target
        for member in self.members[:-1]:
            current = getattr(current, member.name, None)
            if current is None:
                return False
        set_member(current, self.final_member, value)
        return True

    def getter(self) -> Callable[[Any], Any]:
        """Lower the path into a reader closure."""
        if not self.is_nested:
            head = self.head
            return lambda source: getattr(source, head, None)
        names = self.names

        def read(source: Any) -> Any:
            current = source
            for name in names:
                if current is None:
                    return None
                current = getattr(current, name, None)
            return current

        return read

    def setter(self) -> Callable[[Any, Any], None]:
        """Lower the path into a writer closure."""
        final = self.final_member
        if not self.is_nested:
            if final.frozen:
                return lambda target, value: object.__setattr__(target, final.name, value)
            return lambda target, value: setattr(target, final.name, value)

        def write(target: Any, value: Any) -> None:
            self.set_value(target, value)

        return write

    def __str__(self) -> str:
        return ".".join(self.names)


def find_direct_path(source_type: type, member_name: str) -> PropertyPath | None:
    """A same-named readable source member."""
    member = readable_members(source_type).get(member_name)
    if member is None:
        return None
    return PropertyPath((member,))


def find_source_path(
    source_type: type,
    destination_name: str,
    flattening: bool = True,
) -> PropertyPath | None:
    """Find the source path feeding a destination member.

    Direct match first. With flattening, the destination name is split
    as ``<nested><remaining>`` where ``<nested>`` is an object-typed
    source member, and the search recurses on ``<remaining>`` against
    the nested type. A single ``_`` between the parts is accepted, so
    ``customer_first_name`` resolves to ``customer.first_name``. First
    match wins.
    """
    direct = find_direct_path(source_type, destination_name)
    if direct is not None or not flattening:
        return direct

    for member in readable_members(source_type).values():
        if not is_object_type(member.annotation):
            continue
        if not destination_name.startswith(member.name):
            continue
        remaining = destination_name[len(member.name) :]
        if remaining.startswith("_"):
            remaining = remaining[1:]
        if not remaining:
            continue
        nested_type, _ = unwrap_optional(member.annotation)
        nested = find_source_path(nested_type, remaining, flattening=True)
        if nested is not None:
            return PropertyPath((member, *nested.members))
    return None
