"""Example 01: Basic mapping.

Demonstrates:
- Registering a map between two dataclasses
- Custom member resolution, ignore, null substitute and conditions
- Mapping single objects, lists and into existing instances
"""

from __future__ import annotations

from dataclasses import dataclass

from plan_map import MapperConfiguration


@dataclass
class User:
    id: int
    first_name: str
    last_name: str
    email: str | None
    active: bool


@dataclass
class UserDto:
    id: int = 0
    full_name: str = ""
    email: str = ""
    active: bool = False
    password_hash: str = "<unset>"


def main() -> None:
    configuration = MapperConfiguration()
    configuration.create_map(User, UserDto).for_member(
        "full_name", lambda m: m.map_from(lambda u: f"{u.first_name} {u.last_name}")
    ).for_member("email", lambda m: m.null_substitute("n/a")).for_member(
        "active", lambda m: m.condition(lambda source, dest: source.id > 0)
    ).ignore_members("password_hash")

    mapper = configuration.create_mapper()

    print("=== Basic Mapping ===\n")

    print("1. Single object:")
    dto = mapper.map(User(1, "Alice", "Smith", "alice@example.com", True), UserDto)
    print(f"   {dto}\n")

    print("2. Null substitute:")
    dto = mapper.map(User(2, "Bob", "Jones", None, True), UserDto)
    print(f"   email = {dto.email}\n")

    print("3. List of objects:")
    users = [User(i, f"User{i}", "Test", None, i % 2 == 0) for i in range(1, 4)]
    for item in mapper.map_many(users, UserDto):
        print(f"   - {item.full_name} (active={item.active})")
    print()

    print("4. Into an existing instance:")
    existing = UserDto(password_hash="kept")
    mapper.map_into(User(9, "Carol", "White", "carol@example.com", True), existing)
    print(f"   {existing}\n")


if __name__ == "__main__":
    main()
