"""Example 03: Profiles and validation.

Demonstrates:
- Grouping maps in a Profile
- Validating a configuration at start-up
- Catching ConfigurationInvalidError
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from plan_map import ConfigurationInvalidError, MapperConfiguration, Profile


@dataclass
class Team:
    name: str
    members: list[Member] = field(default_factory=list)


@dataclass
class Member:
    name: str
    team: Team | None = None


@dataclass
class TeamDto:
    name: str = ""
    members: list[MemberDto] = field(default_factory=list)
    motto: str = ""


@dataclass
class MemberDto:
    name: str = ""
    team: TeamDto | None = None


class DirectoryProfile(Profile):
    def configure(self) -> None:
        self.create_map(Team, TeamDto)
        self.create_map(Member, MemberDto)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    configuration = MapperConfiguration(max_depth=3).add_profile(DirectoryProfile)

    print("=== Validation ===\n")
    print(configuration.validate_all())
    print()

    try:
        configuration.assert_valid()
    except ConfigurationInvalidError as exc:
        print(f"Invalid configuration ({len(exc.result.errors)} error(s))\n")

    # Cycles are still mapped safely, cut off at max_depth.
    team = Team("core")
    team.members.append(Member("Ann", team))
    dto = configuration.create_mapper().map(team, TeamDto)
    print(f"Mapped team: {dto.name}, first member: {dto.members[0].name}")


if __name__ == "__main__":
    main()
