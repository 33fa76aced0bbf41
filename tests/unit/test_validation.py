"""Unit tests for ConfigurationValidator."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

import pytest

from plan_map.core.exceptions import ConfigurationInvalidError
from plan_map.core.registry import MapperConfiguration
from plan_map.validation.result import ValidationMessage, ValidationResult
from plan_map.validation.validator import ConfigurationValidator


@dataclass
class Address:
    city: str


@dataclass
class AddressDto:
    city: str = ""


@dataclass
class Person:
    name: str
    age: int


@dataclass
class PersonDto:
    name: str = ""
    age: int = 0


@dataclass
class PersonWithAddressDto:
    name: str = ""
    age: int = 0
    address: AddressDto | None = None


@dataclass
class PersonWithNicknameDto:
    name: str = ""
    age: int = 0
    nickname: str = ""


@dataclass
class Resident:
    name: str
    age: int
    address: Address


@dataclass
class Employee:
    name: str
    age: int
    badge: uuid.UUID
    salary: float


@dataclass
class EmployeeDto:
    name: str = ""
    age: int = 0
    badge: int = 0
    salary: str = ""


@dataclass
class Department:
    name: str
    manager: Manager | None = None


@dataclass
class Manager:
    name: str
    department: Department | None = None


@dataclass
class DepartmentDto:
    name: str = ""
    manager: ManagerDto | None = None


@dataclass
class ManagerDto:
    name: str = ""
    department: DepartmentDto | None = None


@dataclass
class TreeNode:
    label: str
    children: list[TreeNode] = field(default_factory=list)


@dataclass
class TreeNodeDto:
    label: str = ""
    children: list[TreeNodeDto] = field(default_factory=list)


def messages(entries: list[ValidationMessage]) -> list[str]:
    return [entry.message for entry in entries]


class TestMemberAudit:
    def test_fully_mapped_pair_is_clean(self, configuration: MapperConfiguration) -> None:
        configuration.create_map(Person, PersonDto)
        result = configuration.validate_all()
        assert result.is_valid
        assert result.warnings == []

    def test_unmapped_complex_member_is_an_error(self, configuration: MapperConfiguration) -> None:
        configuration.create_map(Person, PersonWithAddressDto)
        result = configuration.validate_all()
        assert not result.is_valid
        expected = "Cannot map complex destination member 'address'"
        assert any(expected in m for m in messages(result.errors))

    def test_unmapped_scalar_member_is_a_warning(self, configuration: MapperConfiguration) -> None:
        configuration.create_map(Person, PersonWithNicknameDto)
        result = configuration.validate_all()
        assert result.is_valid
        assert messages(result.warnings) == ["Unmapped destination member 'nickname'"]
        assert result.warnings[0].member_name == "nickname"
        assert result.warnings[0].destination_type is PersonWithNicknameDto

    def test_ignored_member_is_not_reported(self, configuration: MapperConfiguration) -> None:
        configuration.create_map(
            Person, PersonWithAddressDto, lambda e: e.ignore_members("address")
        )
        assert configuration.validate_all().is_valid

    def test_custom_resolution_is_not_reported(self, configuration: MapperConfiguration) -> None:
        configuration.create_map(
            Person,
            PersonWithNicknameDto,
            lambda e: e.for_member("nickname", lambda m: m.map_from(lambda p: p.name[:3])),
        )
        result = configuration.validate_all()
        assert result.is_valid
        assert result.warnings == []

    def test_unused_source_member_is_a_warning(self, configuration: MapperConfiguration) -> None:
        configuration.create_map(Person, AddressDto)
        result = configuration.validate_all()
        expected = "Source member 'age' is not mapped to any destination member"
        assert expected in messages(result.warnings)

    def test_validate_mapping_without_plan(self, configuration: MapperConfiguration) -> None:
        result = configuration.validate_mapping(Person, PersonDto)
        assert messages(result.errors) == ["No mapping configuration found"]


class TestTypeCompatibility:
    def test_incompatible_member_type_is_an_error(self, configuration: MapperConfiguration) -> None:
        configuration.create_map(Employee, EmployeeDto)
        result = configuration.validate_all()
        assert [e.member_name for e in result.errors] == ["badge"]

    def test_registered_converter_makes_types_compatible(
        self, configuration: MapperConfiguration
    ) -> None:
        configuration.add_type_converter(uuid.UUID, int, lambda u: u.int)
        configuration.create_map(Employee, EmployeeDto)
        assert configuration.validate_all().is_valid

    def test_nested_plan_makes_types_compatible(self, configuration: MapperConfiguration) -> None:
        configuration.create_map(Address, AddressDto)
        configuration.create_map(Resident, PersonWithAddressDto)
        assert configuration.validate_all().is_valid

    def test_collection_elements_are_checked(self, configuration: MapperConfiguration) -> None:
        configuration.create_map(TreeNode, TreeNodeDto)
        assert configuration.validate_all().is_valid


class TestCircularReferences:
    def test_mutual_registrations_are_an_error(self, configuration: MapperConfiguration) -> None:
        configuration.create_map(Department, DepartmentDto)
        configuration.create_map(Manager, ManagerDto)
        result = configuration.validate_all()
        circular = [m for m in messages(result.errors) if "Circular reference" in m]
        assert len(circular) == 1

    def test_self_reference_is_not_an_error(self, configuration: MapperConfiguration) -> None:
        configuration.create_map(TreeNode, TreeNodeDto)
        validator = ConfigurationValidator(configuration)
        assert validator.check_circular_references().errors == []

    def test_assert_valid_raises(self, configuration: MapperConfiguration) -> None:
        configuration.create_map(Department, DepartmentDto)
        configuration.create_map(Manager, ManagerDto)
        with pytest.raises(ConfigurationInvalidError, match="Circular reference") as exc_info:
            configuration.assert_valid()
        assert not exc_info.value.result.is_valid

    def test_assert_valid_passes(self, configuration: MapperConfiguration) -> None:
        configuration.create_map(Person, PersonDto)
        assert configuration.assert_valid().is_valid


class TestValidationResult:
    def test_merge(self) -> None:
        first = ValidationResult()
        first.add_error("bad")
        second = ValidationResult()
        second.add_warning("meh")
        first.merge(second)
        assert messages(first.errors) == ["bad"]
        assert messages(first.warnings) == ["meh"]
        assert not first.is_valid

    def test_str(self) -> None:
        result = ValidationResult()
        assert str(result) == "Configuration is valid"
        result.add_warning("Unmapped destination member 'x'")
        assert str(result) == "WARNING: Unmapped destination member 'x'"
