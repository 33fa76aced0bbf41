"""Plan execution tests, run against every plan strategy."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

import pytest
from pydantic import BaseModel, ConfigDict

from plan_map.core.context import MappingContext
from plan_map.core.engine import Mapper
from plan_map.core.enums import PlanStrategy
from plan_map.core.exceptions import ConstructionError, NullSourceError
from plan_map.core.registry import MapperConfiguration
from plan_map.mapping.builder import MappingExpression


@dataclass
class Customer:
    first_name: str
    last_name: str


@dataclass
class Order:
    id: int
    customer: Customer | None
    subtotal: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    note: str | None = None
    status: str = "new"


@dataclass
class OrderDto:
    id: int = 0
    customer_first_name: str | None = None
    customer_last_name: str | None = None
    note: str | None = None
    status: str = ""
    total: Decimal | None = None


class OrderModel(BaseModel):
    id: int
    customer_first_name: str | None = None
    status: str


class FrozenOrderModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    status: str


@dataclass(frozen=True)
class OrderSummary:
    id: int
    status: str


@dataclass
class CustomerDto:
    first_name: str = ""
    last_name: str = ""


@dataclass
class LineItem:
    sku: str
    quantity: int


@dataclass
class LineItemDto:
    sku: str = ""
    quantity: int = 0


@dataclass
class Cart:
    owner: Customer
    items: list[LineItem]
    tags: tuple[str, ...] = ()


@dataclass
class CartDto:
    owner: CustomerDto | None = None
    items: list[LineItemDto] = field(default_factory=list)
    tags: tuple[str, ...] = ()


@dataclass(eq=False, repr=False)
class Parent:
    name: str
    child: Child | None = None


@dataclass(eq=False, repr=False)
class Child:
    name: str
    parent: Parent | None = None


@dataclass(eq=False, repr=False)
class ParentDto:
    name: str = ""
    child: ChildDto | None = None


@dataclass(eq=False, repr=False)
class ChildDto:
    name: str = ""
    parent: ParentDto | None = None


class Signature:
    def __init__(self, first: str, last: str) -> None:
        self.full = f"{first} {last}"


class Ticket:
    seat: str

    def __init__(self, code: str) -> None:
        self.code = code


@dataclass
class SignatureDto:
    first: str = ""
    full: str = ""


@dataclass
class TicketDto:
    code: str = ""
    seat: str | None = "unassigned"


Configure = Callable[[MappingExpression], Any]


def register(
    configuration: MapperConfiguration,
    strategy: PlanStrategy,
    source_type: type = Order,
    destination_type: type = OrderDto,
    configure: Configure | None = None,
) -> MappingExpression:
    def setup(expression: MappingExpression) -> None:
        expression.use_strategy(strategy)
        if configure is not None:
            configure(expression)

    return configuration.create_map(source_type, destination_type, setup)


def make_order(**overrides: Any) -> Order:
    values: dict[str, Any] = {
        "id": 1,
        "customer": Customer("Ann", "Lee"),
        "subtotal": Decimal("10"),
        "tax": Decimal("2"),
        "note": "leave at door",
        "status": "new",
    }
    values.update(overrides)
    return Order(**values)


class TestMemberResolution:
    def test_same_named_members_are_copied(
        self, configuration: MapperConfiguration, mapper: Mapper, strategy: PlanStrategy
    ) -> None:
        register(configuration, strategy)
        result = mapper.map(make_order(), OrderDto)
        assert result.id == 1
        assert result.note == "leave at door"
        assert result.status == "new"

    def test_plan_uses_requested_strategy(
        self, configuration: MapperConfiguration, strategy: PlanStrategy
    ) -> None:
        register(configuration, strategy)
        plan = configuration.try_get_plan(Order, OrderDto)
        assert plan is not None
        assert plan.strategy is strategy

    def test_flattened_members(
        self, configuration: MapperConfiguration, mapper: Mapper, strategy: PlanStrategy
    ) -> None:
        register(configuration, strategy)
        result = mapper.map(make_order(), OrderDto)
        assert result.customer_first_name == "Ann"
        assert result.customer_last_name == "Lee"

    def test_flattening_through_none_yields_none(
        self, configuration: MapperConfiguration, mapper: Mapper, strategy: PlanStrategy
    ) -> None:
        register(configuration, strategy)
        result = mapper.map(make_order(customer=None), OrderDto)
        assert result.customer_first_name is None
        assert result.customer_last_name is None

    def test_unresolved_member_keeps_default(
        self, configuration: MapperConfiguration, mapper: Mapper, strategy: PlanStrategy
    ) -> None:
        register(configuration, strategy)
        assert mapper.map(make_order(), OrderDto).total is None

    def test_map_from_callable(
        self, configuration: MapperConfiguration, mapper: Mapper, strategy: PlanStrategy
    ) -> None:
        register(
            configuration,
            strategy,
            configure=lambda e: e.for_member(
                "total", lambda m: m.map_from(lambda o: o.subtotal + o.tax)
            ),
        )
        assert mapper.map(make_order(), OrderDto).total == Decimal("12")

    def test_map_from_dotted_path(
        self, configuration: MapperConfiguration, mapper: Mapper, strategy: PlanStrategy
    ) -> None:
        register(
            configuration,
            strategy,
            configure=lambda e: e.for_member(
                "customer_first_name", lambda m: m.map_from("customer.last_name")
            ),
        )
        assert mapper.map(make_order(), OrderDto).customer_first_name == "Lee"

    def test_resolver_sees_destination(
        self, configuration: MapperConfiguration, mapper: Mapper, strategy: PlanStrategy
    ) -> None:
        register(
            configuration,
            strategy,
            configure=lambda e: e.for_member(
                "status", lambda m: m.resolve_using(lambda s, d: f"{d.id}-{s.status}")
            ),
        )
        assert mapper.map(make_order(), OrderDto).status == "1-new"

    def test_resolver_errors_propagate(
        self, configuration: MapperConfiguration, mapper: Mapper, strategy: PlanStrategy
    ) -> None:
        def fail(source: Order, destination: OrderDto) -> str:
            raise LookupError("no status")

        register(
            configuration,
            strategy,
            configure=lambda e: e.for_member("status", lambda m: m.resolve_using(fail)),
        )
        with pytest.raises(LookupError, match="no status"):
            mapper.map(make_order(), OrderDto)


class TestIgnoreAndSubstitution:
    def test_ignored_member_is_never_populated(
        self, configuration: MapperConfiguration, mapper: Mapper, strategy: PlanStrategy
    ) -> None:
        register(
            configuration,
            strategy,
            configure=lambda e: e.for_member("status", lambda m: m.ignore()),
        )
        assert mapper.map(make_order(status="paid"), OrderDto).status == ""

    def test_ignore_members(
        self, configuration: MapperConfiguration, mapper: Mapper, strategy: PlanStrategy
    ) -> None:
        register(configuration, strategy, configure=lambda e: e.ignore_members("status", "note"))
        result = mapper.map(make_order(), OrderDto)
        assert result.status == ""
        assert result.note is None
        assert result.id == 1

    def test_null_substitute(
        self, configuration: MapperConfiguration, mapper: Mapper, strategy: PlanStrategy
    ) -> None:
        register(
            configuration,
            strategy,
            configure=lambda e: e.for_member("note", lambda m: m.null_substitute("n/a")),
        )
        assert mapper.map(make_order(note=None), OrderDto).note == "n/a"
        assert mapper.map(make_order(note="ring"), OrderDto).note == "ring"

    def test_null_substitute_on_flattened_member(
        self, configuration: MapperConfiguration, mapper: Mapper, strategy: PlanStrategy
    ) -> None:
        register(
            configuration,
            strategy,
            configure=lambda e: e.for_member(
                "customer_first_name", lambda m: m.null_substitute("guest")
            ),
        )
        assert mapper.map(make_order(customer=None), OrderDto).customer_first_name == "guest"

    def test_false_condition_suppresses_substituted_value(
        self, configuration: MapperConfiguration, mapper: Mapper, strategy: PlanStrategy
    ) -> None:
        register(
            configuration,
            strategy,
            configure=lambda e: e.for_member(
                "note",
                lambda m: m.null_substitute("n/a").condition(lambda s, d: s.status == "paid"),
            ),
        )
        assert mapper.map(make_order(note=None, status="new"), OrderDto).note is None
        assert mapper.map(make_order(note=None, status="paid"), OrderDto).note == "n/a"


class TestHooksAndConstruction:
    def test_hook_order(
        self, configuration: MapperConfiguration, mapper: Mapper, strategy: PlanStrategy
    ) -> None:
        calls: list[str] = []

        def resolve(source: Order, destination: OrderDto) -> str:
            calls.append("member")
            return source.status

        register(
            configuration,
            strategy,
            configure=lambda e: (
                e.before_map(lambda s, d: calls.append("before"))
                .after_map(lambda s, d: calls.append("after"))
                .for_member("status", lambda m: m.resolve_using(resolve))
            ),
        )
        mapper.map(make_order(), OrderDto)
        assert calls == ["before", "member", "after"]

    def test_after_map_wins(
        self, configuration: MapperConfiguration, mapper: Mapper, strategy: PlanStrategy
    ) -> None:
        def override(source: Order, destination: OrderDto) -> None:
            destination.status = "overridden"

        register(configuration, strategy, configure=lambda e: e.after_map(override))
        assert mapper.map(make_order(status="paid"), OrderDto).status == "overridden"

    def test_construct_using(
        self, configuration: MapperConfiguration, mapper: Mapper, strategy: PlanStrategy
    ) -> None:
        seen: list[Order] = []

        def factory(source: Order) -> OrderDto:
            seen.append(source)
            return OrderDto(total=Decimal("99"))

        register(configuration, strategy, configure=lambda e: e.construct_using(factory))
        order = make_order()
        result = mapper.map(order, OrderDto)
        assert seen == [order]
        assert result.total == Decimal("99")
        assert result.id == 1

    def test_constructor_returning_none(
        self, configuration: MapperConfiguration, mapper: Mapper, strategy: PlanStrategy
    ) -> None:
        register(configuration, strategy, configure=lambda e: e.construct_using(lambda s: None))
        with pytest.raises(ConstructionError):
            mapper.map(make_order(), OrderDto)

    def test_existing_destination_is_populated(
        self, configuration: MapperConfiguration, mapper: Mapper, strategy: PlanStrategy
    ) -> None:
        register(configuration, strategy)
        existing = OrderDto(total=Decimal("5"))
        result = mapper.map(make_order(), OrderDto, existing)
        assert result is existing
        assert existing.id == 1
        assert existing.total == Decimal("5")

    def test_none_source_raises(
        self, configuration: MapperConfiguration, mapper: Mapper, strategy: PlanStrategy
    ) -> None:
        register(configuration, strategy)
        plan = configuration.get_plan(Order, OrderDto)
        with pytest.raises(NullSourceError):
            plan.map(None, None, mapper)


class TestDestinationShapes:
    def test_pydantic_destination(
        self, configuration: MapperConfiguration, mapper: Mapper, strategy: PlanStrategy
    ) -> None:
        register(configuration, strategy, destination_type=OrderModel)
        result = mapper.map(make_order(), OrderModel)
        assert isinstance(result, OrderModel)
        assert result.id == 1
        assert result.customer_first_name == "Ann"
        assert result.status == "new"

    def test_frozen_pydantic_destination(
        self, configuration: MapperConfiguration, mapper: Mapper, strategy: PlanStrategy
    ) -> None:
        register(configuration, strategy, destination_type=FrozenOrderModel)
        result = mapper.map(make_order(status="paid"), FrozenOrderModel)
        assert result.id == 1
        assert result.status == "paid"

    def test_frozen_dataclass_destination(
        self, configuration: MapperConfiguration, mapper: Mapper, strategy: PlanStrategy
    ) -> None:
        register(configuration, strategy, destination_type=OrderSummary)
        result = mapper.map(make_order(status="paid"), OrderSummary)
        assert result == OrderSummary(id=1, status="paid")


class TestSourceShapes:
    def test_plain_class_source(
        self, configuration: MapperConfiguration, mapper: Mapper, strategy: PlanStrategy
    ) -> None:
        register(configuration, strategy, Signature, SignatureDto)
        result = mapper.map(Signature("Ann", "Lee"), SignatureDto)
        assert result == SignatureDto(first="", full="Ann Lee")

    def test_declared_but_unset_attribute_reads_as_none(
        self, configuration: MapperConfiguration, mapper: Mapper, strategy: PlanStrategy
    ) -> None:
        register(configuration, strategy, Ticket, TicketDto)
        result = mapper.map(Ticket("A-12"), TicketDto)
        assert result.code == "A-12"
        assert result.seat is None


class TestNestedMapping:
    @pytest.fixture
    def cart_configuration(
        self, configuration: MapperConfiguration, strategy: PlanStrategy
    ) -> MapperConfiguration:
        register(configuration, strategy, Customer, CustomerDto)
        register(configuration, strategy, LineItem, LineItemDto)
        register(configuration, strategy, Cart, CartDto)
        return configuration

    def test_nested_object_uses_registered_plan(
        self, cart_configuration: MapperConfiguration
    ) -> None:
        mapper = cart_configuration.create_mapper()
        cart = Cart(Customer("Ann", "Lee"), [])
        result = mapper.map(cart, CartDto)
        assert result.owner == CustomerDto("Ann", "Lee")

    def test_collections_are_mapped_element_wise(
        self, cart_configuration: MapperConfiguration
    ) -> None:
        mapper = cart_configuration.create_mapper()
        cart = Cart(Customer("Ann", "Lee"), [LineItem("A-1", 2), LineItem("B-7", 1)], ("gift",))
        result = mapper.map(cart, CartDto)
        assert result.items == [LineItemDto("A-1", 2), LineItemDto("B-7", 1)]
        assert result.tags == ("gift",)


class TestRecursionGuard:
    @staticmethod
    def _cycle() -> Parent:
        parent = Parent("root")
        parent.child = Child("leaf", parent)
        return parent

    def test_reference_cycle_terminates(self, strategy: PlanStrategy) -> None:
        configuration = MapperConfiguration()
        register(configuration, strategy, Parent, ParentDto)
        register(configuration, strategy, Child, ChildDto)
        result = configuration.create_mapper().map(self._cycle(), ParentDto)
        assert result.name == "root"
        assert result.child is not None
        assert result.child.parent is not None
        assert result.child.parent.name == "root"

    def test_cycle_is_cut_at_max_depth(self, strategy: PlanStrategy) -> None:
        configuration = MapperConfiguration()
        register(configuration, strategy, Parent, ParentDto)
        register(configuration, strategy, Child, ChildDto)
        mapper = configuration.create_mapper()
        context = MappingContext(max_depth=2)

        result = mapper.map(self._cycle(), ParentDto, context=context)

        second = result.child.parent  # type: ignore[union-attr]
        assert second.name == "root"
        truncated = second.child.parent  # type: ignore[union-attr]
        assert truncated.name == ""
        assert truncated.child is None
        assert context.truncations == 1
        assert context.active_pairs == frozenset()

    def test_max_depth_option(self, strategy: PlanStrategy) -> None:
        configuration = MapperConfiguration(max_depth=1)
        register(configuration, strategy, Parent, ParentDto)
        register(configuration, strategy, Child, ChildDto)
        result = configuration.create_mapper().map(self._cycle(), ParentDto)
        assert result.child is not None
        assert result.child.name == "leaf"
        assert result.child.parent is not None
        assert result.child.parent.name == ""
