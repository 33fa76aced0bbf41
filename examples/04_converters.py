"""Example 04: Type converters and projections.

Demonstrates:
- Built-in coercion (str -> int, str -> enum)
- Registering a custom type converter
- Building a projection for lazy mapping of an iterable
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from decimal import Decimal

from plan_map import MapperConfiguration


class Currency(enum.Enum):
    EUR = "eur"
    USD = "usd"


@dataclass
class Money:
    amount: Decimal
    currency: str


@dataclass
class PriceRecord:
    sku: str
    quantity: str
    currency: str
    price: Money


@dataclass
class PriceDto:
    sku: str = ""
    quantity: int = 0
    currency: Currency = Currency.EUR
    price: str = ""


def main() -> None:
    configuration = MapperConfiguration()
    configuration.add_type_converter(Money, str, lambda m: f"{m.amount:.2f} {m.currency}")
    configuration.create_map(PriceRecord, PriceDto)

    print("=== Converters ===\n")
    mapper = configuration.create_mapper()
    dto = mapper.map(PriceRecord("X-1", "12", "USD", Money(Decimal("3.5"), "USD")), PriceDto)
    print(f"   {dto}\n")

    print("=== Projection ===\n")
    projection = configuration.projection(PriceRecord, PriceDto)
    for name in ("sku", "quantity", "price"):
        binding = projection.binding(name)
        print(f"   {name}: {binding}")
    records = (
        PriceRecord(f"X-{i}", str(i), "EUR", Money(Decimal(i), "EUR")) for i in range(1, 4)
    )
    for item in projection.project(records):
        print(f"   - {item.sku}: {item.quantity} @ {item.price}")


if __name__ == "__main__":
    main()
