"""Example 02: Flattening and plan strategies.

Demonstrates:
- Flattening ``customer.address.city`` into ``customer_address_city``
- Mapping into a Pydantic model with type conversion
- Choosing a plan strategy per map
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from pydantic import BaseModel

from plan_map import MapperConfiguration, PlanStrategy


@dataclass
class Address:
    street: str
    city: str


@dataclass
class Customer:
    name: str
    address: Address


@dataclass
class Invoice:
    number: str
    issued: str
    customer: Customer


class InvoiceRow(BaseModel):
    number: str
    issued: date
    customer_name: str = ""
    customer_address_city: str = ""


def main() -> None:
    invoice = Invoice("INV-7", "2024-03-01", Customer("Acme", Address("1 Main St", "Springfield")))

    print("=== Flattening ===\n")

    for strategy in PlanStrategy:
        configuration = MapperConfiguration()
        configuration.create_map(Invoice, InvoiceRow).use_strategy(strategy)
        plan = configuration.get_plan(Invoice, InvoiceRow)
        row = configuration.create_mapper().map(invoice, InvoiceRow)
        print(f"{strategy.value}: {type(plan).__name__}")
        print(f"   {row!r}")
    print()

    configuration = MapperConfiguration(use_compiled_plans=False)
    configuration.create_map(Invoice, InvoiceRow)
    plan = configuration.get_plan(Invoice, InvoiceRow)
    print("Flattened members:")
    for destination, source in plan.flattened_members.items():
        print(f"   {destination} <- {source}")


if __name__ == "__main__":
    main()
