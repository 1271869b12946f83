# Overview: Customer enrollment and lookup, scoped by vendor.

from __future__ import annotations

from typing import Any

from ..stores import LoyaltyStore, current_store
from ..stores.records import CustomerRecord
from ..validation import NotFoundError, parse_birthday, parse_positive_int, require_text


def create_customer(
    vendor_id: int,
    *,
    name: Any,
    contact: Any,
    birthday: Any = None,
    store: LoyaltyStore | None = None,
) -> CustomerRecord:
    """Enroll a customer with a zero balance. Name and contact are required."""
    name = require_text(name, "name")
    contact = require_text(contact, "contact", max_length=64)
    birthday = parse_birthday(birthday)

    store = store or current_store()
    with store.atomic():
        return store.create_customer(vendor_id, name=name, contact=contact, birthday=birthday)


def get_customer(vendor_id: int, customer_id: Any, *, store: LoyaltyStore | None = None) -> CustomerRecord:
    customer_id = parse_positive_int(customer_id, "customer_id")
    store = store or current_store()
    customer = store.find_customer(customer_id, vendor_id)
    if customer is None:
        raise NotFoundError("Customer not found")
    return customer


def list_customers(vendor_id: int, *, store: LoyaltyStore | None = None) -> list[CustomerRecord]:
    store = store or current_store()
    return store.list_customers(vendor_id)
