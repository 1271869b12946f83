# Overview: Service-layer operations for the points ledger; owns every balance mutation.

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal
from typing import Any, Optional

from ..models import EVENT_WHATSAPP, KIND_EARN, KIND_REDEEM
from ..stores import LoyaltyStore, current_store
from ..stores.records import TransactionRecord
from ..validation import (
    BalanceConflictError,
    InsufficientBalanceError,
    NotFoundError,
    parse_limit,
    parse_positive_int,
    parse_purchase_amount,
)
from . import settings_service
from .concurrency import run_with_retry
"""
Ledger invariants (authoritative)

- customer.balance == sum(EARN.points) - sum(REDEEM.points), always.
- The balance write and the transaction insert commit together or not at all.
- A REDEEM is decided against the balance read inside the same unit of work,
  and the write is a compare-and-swap on that balance: a concurrent writer
  makes the swap fail and the whole unit is retried from a fresh read.
- Transactions and events are append-only.
"""


logger = logging.getLogger(__name__)


EARN_MESSAGE = "Hola {name}, sumaste {points} puntos. Total actual: {balance} puntos."
REDEEM_MESSAGE = "Hola {name}, canjeaste {points} puntos. Total actual: {balance} puntos."

DEFAULT_HISTORY_LIMIT = 100
MAX_HISTORY_LIMIT = 10_000
UNKNOWN_CUSTOMER_NAME = "Unknown"


@dataclass(frozen=True)
class BalanceCheck:
    customer_id: int
    balance: int
    earned: int
    redeemed: int

    @property
    def expected_balance(self) -> int:
        return self.earned - self.redeemed

    @property
    def is_consistent(self) -> bool:
        return self.balance == self.expected_balance

    def to_dict(self) -> dict:
        return {
            "customer_id": self.customer_id,
            "balance": self.balance,
            "earned": self.earned,
            "redeemed": self.redeemed,
            "expected_balance": self.expected_balance,
            "is_consistent": self.is_consistent,
        }


def compute_points(amount: Any, rate: Any) -> int:
    """
    floor(amount * rate) in exact decimal arithmetic.

    Binary floats would turn 0.29 * 100 into 28.999999999999996; going
    through str() keeps the decimal value the vendor typed.
    """
    product = Decimal(str(amount)) * Decimal(str(rate))
    return int(product.to_integral_value(rounding=ROUND_FLOOR))


def _post_entry(
    store: LoyaltyStore,
    *,
    vendor_id: int,
    customer_id: int,
    kind: str,
    points: int,
    amount: Optional[Decimal],
    branch_id: Optional[int],
) -> TransactionRecord:
    def _op():
        with store.atomic():
            customer = store.find_customer(customer_id, vendor_id)
            if customer is None:
                raise NotFoundError("Customer not found")

            if kind == KIND_REDEEM:
                if customer.balance < points:
                    raise InsufficientBalanceError(available=customer.balance, requested=points)
                new_balance = customer.balance - points
                template = REDEEM_MESSAGE
            else:
                new_balance = customer.balance + points
                template = EARN_MESSAGE

            if not store.set_balance(customer.id, vendor_id, new_balance, expected_balance=customer.balance):
                raise BalanceConflictError("Customer balance changed concurrently")

            txn = store.append_transaction(
                vendor_id,
                customer.id,
                kind=kind,
                amount=amount,
                points=points,
                branch_id=branch_id,
            )
            message = template.format(name=customer.name, points=points, balance=new_balance)
            store.append_event(vendor_id, EVENT_WHATSAPP, message)
        return txn.with_customer_name(customer.name), message

    txn, message = run_with_retry(_op)
    # Outbound messages are simulated: the event row plus this log line is all there is.
    logger.info("WhatsApp (simulated) vendor=%s customer=%s: %s", vendor_id, customer_id, message)
    return txn


def earn(
    *,
    vendor_id: int,
    customer_id: Any,
    purchase_amount: Any,
    store: LoyaltyStore | None = None,
) -> TransactionRecord:
    """
    Accrue points for a purchase.

    points = floor(purchase_amount * vendor rate). Raises ValidationError for
    a missing/non-positive amount and NotFoundError when the customer does
    not belong to the vendor.
    """
    customer_id = parse_positive_int(customer_id, "customer_id")
    amount = parse_purchase_amount(purchase_amount)
    store = store or current_store()

    terms = settings_service.ledger_terms(vendor_id, store=store)
    points = compute_points(amount, terms.rate)

    return _post_entry(
        store,
        vendor_id=vendor_id,
        customer_id=customer_id,
        kind=KIND_EARN,
        points=points,
        amount=amount,
        branch_id=terms.active_branch_id,
    )


def redeem(
    *,
    vendor_id: int,
    customer_id: Any,
    points: Any,
    store: LoyaltyStore | None = None,
) -> TransactionRecord:
    """
    Spend points. Never rounds: the requested whole number is debited exactly.

    Raises InsufficientBalanceError (and changes nothing) when the balance
    read inside the unit of work is lower than the request.
    """
    customer_id = parse_positive_int(customer_id, "customer_id")
    points = parse_positive_int(points, "points")
    store = store or current_store()

    terms = settings_service.ledger_terms(vendor_id, store=store)

    return _post_entry(
        store,
        vendor_id=vendor_id,
        customer_id=customer_id,
        kind=KIND_REDEEM,
        points=points,
        amount=None,
        branch_id=terms.active_branch_id,
    )


def list_transactions(
    vendor_id: int,
    *,
    limit: Any = None,
    customer_id: Optional[int] = None,
    store: LoyaltyStore | None = None,
) -> list[TransactionRecord]:
    """Newest first, each row carrying the customer's display name."""
    limit = parse_limit(limit, default=DEFAULT_HISTORY_LIMIT, maximum=MAX_HISTORY_LIMIT)
    store = store or current_store()
    rows = store.list_transactions(vendor_id, limit, customer_id=customer_id)

    names: dict[int, str] = {}
    enriched = []
    for txn in rows:
        if txn.customer_id not in names:
            customer = store.find_customer(txn.customer_id, vendor_id)
            names[txn.customer_id] = customer.name if customer else UNKNOWN_CUSTOMER_NAME
        enriched.append(txn.with_customer_name(names[txn.customer_id]))
    return enriched


def get_stats(vendor_id: int, *, store: LoyaltyStore | None = None) -> dict:
    store = store or current_store()
    issued, redeemed = store.points_totals(vendor_id)
    return {
        "total_customers": store.count_customers(vendor_id),
        "total_points_issued": issued,
        "total_points_redeemed": redeemed,
        "points_outstanding": issued - redeemed,
    }


def reconcile(vendor_id: int, *, store: LoyaltyStore | None = None) -> list[BalanceCheck]:
    """Compare every customer's balance with the sums of their ledger rows."""
    store = store or current_store()
    checks = []
    for customer in store.list_customers(vendor_id):
        earned, redeemed = store.points_totals(vendor_id, customer_id=customer.id)
        checks.append(
            BalanceCheck(
                customer_id=customer.id,
                balance=customer.balance,
                earned=earned,
                redeemed=redeemed,
            )
        )
    return checks
