# Overview: Process-local store for tests and demos; thread-safe, no durability.

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import replace
from decimal import Decimal
from typing import Optional

from ..models import KIND_EARN, KIND_REDEEM
from ..time_utils import utcnow
from ..validation import ConflictError, NotFoundError
from .base import UNSET, LoyaltyStore
from .records import (
    BranchRecord,
    CustomerRecord,
    EventRecord,
    SettingsRecord,
    TransactionRecord,
    VendorRecord,
)


class MemoryLoyaltyStore(LoyaltyStore):
    """
    In-memory implementation.

    A single re-entrant lock serializes every call; `atomic()` holds it for
    the whole unit of work and restores a snapshot if the block raises.
    Records are frozen dataclasses, so shallow container copies are enough
    for the snapshot.
    """

    name = "memory"

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._depth = 0
        self._vendors: dict[int, VendorRecord] = {}
        self._customers: dict[int, CustomerRecord] = {}
        self._transactions: list[TransactionRecord] = []
        self._branches: list[BranchRecord] = []
        self._settings: dict[int, SettingsRecord] = {}
        self._events: list[EventRecord] = []
        self._sequences: dict[str, int] = {}

    def _next_id(self, table: str) -> int:
        value = self._sequences.get(table, 0) + 1
        self._sequences[table] = value
        return value

    def _snapshot(self) -> dict:
        return {
            "_vendors": dict(self._vendors),
            "_customers": dict(self._customers),
            "_transactions": list(self._transactions),
            "_branches": list(self._branches),
            "_settings": dict(self._settings),
            "_events": list(self._events),
            "_sequences": dict(self._sequences),
        }

    def _restore(self, snapshot: dict) -> None:
        for attr, value in snapshot.items():
            setattr(self, attr, value)

    @contextmanager
    def atomic(self):
        with self._lock:
            snapshot = self._snapshot() if self._depth == 0 else None
            self._depth += 1
            try:
                yield self
            except Exception:
                if snapshot is not None:
                    self._restore(snapshot)
                raise
            finally:
                self._depth -= 1

    # -- Vendors -----------------------------------------------------------

    def create_vendor(self, *, username: str, email: str, api_key_digest: str) -> VendorRecord:
        with self._lock:
            for v in self._vendors.values():
                if v.username == username or v.email == email or v.api_key_digest == api_key_digest:
                    raise ConflictError("Vendor username or email already exists")
            vendor = VendorRecord(
                id=self._next_id("vendors"),
                username=username,
                email=email,
                api_key_digest=api_key_digest,
                is_active=True,
                created_at=utcnow(),
            )
            self._vendors[vendor.id] = vendor
            return vendor

    def get_vendor(self, vendor_id: int) -> Optional[VendorRecord]:
        with self._lock:
            return self._vendors.get(vendor_id)

    def find_vendor_by_key_digest(self, api_key_digest: str) -> Optional[VendorRecord]:
        with self._lock:
            for v in self._vendors.values():
                if v.api_key_digest == api_key_digest:
                    return v
            return None

    def list_vendors(self) -> list[VendorRecord]:
        with self._lock:
            return sorted(self._vendors.values(), key=lambda v: v.id)

    # -- Customers ---------------------------------------------------------

    def create_customer(
        self, vendor_id: int, *, name: str, contact: str, birthday: Optional[str] = None
    ) -> CustomerRecord:
        with self._lock:
            customer = CustomerRecord(
                id=self._next_id("customers"),
                vendor_id=vendor_id,
                name=name,
                contact=contact,
                birthday=birthday,
                balance=0,
                created_at=utcnow(),
            )
            self._customers[customer.id] = customer
            return customer

    def find_customer(self, customer_id: int, vendor_id: int) -> Optional[CustomerRecord]:
        with self._lock:
            customer = self._customers.get(customer_id)
            if customer is None or customer.vendor_id != vendor_id:
                return None
            return customer

    def list_customers(self, vendor_id: int) -> list[CustomerRecord]:
        with self._lock:
            rows = [c for c in self._customers.values() if c.vendor_id == vendor_id]
            return sorted(rows, key=lambda c: c.id, reverse=True)

    def count_customers(self, vendor_id: int) -> int:
        with self._lock:
            return sum(1 for c in self._customers.values() if c.vendor_id == vendor_id)

    def set_balance(
        self, customer_id: int, vendor_id: int, new_balance: int, *, expected_balance: int
    ) -> bool:
        with self._lock:
            customer = self.find_customer(customer_id, vendor_id)
            if customer is None or customer.balance != expected_balance:
                return False
            self._customers[customer_id] = replace(customer, balance=new_balance)
            return True

    # -- Ledger ------------------------------------------------------------

    def append_transaction(
        self,
        vendor_id: int,
        customer_id: int,
        *,
        kind: str,
        amount: Optional[Decimal],
        points: int,
        branch_id: Optional[int],
    ) -> TransactionRecord:
        with self._lock:
            txn = TransactionRecord(
                id=self._next_id("transactions"),
                vendor_id=vendor_id,
                customer_id=customer_id,
                kind=kind,
                amount=amount,
                points=points,
                branch_id=branch_id,
                created_at=utcnow(),
            )
            self._transactions.append(txn)
            return txn

    def list_transactions(
        self, vendor_id: int, limit: int, *, customer_id: Optional[int] = None
    ) -> list[TransactionRecord]:
        with self._lock:
            rows = [
                t for t in reversed(self._transactions)
                if t.vendor_id == vendor_id and (customer_id is None or t.customer_id == customer_id)
            ]
            return rows[:limit]

    def points_totals(self, vendor_id: int, *, customer_id: Optional[int] = None) -> tuple[int, int]:
        with self._lock:
            earned = redeemed = 0
            for t in self._transactions:
                if t.vendor_id != vendor_id:
                    continue
                if customer_id is not None and t.customer_id != customer_id:
                    continue
                if t.kind == KIND_EARN:
                    earned += t.points
                elif t.kind == KIND_REDEEM:
                    redeemed += t.points
            return earned, redeemed

    # -- Settings and branches --------------------------------------------

    def get_settings(self, vendor_id: int) -> Optional[SettingsRecord]:
        with self._lock:
            return self._settings.get(vendor_id)

    def create_settings(
        self, vendor_id: int, *, rate: float, active_branch_id: Optional[int]
    ) -> SettingsRecord:
        with self._lock:
            if vendor_id in self._settings:
                raise ConflictError("Settings already exist for this vendor")
            now = utcnow()
            row = SettingsRecord(
                vendor_id=vendor_id,
                rate=rate,
                active_branch_id=active_branch_id,
                created_at=now,
                updated_at=now,
            )
            self._settings[vendor_id] = row
            return row

    def update_settings(self, vendor_id: int, *, rate=UNSET, active_branch_id=UNSET) -> SettingsRecord:
        with self._lock:
            row = self._settings.get(vendor_id)
            if row is None:
                raise NotFoundError("Settings not found")
            changes = {"updated_at": utcnow()}
            if rate is not UNSET:
                changes["rate"] = rate
            if active_branch_id is not UNSET:
                changes["active_branch_id"] = active_branch_id
            row = replace(row, **changes)
            self._settings[vendor_id] = row
            return row

    def list_branches(self, vendor_id: int) -> list[BranchRecord]:
        with self._lock:
            return [b for b in self._branches if b.vendor_id == vendor_id]

    def create_branch(self, vendor_id: int, name: str) -> BranchRecord:
        with self._lock:
            if self.find_branch_by_name(vendor_id, name) is not None:
                raise ConflictError(f"Branch {name!r} already exists")
            branch = BranchRecord(
                id=self._next_id("branches"),
                vendor_id=vendor_id,
                name=name,
                created_at=utcnow(),
            )
            self._branches.append(branch)
            return branch

    def find_branch_by_name(self, vendor_id: int, name: str) -> Optional[BranchRecord]:
        with self._lock:
            for b in self._branches:
                if b.vendor_id == vendor_id and b.name == name:
                    return b
            return None

    # -- Event log ---------------------------------------------------------

    def append_event(self, vendor_id: int, kind: str, message: str) -> EventRecord:
        with self._lock:
            event = EventRecord(
                id=self._next_id("events"),
                vendor_id=vendor_id,
                kind=kind,
                message=message,
                created_at=utcnow(),
            )
            self._events.append(event)
            return event

    def list_events(self, vendor_id: int, limit: int) -> list[EventRecord]:
        with self._lock:
            return [e for e in reversed(self._events) if e.vendor_id == vendor_id][:limit]
