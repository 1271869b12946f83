# Overview: Storage contract shared by the durable and in-memory backends.

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from decimal import Decimal
from typing import Optional

from .records import (
    BranchRecord,
    CustomerRecord,
    EventRecord,
    SettingsRecord,
    TransactionRecord,
    VendorRecord,
)


UNSET = object()


class LoyaltyStore(ABC):
    """
    Persistence capability consumed by the service layer.

    Contract:
    - Every read and write is scoped by vendor_id; a record owned by another
      vendor is indistinguishable from a missing one.
    - Writes made inside `atomic()` are committed together when the block
      exits normally and fully discarded when it raises.
    - Duplicate inserts against a uniqueness rule raise ConflictError.
    - Underlying failures (driver errors, lost connections) propagate
      unchanged.
    """

    name = "abstract"

    @abstractmethod
    def atomic(self) -> AbstractContextManager:
        """Unit of work: commit on success, roll back everything on error."""

    # Vendors
    @abstractmethod
    def create_vendor(self, *, username: str, email: str, api_key_digest: str) -> VendorRecord: ...

    @abstractmethod
    def get_vendor(self, vendor_id: int) -> Optional[VendorRecord]: ...

    @abstractmethod
    def find_vendor_by_key_digest(self, api_key_digest: str) -> Optional[VendorRecord]: ...

    @abstractmethod
    def list_vendors(self) -> list[VendorRecord]: ...

    # Customers
    @abstractmethod
    def create_customer(
        self, vendor_id: int, *, name: str, contact: str, birthday: Optional[str] = None
    ) -> CustomerRecord: ...

    @abstractmethod
    def find_customer(self, customer_id: int, vendor_id: int) -> Optional[CustomerRecord]:
        """Fresh read of the authoritative row (never a cached copy)."""

    @abstractmethod
    def list_customers(self, vendor_id: int) -> list[CustomerRecord]:
        """Newest first."""

    @abstractmethod
    def count_customers(self, vendor_id: int) -> int: ...

    @abstractmethod
    def set_balance(
        self, customer_id: int, vendor_id: int, new_balance: int, *, expected_balance: int
    ) -> bool:
        """
        Compare-and-swap on the customer balance.

        Writes new_balance only if the stored balance still equals
        expected_balance. Returns False when the swap is lost.
        """

    # Ledger
    @abstractmethod
    def append_transaction(
        self,
        vendor_id: int,
        customer_id: int,
        *,
        kind: str,
        amount: Optional[Decimal],
        points: int,
        branch_id: Optional[int],
    ) -> TransactionRecord: ...

    @abstractmethod
    def list_transactions(
        self, vendor_id: int, limit: int, *, customer_id: Optional[int] = None
    ) -> list[TransactionRecord]:
        """Newest first."""

    @abstractmethod
    def points_totals(self, vendor_id: int, *, customer_id: Optional[int] = None) -> tuple[int, int]:
        """(sum of EARN points, sum of REDEEM points)."""

    # Settings and branches
    @abstractmethod
    def get_settings(self, vendor_id: int) -> Optional[SettingsRecord]: ...

    @abstractmethod
    def create_settings(
        self, vendor_id: int, *, rate: float, active_branch_id: Optional[int]
    ) -> SettingsRecord: ...

    @abstractmethod
    def update_settings(self, vendor_id: int, *, rate=UNSET, active_branch_id=UNSET) -> SettingsRecord: ...

    @abstractmethod
    def list_branches(self, vendor_id: int) -> list[BranchRecord]:
        """Oldest first."""

    @abstractmethod
    def create_branch(self, vendor_id: int, name: str) -> BranchRecord: ...

    @abstractmethod
    def find_branch_by_name(self, vendor_id: int, name: str) -> Optional[BranchRecord]: ...

    # Event log
    @abstractmethod
    def append_event(self, vendor_id: int, kind: str, message: str) -> EventRecord: ...

    @abstractmethod
    def list_events(self, vendor_id: int, limit: int) -> list[EventRecord]:
        """Newest first."""
