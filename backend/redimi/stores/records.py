"""Plain records returned by every store backend."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..time_utils import to_utc_z


@dataclass(frozen=True)
class VendorRecord:
    id: int
    username: str
    email: str
    api_key_digest: str
    is_active: bool
    created_at: Optional[datetime]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


@dataclass(frozen=True)
class CustomerRecord:
    id: int
    vendor_id: int
    name: str
    contact: str
    birthday: Optional[str]
    balance: int
    created_at: Optional[datetime]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "vendor_id": self.vendor_id,
            "name": self.name,
            "contact": self.contact,
            "birthday": self.birthday,
            "balance": self.balance,
            "created_at": to_utc_z(self.created_at),
        }


@dataclass(frozen=True)
class TransactionRecord:
    id: int
    vendor_id: int
    customer_id: int
    kind: str
    amount: Optional[Decimal]
    points: int
    branch_id: Optional[int]
    created_at: Optional[datetime]
    customer_name: Optional[str] = None

    def with_customer_name(self, name: str) -> "TransactionRecord":
        return replace(self, customer_name=name)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "vendor_id": self.vendor_id,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "kind": self.kind,
            "amount": float(self.amount) if self.amount is not None else None,
            "points": self.points,
            "branch_id": self.branch_id,
            "created_at": to_utc_z(self.created_at),
        }


@dataclass(frozen=True)
class BranchRecord:
    id: int
    vendor_id: int
    name: str
    created_at: Optional[datetime]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "vendor_id": self.vendor_id,
            "name": self.name,
            "created_at": to_utc_z(self.created_at),
        }


@dataclass(frozen=True)
class SettingsRecord:
    vendor_id: int
    rate: float
    active_branch_id: Optional[int]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


@dataclass(frozen=True)
class EventRecord:
    id: int
    vendor_id: int
    kind: str
    message: str
    created_at: Optional[datetime]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "vendor_id": self.vendor_id,
            "kind": self.kind,
            "message": self.message,
            "created_at": to_utc_z(self.created_at),
        }
