# Overview: Durable store backed by Flask-SQLAlchemy; all work runs on db.session.

from __future__ import annotations

from contextlib import contextmanager
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import (
    Branch,
    Customer,
    EventLog,
    KIND_EARN,
    KIND_REDEEM,
    PointsTransaction,
    Vendor,
    VendorSettings,
)
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


_DEPTH_KEY = "redimi_atomic_depth"


class SqlLoyaltyStore(LoyaltyStore):
    """
    SQLAlchemy implementation.

    Methods only flush; `atomic()` owns commit/rollback. Nested `atomic()`
    blocks join the outermost unit of work.
    """

    name = "sql"

    @contextmanager
    def atomic(self):
        session = db.session
        depth = session.info.get(_DEPTH_KEY, 0)
        session.info[_DEPTH_KEY] = depth + 1
        try:
            yield self
            if depth == 0:
                session.commit()
        except Exception:
            if depth == 0:
                session.rollback()
            raise
        finally:
            session.info[_DEPTH_KEY] = depth

    def _flush_unique(self, instance, message: str) -> None:
        db.session.add(instance)
        try:
            db.session.flush()
        except IntegrityError as exc:
            raise ConflictError(message) from exc

    # -- Vendors -----------------------------------------------------------

    def create_vendor(self, *, username: str, email: str, api_key_digest: str) -> VendorRecord:
        vendor = Vendor(username=username, email=email, api_key_digest=api_key_digest)
        self._flush_unique(vendor, "Vendor username or email already exists")
        return self._vendor_record(vendor)

    def get_vendor(self, vendor_id: int) -> Optional[VendorRecord]:
        vendor = db.session.query(Vendor).filter_by(id=vendor_id).first()
        return self._vendor_record(vendor) if vendor else None

    def find_vendor_by_key_digest(self, api_key_digest: str) -> Optional[VendorRecord]:
        vendor = db.session.query(Vendor).filter_by(api_key_digest=api_key_digest).first()
        return self._vendor_record(vendor) if vendor else None

    def list_vendors(self) -> list[VendorRecord]:
        rows = db.session.query(Vendor).order_by(Vendor.id.asc()).all()
        return [self._vendor_record(v) for v in rows]

    # -- Customers ---------------------------------------------------------

    def create_customer(
        self, vendor_id: int, *, name: str, contact: str, birthday: Optional[str] = None
    ) -> CustomerRecord:
        customer = Customer(vendor_id=vendor_id, name=name, contact=contact, birthday=birthday, balance=0)
        db.session.add(customer)
        db.session.flush()
        return self._customer_record(customer)

    def find_customer(self, customer_id: int, vendor_id: int) -> Optional[CustomerRecord]:
        customer = (
            db.session.query(Customer)
            .filter_by(id=customer_id, vendor_id=vendor_id)
            .populate_existing()
            .first()
        )
        return self._customer_record(customer) if customer else None

    def list_customers(self, vendor_id: int) -> list[CustomerRecord]:
        rows = (
            db.session.query(Customer)
            .filter_by(vendor_id=vendor_id)
            .order_by(Customer.id.desc())
            .populate_existing()
            .all()
        )
        return [self._customer_record(c) for c in rows]

    def count_customers(self, vendor_id: int) -> int:
        return db.session.query(Customer).filter_by(vendor_id=vendor_id).count()

    def set_balance(
        self, customer_id: int, vendor_id: int, new_balance: int, *, expected_balance: int
    ) -> bool:
        # Single conditional UPDATE: the WHERE clause is re-evaluated against
        # the latest committed row, so a concurrent writer makes it match 0 rows.
        updated = (
            db.session.query(Customer)
            .filter(
                Customer.id == customer_id,
                Customer.vendor_id == vendor_id,
                Customer.balance == expected_balance,
            )
            .update(
                {
                    Customer.balance: new_balance,
                    Customer.version_id: Customer.version_id + 1,
                    Customer.updated_at: db.func.now(),
                },
                synchronize_session=False,
            )
        )
        return updated == 1

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
        txn = PointsTransaction(
            vendor_id=vendor_id,
            customer_id=customer_id,
            kind=kind,
            amount=amount,
            points=points,
            branch_id=branch_id,
        )
        db.session.add(txn)
        db.session.flush()
        return self._transaction_record(txn)

    def list_transactions(
        self, vendor_id: int, limit: int, *, customer_id: Optional[int] = None
    ) -> list[TransactionRecord]:
        q = db.session.query(PointsTransaction).filter_by(vendor_id=vendor_id)
        if customer_id is not None:
            q = q.filter_by(customer_id=customer_id)
        rows = q.order_by(PointsTransaction.id.desc()).limit(limit).all()
        return [self._transaction_record(t) for t in rows]

    def points_totals(self, vendor_id: int, *, customer_id: Optional[int] = None) -> tuple[int, int]:
        q = db.session.query(
            PointsTransaction.kind,
            db.func.coalesce(db.func.sum(PointsTransaction.points), 0),
        ).filter(PointsTransaction.vendor_id == vendor_id)
        if customer_id is not None:
            q = q.filter(PointsTransaction.customer_id == customer_id)
        totals = {kind: int(total) for kind, total in q.group_by(PointsTransaction.kind).all()}
        return totals.get(KIND_EARN, 0), totals.get(KIND_REDEEM, 0)

    # -- Settings and branches --------------------------------------------

    def get_settings(self, vendor_id: int) -> Optional[SettingsRecord]:
        row = db.session.query(VendorSettings).filter_by(vendor_id=vendor_id).populate_existing().first()
        return self._settings_record(row) if row else None

    def create_settings(
        self, vendor_id: int, *, rate: float, active_branch_id: Optional[int]
    ) -> SettingsRecord:
        row = VendorSettings(vendor_id=vendor_id, rate=rate, active_branch_id=active_branch_id)
        self._flush_unique(row, "Settings already exist for this vendor")
        return self._settings_record(row)

    def update_settings(self, vendor_id: int, *, rate=UNSET, active_branch_id=UNSET) -> SettingsRecord:
        row = db.session.query(VendorSettings).filter_by(vendor_id=vendor_id).first()
        if not row:
            raise NotFoundError("Settings not found")
        if rate is not UNSET:
            row.rate = rate
        if active_branch_id is not UNSET:
            row.active_branch_id = active_branch_id
        db.session.flush()
        return self._settings_record(row)

    def list_branches(self, vendor_id: int) -> list[BranchRecord]:
        rows = db.session.query(Branch).filter_by(vendor_id=vendor_id).order_by(Branch.id.asc()).all()
        return [self._branch_record(b) for b in rows]

    def create_branch(self, vendor_id: int, name: str) -> BranchRecord:
        branch = Branch(vendor_id=vendor_id, name=name)
        self._flush_unique(branch, f"Branch {name!r} already exists")
        return self._branch_record(branch)

    def find_branch_by_name(self, vendor_id: int, name: str) -> Optional[BranchRecord]:
        branch = db.session.query(Branch).filter_by(vendor_id=vendor_id, name=name).first()
        return self._branch_record(branch) if branch else None

    # -- Event log ---------------------------------------------------------

    def append_event(self, vendor_id: int, kind: str, message: str) -> EventRecord:
        event = EventLog(vendor_id=vendor_id, kind=kind, message=message)
        db.session.add(event)
        db.session.flush()
        return self._event_record(event)

    def list_events(self, vendor_id: int, limit: int) -> list[EventRecord]:
        rows = (
            db.session.query(EventLog)
            .filter_by(vendor_id=vendor_id)
            .order_by(EventLog.id.desc())
            .limit(limit)
            .all()
        )
        return [self._event_record(e) for e in rows]

    # -- Row -> record -----------------------------------------------------

    @staticmethod
    def _vendor_record(model: Vendor) -> VendorRecord:
        return VendorRecord(
            id=model.id,
            username=model.username,
            email=model.email,
            api_key_digest=model.api_key_digest,
            is_active=bool(model.is_active),
            created_at=model.created_at,
        )

    @staticmethod
    def _customer_record(model: Customer) -> CustomerRecord:
        return CustomerRecord(
            id=model.id,
            vendor_id=model.vendor_id,
            name=model.name,
            contact=model.contact,
            birthday=model.birthday,
            balance=model.balance,
            created_at=model.created_at,
        )

    @staticmethod
    def _transaction_record(model: PointsTransaction) -> TransactionRecord:
        return TransactionRecord(
            id=model.id,
            vendor_id=model.vendor_id,
            customer_id=model.customer_id,
            kind=model.kind,
            amount=model.amount,
            points=model.points,
            branch_id=model.branch_id,
            created_at=model.created_at,
        )

    @staticmethod
    def _branch_record(model: Branch) -> BranchRecord:
        return BranchRecord(
            id=model.id,
            vendor_id=model.vendor_id,
            name=model.name,
            created_at=model.created_at,
        )

    @staticmethod
    def _settings_record(model: VendorSettings) -> SettingsRecord:
        return SettingsRecord(
            vendor_id=model.vendor_id,
            rate=model.rate,
            active_branch_id=model.active_branch_id,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    @staticmethod
    def _event_record(model: EventLog) -> EventRecord:
        return EventRecord(
            id=model.id,
            vendor_id=model.vendor_id,
            kind=model.kind,
            message=model.message,
            created_at=model.created_at,
        )
