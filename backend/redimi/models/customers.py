from __future__ import annotations

from ..extensions import db


KIND_EARN = "EARN"
KIND_REDEEM = "REDEEM"
TRANSACTION_KINDS = (KIND_EARN, KIND_REDEEM)


class Customer(db.Model):
    """
    Customer enrolled in a vendor's loyalty program.

    MULTI-TENANT: scoped to a vendor via vendor_id.

    BALANCE: mutated exclusively by the ledger service through a
    compare-and-swap update; never written directly by callers.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.CheckConstraint("balance >= 0", name="ck_customers_balance_non_negative"),
        db.Index("ix_customers_vendor_id", "vendor_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=False)

    name = db.Column(db.String(255), nullable=False)
    contact = db.Column(db.String(64), nullable=False)  # WhatsApp handle
    birthday = db.Column(db.String(10), nullable=True)  # YYYY-MM-DD

    balance = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    vendor = db.relationship("Vendor", backref=db.backref("customers", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Customer id={self.id} vendor_id={self.vendor_id} balance={self.balance}>"


class PointsTransaction(db.Model):
    """
    Append-only ledger of point movements.

    TRANSACTION TYPES:
    - EARN: points accrued from a purchase (amount is the purchase total)
    - REDEEM: points spent by the customer (amount is NULL)

    points is never negative; the sign is implied by the kind.
    IMMUTABLE: Records are never updated or deleted.
    """
    __tablename__ = "points_transactions"
    __table_args__ = (
        db.CheckConstraint("points >= 0", name="ck_points_transactions_points_non_negative"),
        db.CheckConstraint("kind IN ('EARN', 'REDEEM')", name="ck_points_transactions_kind"),
        db.Index("ix_points_txns_vendor_customer", "vendor_id", "customer_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)

    kind = db.Column(db.String(10), nullable=False, index=True)  # EARN, REDEEM
    amount = db.Column(db.Numeric(12, 2), nullable=True)  # Purchase amount (EARN only)
    points = db.Column(db.Integer, nullable=False)
    branch_id = db.Column(db.Integer, db.ForeignKey("branches.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    customer = db.relationship("Customer", backref=db.backref("transactions", lazy=True))
    branch = db.relationship("Branch")

    def __repr__(self) -> str:
        return f"<PointsTransaction id={self.id} kind={self.kind} points={self.points}>"
