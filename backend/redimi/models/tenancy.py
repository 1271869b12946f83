from __future__ import annotations

from ..extensions import db


class Vendor(db.Model):
    """
    Multi-tenant root: every tenant is a Vendor.

    All customers, branches, settings, transactions and events belong to
    exactly one vendor. No data may cross vendor boundaries.

    AUTH: vendors authenticate with an API key. Only its SHA-256 digest is
    stored; the plaintext key is shown once at creation time.
    """
    __tablename__ = "vendors"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), nullable=False, unique=True)
    email = db.Column(db.String(255), nullable=False, unique=True)
    api_key_digest = db.Column(db.String(64), nullable=False, unique=True, index=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Vendor id={self.id} username={self.username!r}>"


class Branch(db.Model):
    """
    Named location of a vendor, tagged onto ledger transactions.

    Append-only: branches are never deleted. Names are unique within a
    vendor, which also keeps the lazily created default branch unique
    under concurrent first access.
    """
    __tablename__ = "branches"
    __table_args__ = (
        db.UniqueConstraint("vendor_id", "name", name="uq_branches_vendor_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    vendor = db.relationship("Vendor", backref=db.backref("branches", lazy=True))

    def __repr__(self) -> str:
        return f"<Branch id={self.id} name={self.name!r} vendor_id={self.vendor_id}>"
