from __future__ import annotations

from ..extensions import db


class VendorSettings(db.Model):
    """
    Per-vendor loyalty configuration (one row per vendor).

    The unique vendor_id makes lazy creation race-safe: a concurrent
    duplicate insert fails and the caller re-reads the winning row.
    """
    __tablename__ = "vendor_settings"
    __table_args__ = (
        db.UniqueConstraint("vendor_id", name="uq_vendor_settings_vendor"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=False, index=True)

    rate = db.Column(db.Float, nullable=False, default=0.05)  # Points per currency unit
    active_branch_id = db.Column(db.Integer, db.ForeignKey("branches.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    vendor = db.relationship("Vendor", backref=db.backref("settings", uselist=False, lazy=True))
    active_branch = db.relationship("Branch")
