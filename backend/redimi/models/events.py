from __future__ import annotations

from ..extensions import db


EVENT_WHATSAPP = "WHATSAPP"
EVENT_SYSTEM = "SYSTEM"
EVENT_KINDS = (EVENT_WHATSAPP, EVENT_SYSTEM)


class EventLog(db.Model):
    """
    Append-only log of notification-worthy occurrences.

    WHATSAPP rows are simulated outbound messages (never delivered);
    SYSTEM rows record configuration changes.
    """
    __tablename__ = "event_logs"
    __table_args__ = (
        db.Index("ix_event_logs_vendor_id", "vendor_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=False)

    kind = db.Column(db.String(20), nullable=False)  # WHATSAPP, SYSTEM
    message = db.Column(db.Text, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
