# Overview: Read access to the vendor event log (simulated notifications, system changes).

from __future__ import annotations

from typing import Any

from ..stores import LoyaltyStore, current_store
from ..stores.records import EventRecord
from ..validation import parse_limit


DEFAULT_EVENT_LIMIT = 50
MAX_EVENT_LIMIT = 1000


def list_events(vendor_id: int, *, limit: Any = None, store: LoyaltyStore | None = None) -> list[EventRecord]:
    limit = parse_limit(limit, default=DEFAULT_EVENT_LIMIT, maximum=MAX_EVENT_LIMIT)
    store = store or current_store()
    return store.list_events(vendor_id, limit)
