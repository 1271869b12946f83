# Overview: Per-vendor loyalty configuration (accrual rate, branches, active branch).

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from flask import current_app, has_app_context

from ..models import EVENT_SYSTEM
from ..stores import LoyaltyStore, current_store
from ..stores.records import BranchRecord, SettingsRecord
from ..validation import ConflictError, NotFoundError, parse_accrual_rate, require_text
from .concurrency import configured_attempts


logger = logging.getLogger(__name__)


# Points per currency unit when a vendor has not configured a rate.
# This is the only place the fallback is defined.
DEFAULT_ACCRUAL_RATE = 0.05
DEFAULT_BRANCH_NAME = "Main Store"
MAX_BRANCH_NAME_LENGTH = 120


@dataclass(frozen=True)
class LedgerTerms:
    """What the ledger needs from settings to post a transaction."""
    rate: float
    active_branch_id: Optional[int]


@dataclass(frozen=True)
class ResolvedSettings:
    vendor_id: int
    rate: float
    active_branch_id: Optional[int]
    active_branch_name: Optional[str]
    branches: list[str]

    def to_dict(self) -> dict:
        return {
            "rate": self.rate,
            "active_branch_id": self.active_branch_id,
            "active_branch": self.active_branch_name,
            "branches": list(self.branches),
        }


def _strict_branch_selection() -> bool:
    if has_app_context():
        return bool(current_app.config.get("REDIMI_STRICT_BRANCH_SELECTION", False))
    return False


def _resolve(store: LoyaltyStore, row: SettingsRecord) -> ResolvedSettings:
    branches = store.list_branches(row.vendor_id)
    active = next((b for b in branches if b.id == row.active_branch_id), None)
    return ResolvedSettings(
        vendor_id=row.vendor_id,
        rate=row.rate,
        active_branch_id=row.active_branch_id,
        active_branch_name=active.name if active else None,
        branches=[b.name for b in branches],
    )


def _create_default_settings(store: LoyaltyStore, vendor_id: int) -> SettingsRecord:
    """
    First-access initialization.

    A concurrent first access loses on the unique settings row (or on the
    unique default branch name); the loser re-reads the winner's row.
    """
    attempts = configured_attempts()
    for attempt in range(attempts):
        try:
            with store.atomic():
                branches = store.list_branches(vendor_id)
                branch = branches[0] if branches else store.create_branch(vendor_id, DEFAULT_BRANCH_NAME)
                row = store.create_settings(
                    vendor_id,
                    rate=DEFAULT_ACCRUAL_RATE,
                    active_branch_id=branch.id,
                )
            logger.info("Initialized settings for vendor %s (active branch %r)", vendor_id, branch.name)
            return row
        except ConflictError:
            existing = store.get_settings(vendor_id)
            if existing is not None:
                return existing
            if attempt >= attempts - 1:
                raise


def get_settings(vendor_id: int, *, store: LoyaltyStore | None = None) -> ResolvedSettings:
    """Return the vendor's settings, creating defaults on first access."""
    store = store or current_store()
    row = store.get_settings(vendor_id)
    if row is None:
        row = _create_default_settings(store, vendor_id)
    return _resolve(store, row)


def ledger_terms(vendor_id: int, *, store: LoyaltyStore | None = None) -> LedgerTerms:
    """Rate and branch tag for a ledger posting. Read-only: never creates rows."""
    store = store or current_store()
    row = store.get_settings(vendor_id)
    if row is None:
        return LedgerTerms(rate=DEFAULT_ACCRUAL_RATE, active_branch_id=None)
    return LedgerTerms(rate=row.rate, active_branch_id=row.active_branch_id)


def update_settings(
    vendor_id: int,
    *,
    rate: Any = None,
    branch_name: Any = None,
    store: LoyaltyStore | None = None,
    strict_branch: bool | None = None,
) -> ResolvedSettings:
    """
    Apply a partial settings change.

    - rate: replaces the stored rate (validated, 0 <= rate <= MAX_ACCRUAL_RATE)
    - branch_name: resolved to one of the vendor's branches and made active.
      An unknown name leaves the active branch unchanged unless strict
      branch selection is enabled, in which case NotFoundError is raised.
    """
    parsed_rate = float(parse_accrual_rate(rate)) if rate is not None else None
    name = None
    if branch_name is not None and branch_name != "":
        name = require_text(branch_name, "branch_name", max_length=MAX_BRANCH_NAME_LENGTH)
    if strict_branch is None:
        strict_branch = _strict_branch_selection()

    store = store or current_store()
    get_settings(vendor_id, store=store)

    with store.atomic():
        current = store.get_settings(vendor_id)
        changes: dict[str, Any] = {}
        branch: BranchRecord | None = None

        if parsed_rate is not None and parsed_rate != current.rate:
            changes["rate"] = parsed_rate

        if name is not None:
            branch = store.find_branch_by_name(vendor_id, name)
            if branch is None:
                if strict_branch:
                    raise NotFoundError(f"Branch {name!r} not found")
                logger.warning("Vendor %s selected unknown branch %r; active branch unchanged", vendor_id, name)
            elif branch.id != current.active_branch_id:
                changes["active_branch_id"] = branch.id

        if not changes:
            row = current
        else:
            row = store.update_settings(vendor_id, **changes)
            if "rate" in changes:
                store.append_event(
                    vendor_id,
                    EVENT_SYSTEM,
                    f"Accrual rate changed from {current.rate} to {row.rate}",
                )
            if "active_branch_id" in changes:
                store.append_event(vendor_id, EVENT_SYSTEM, f"Active branch set to {branch.name}")

    return _resolve(store, row)


def add_branch(vendor_id: int, name: Any, *, store: LoyaltyStore | None = None) -> BranchRecord:
    """Append a branch. The active branch is not changed."""
    name = require_text(name, "name", max_length=MAX_BRANCH_NAME_LENGTH)
    store = store or current_store()
    with store.atomic():
        branch = store.create_branch(vendor_id, name)
        store.append_event(vendor_id, EVENT_SYSTEM, f"Branch {name} added")
    return branch


def list_branches(vendor_id: int, *, store: LoyaltyStore | None = None) -> list[BranchRecord]:
    store = store or current_store()
    return store.list_branches(vendor_id)
