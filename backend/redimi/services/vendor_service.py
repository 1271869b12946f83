# Overview: Vendor (tenant) registration and API-key authentication.

"""
Vendor API keys

- Keys are 32 random bytes (64 hex chars) from secrets.token_hex.
- Only the SHA-256 digest is stored; the plaintext key is returned once,
  at creation, and cannot be recovered afterwards.
- A key resolves to exactly one vendor, which becomes the tenant context
  of the request. Inactive vendors do not authenticate.
"""

from __future__ import annotations

import hashlib
import secrets
from typing import Any

from ..stores import LoyaltyStore, current_store
from ..stores.records import VendorRecord
from ..validation import ValidationError, require_text


def generate_api_key() -> str:
    return secrets.token_hex(32)


def digest_api_key(api_key: str) -> str:
    return hashlib.sha256(api_key.encode("utf-8")).hexdigest()


def create_vendor(
    *, username: Any, email: Any, store: LoyaltyStore | None = None
) -> tuple[VendorRecord, str]:
    """Register a vendor. Returns (vendor, plaintext_api_key)."""
    username = require_text(username, "username", max_length=80)
    email = require_text(email, "email")
    if "@" not in email:
        raise ValidationError("email is invalid")

    api_key = generate_api_key()
    store = store or current_store()
    with store.atomic():
        vendor = store.create_vendor(
            username=username,
            email=email.lower(),
            api_key_digest=digest_api_key(api_key),
        )
    return vendor, api_key


def authenticate(api_key: str | None, *, store: LoyaltyStore | None = None) -> VendorRecord | None:
    if not api_key:
        return None
    store = store or current_store()
    vendor = store.find_vendor_by_key_digest(digest_api_key(api_key))
    if vendor is None or not vendor.is_active:
        return None
    return vendor


def list_vendors(*, store: LoyaltyStore | None = None) -> list[VendorRecord]:
    store = store or current_store()
    return store.list_vendors()
