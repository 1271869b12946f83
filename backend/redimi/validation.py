from __future__ import annotations

import math
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any


# Upper bound for the accrual rate (points per currency unit).
# Rejects nonsensical configurations without constraining real programs.
MAX_ACCRUAL_RATE = 100

# Largest purchase accepted in a single earn: 9,999,999.99
MAX_PURCHASE_AMOUNT = Decimal("9999999.99")


class ValidationError(ValueError):
    """400-level input problem."""


class NotFoundError(ValueError):
    """404-level: entity absent for the acting vendor."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate branch name)."""


class BalanceConflictError(ConflictError):
    """Balance changed between read and write; the unit of work may be retried."""


class InsufficientBalanceError(ValueError):
    """409-level: redemption exceeds the customer's current balance."""

    def __init__(self, available: int, requested: int):
        super().__init__(
            f"Insufficient balance: {available} points available, {requested} requested"
        )
        self.available = available
        self.requested = requested


def parse_positive_int(value: Any, field: str) -> int:
    """
    Strict whole-number coercion.

    - bool is rejected even though it subclasses int
    - floats are accepted only when integral (150.0 -> 150)
    - strings must be plain digits (no decimals, no scientific notation)
    """
    if value is None:
        raise ValidationError(f"{field} is required")
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")

    if isinstance(value, int):
        parsed = value
    elif isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise ValidationError(f"{field} must be a whole number")
        parsed = int(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} is required")
        # Reject scientific notation (e.g., "1e3")
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{field} must be a whole number")
        try:
            parsed = int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    else:
        raise ValidationError(f"{field} must be an integer")

    if parsed <= 0:
        raise ValidationError(f"{field} must be positive")
    return parsed


def _to_decimal(value: Any, field: str) -> Decimal:
    if value is None:
        raise ValidationError(f"{field} is required")
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValidationError(f"{field} is required")
    elif not isinstance(value, (int, float, Decimal)):
        raise ValidationError(f"{field} must be a number")
    try:
        # str() keeps 0.29 as 0.29 instead of its binary expansion
        parsed = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number")
    if not parsed.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return parsed


def parse_purchase_amount(value: Any) -> Decimal:
    amount = _to_decimal(value, "amount")
    if amount <= 0:
        raise ValidationError("amount must be positive")
    if amount > MAX_PURCHASE_AMOUNT:
        raise ValidationError(f"amount exceeds maximum allowed ({MAX_PURCHASE_AMOUNT})")
    return amount


def parse_accrual_rate(value: Any) -> Decimal:
    rate = _to_decimal(value, "rate")
    if rate < 0:
        raise ValidationError("rate must be >= 0")
    if rate > MAX_ACCRUAL_RATE:
        raise ValidationError(f"rate must be <= {MAX_ACCRUAL_RATE}")
    return rate


def parse_limit(value: Any, *, default: int, maximum: int) -> int:
    if value is None or value == "":
        return default
    return min(parse_positive_int(value, "limit"), maximum)


def require_text(value: Any, field: str, *, max_length: int = 255) -> str:
    if value is None or not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    text = value.strip()
    if len(text) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return text


def parse_birthday(value: Any) -> str | None:
    """Optional YYYY-MM-DD birthday; stored as the normalized ISO string."""
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError("birthday must be a YYYY-MM-DD string")
    try:
        return date.fromisoformat(value.strip()).isoformat()
    except ValueError:
        raise ValidationError("birthday must be a YYYY-MM-DD string")
