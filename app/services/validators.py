"""
Domain Validators
Pure checks shared by every service. Each raises ValidationError naming the
offending field and returns the normalised value.

Phone numbers are Kenyan mobiles: stored as +2547XXXXXXXX / +2541XXXXXXXX,
sent to gateways as 2547XXXXXXXX.
"""
from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Iterable, Optional

from email_validator import EmailNotValidError, validate_email as _check_email

from app.core.exceptions import ValidationError

CENTS = Decimal("0.01")

KENYAN_PHONE_RE = re.compile(r"^\+254[17]\d{8}$")
AGENT_PHONE_RE = re.compile(r"^[\d\s\-+()]{10,20}$")
ID_NUMBER_RE = re.compile(r"^[0-9]{8,}$")
MONTH_TOKEN_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


# ── Phones ────────────────────────────────────────────────────────────────────

def normalize_phone(phone: Optional[str], field: str = "phone") -> str:
    """Normalise 07.. / 01.. / 254.. / +254.. to +254XXXXXXXXX and validate it."""
    if phone is None or not str(phone).strip():
        raise ValidationError(f"{field} is required")

    cleaned = re.sub(r"[\s\-()]", "", str(phone))
    if cleaned.startswith("0") and len(cleaned) == 10:
        cleaned = "+254" + cleaned[1:]
    elif cleaned.startswith("254"):
        cleaned = "+" + cleaned

    if not KENYAN_PHONE_RE.match(cleaned):
        raise ValidationError(f"Invalid {field} format. Use 07XXXXXXXX or +2547XXXXXXXX")
    return cleaned


def to_gateway_phone(phone: Optional[str]) -> str:
    """SMS / WhatsApp gateways expect 254XXXXXXXXX without the plus."""
    return normalize_phone(phone, "recipient_phone").lstrip("+")


def validate_agent_phone(phone: Optional[str]) -> Optional[str]:
    if phone is None or phone == "":
        return None
    if not AGENT_PHONE_RE.match(str(phone)):
        raise ValidationError("Invalid phone number format")
    return str(phone).strip()


# ── Identity ──────────────────────────────────────────────────────────────────

def validate_email(email: Optional[str], field: str = "email") -> str:
    if email is None or not str(email).strip():
        raise ValidationError(f"{field} is required")
    try:
        result = _check_email(str(email).strip(), check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValidationError(f"Invalid {field} format: {exc}") from exc
    return result.normalized


def validate_id_number(id_number: Optional[str]) -> Optional[str]:
    if id_number is None or str(id_number).strip() == "":
        return None
    value = str(id_number).strip()
    if not ID_NUMBER_RE.match(value):
        raise ValidationError("ID number must be at least 8 digits")
    return value


def require_text(value: Optional[str], field: str, min_length: int = 1, max_length: Optional[int] = None) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} is required")
    text = str(value).strip()
    if len(text) < min_length or (max_length is not None and len(text) > max_length):
        bounds = f"{min_length}-{max_length}" if max_length else f"at least {min_length}"
        raise ValidationError(f"{field} must be {bounds} characters")
    return text


# ── Money ─────────────────────────────────────────────────────────────────────

def to_decimal(value: Any, field: str) -> Decimal:
    """Convert to a 2dp Decimal; rejects missing, non-numeric and non-finite input."""
    if value is None or value == "":
        raise ValidationError(f"{field} is required")
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"{field} must be a number") from exc
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number")
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def require_positive(value: Any, field: str) -> Decimal:
    amount = to_decimal(value, field)
    if amount <= 0:
        raise ValidationError(f"{field} must be a positive number")
    return amount


def require_non_negative(value: Any, field: str) -> Decimal:
    amount = to_decimal(value, field)
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative")
    return amount


def validate_percentage(value: Any, field: str = "commission_percentage") -> Optional[Decimal]:
    if value is None or value == "":
        return None
    pct = to_decimal(value, field)
    if pct < 0 or pct > 100:
        raise ValidationError(f"{field} must be between 0 and 100")
    return pct


# ── Dates ─────────────────────────────────────────────────────────────────────

def parse_date(value: Any, field: str, required: bool = False) -> Optional[date]:
    """Accept a date, datetime or ISO ``YYYY-MM-DD`` string."""
    if value is None or value == "":
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as exc:
        raise ValidationError(f"{field} must be a date in YYYY-MM-DD format") from exc


def validate_month_token(value: Optional[str], field: str = "payment_month") -> Optional[str]:
    """``YYYY-MM``; longer date strings are truncated to their month."""
    if value is None or value == "":
        return None
    token = str(value)[:7]
    if not MONTH_TOKEN_RE.match(token):
        raise ValidationError(f"{field} must be in YYYY-MM format")
    return token


def first_of_month(value: Any, field: str = "billing_month") -> date:
    """Accept ``YYYY-MM`` or any date and return the first day of that month."""
    if isinstance(value, str) and MONTH_TOKEN_RE.match(value):
        year, month = value.split("-")
        return date(int(year), int(month), 1)
    parsed = parse_date(value, field, required=True)
    return parsed.replace(day=1)


def validate_month_year(month: Any, year: Any) -> tuple:
    try:
        month_i, year_i = int(month), int(year)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Month and year are required and must be numbers") from exc
    if not 1 <= month_i <= 12:
        raise ValidationError("Month must be between 1 and 12")
    if not 2000 <= year_i <= 2100:
        raise ValidationError("Year must be between 2000 and 2100")
    return month_i, year_i


# ── Enums & updates ───────────────────────────────────────────────────────────

def parse_enum(enum_cls, value: Any, field: str, error_cls=ValidationError):
    try:
        return enum_cls(value.value if hasattr(value, "value") else value)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_cls)
        raise error_cls(f"Invalid {field}. Must be one of: {allowed}") from exc


def whitelist(fields: Dict[str, Any], allowed: Iterable[str]) -> Dict[str, Any]:
    """Keep only updatable keys; unknown keys are an error, an empty update too."""
    allowed = set(allowed)
    unknown = sorted(set(fields) - allowed)
    if unknown:
        raise ValidationError(f"Fields cannot be updated: {', '.join(unknown)}")
    if not fields:
        raise ValidationError("No valid fields to update")
    return dict(fields)
