"""Persistent household and client records."""

from __future__ import annotations

import secrets
import string
import time
import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

_BASE36 = string.digits + string.ascii_uppercase


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits)).lower()


def generate_household_code(prefix: str = "HH") -> str:
    """System household code: ``HH-<base36 epoch ms>-<5 random chars>``."""
    stamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(secrets.choice(_BASE36) for _ in range(5))
    return f"{prefix}-{stamp}-{suffix}"


def normalize_name(value: str | None) -> str:
    """Trim and case-fold a name for identity comparison."""
    if not value:
        return ""
    return value.strip().casefold()


def new_id() -> str:
    return uuid.uuid4().hex


class Household(BaseModel):
    """A billing/record grouping of clients owned by one tenant."""

    id: str = Field(default_factory=new_id)
    household_code: str = Field(default_factory=generate_household_code)
    external_household_id: Optional[str] = None  # caller-supplied, unique per owner
    owner_id: str
    head_of_client_id: Optional[str] = None
    total_account_value: Decimal = Decimal("0")


class Client(BaseModel):
    """One household member."""

    id: str = Field(default_factory=new_id)
    household_id: str
    first_name: str
    middle_name: Optional[str] = None
    last_name: str
    dob: Optional[date] = None
    ssn: Optional[str] = None
    tax_filing_status: Optional[str] = None
    marital_status: Optional[str] = None
    mobile_number: Optional[str] = None
    home_phone: Optional[str] = None
    email: Optional[str] = None
    home_address: Optional[str] = None
