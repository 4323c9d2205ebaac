"""
Invoice model - the authoritative total plus its embedded payment schedule.

Design principles:
- Payment schedule entries are embedded (no separate _id), ordered by creation
- Paid entries keep their amount forever; only the percentage follows the total
- Unpaid entries absorb every change of the invoice total
- Dates are stored as YYYY-MM-DD strings (BSON has no date-only type)
"""

import random
import string
import time
from datetime import date
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_serializer

from app.core.config import settings
from app.models.base import MongoModel

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_payment_id() -> str:
    """Opaque entry id: ``payment_<epoch ms>_<9 base36 chars>``."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"payment_{int(time.time() * 1000)}_{suffix}"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"


class PaymentScheduleEntry(BaseModel):
    """
    One partial payment due on an invoice.

    Invariants:
    - amount >= 0, percentage >= 0, both finite (percentage may drift for paid entries)
    - status = paid  =>  amount is frozen
    """
    id: str = Field(default_factory=generate_payment_id)
    description: str = ""
    due_date: date = Field(default_factory=date.today)
    amount: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    percentage: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    status: PaymentStatus = PaymentStatus.UNPAID
    payment_date: Optional[date] = None

    model_config = {"from_attributes": True}

    @field_serializer("due_date", "payment_date")
    def _serialize_date(self, value: Optional[date]) -> Optional[str]:
        return value.isoformat() if value else None

    @property
    def is_paid(self) -> bool:
        return self.status == PaymentStatus.PAID


class Invoice(MongoModel):
    number: str
    client_name: Optional[str] = None
    currency: str = Field(default_factory=lambda: settings.DEFAULT_CURRENCY)
    amount: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    issue_date: date = Field(default_factory=date.today)
    due_date: Optional[date] = None
    notes: Optional[str] = None

    payment_schedules: List[PaymentScheduleEntry] = []

    @field_serializer("issue_date", "due_date")
    def _serialize_date(self, value: Optional[date]) -> Optional[str]:
        return value.isoformat() if value else None
