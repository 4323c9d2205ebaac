from typing import Optional, List, Any, Literal
from datetime import date, datetime
from pydantic import BaseModel, Field

from app.models.invoice import Invoice, PaymentScheduleEntry, PaymentStatus
from app.schemas.notification import Notification

ScheduleField = Literal["amount", "percentage", "status", "due_date", "description"]


class ScheduleSummary(BaseModel):
    total_amount: float
    total_percentage: float
    is_balanced: bool
    paid_count: int = 0
    unpaid_count: int = 0


class InvoiceBase(BaseModel):
    number: str
    client_name: Optional[str] = None
    currency: Optional[str] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None

    model_config = {"from_attributes": True}


class InvoiceCreate(InvoiceBase):
    amount: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    payment_schedules: List[PaymentScheduleEntry] = []


class InvoiceAmountUpdate(BaseModel):
    """New authoritative invoice total."""
    amount: float = Field(ge=0, allow_inf_nan=False)


class PaymentScheduleCreate(BaseModel):
    """Add-payment form. Checked by the reconciler so rejections come back as notifications."""
    due_date: Optional[date] = Field(default_factory=date.today)
    amount: Optional[float] = Field(default=None, allow_inf_nan=False)
    description: Optional[str] = None
    status: PaymentStatus = PaymentStatus.UNPAID


class PaymentScheduleUpdate(BaseModel):
    """Single field edit on one entry."""
    field: ScheduleField
    value: Any


class InvoiceResponse(BaseModel):
    id: str
    number: str
    client_name: Optional[str] = None
    currency: str
    amount: float
    issue_date: date
    due_date: Optional[date] = None
    notes: Optional[str] = None
    payment_schedules: List[PaymentScheduleEntry] = []
    summary: ScheduleSummary
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_invoice(cls, invoice: Invoice) -> "InvoiceResponse":
        from app.utils.payment_schedule_utils import schedule_summary

        return cls(
            id=str(invoice.id),
            number=invoice.number,
            client_name=invoice.client_name,
            currency=invoice.currency,
            amount=invoice.amount,
            issue_date=invoice.issue_date,
            due_date=invoice.due_date,
            notes=invoice.notes,
            payment_schedules=invoice.payment_schedules,
            summary=schedule_summary(invoice.payment_schedules, invoice.amount),
            created_at=invoice.created_at,
            updated_at=invoice.updated_at,
        )


class InvoiceChangeResponse(BaseModel):
    """Invoice after a schedule operation plus the messages it produced."""
    invoice: InvoiceResponse
    notifications: List[Notification] = []
