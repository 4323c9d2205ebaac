"""Payment schedule helpers: ordinal labels, amount/percentage conversion, totals."""
from typing import List, Optional

from app.models.invoice import PaymentScheduleEntry
from app.schemas.invoice import ScheduleSummary

_ORDINAL_SUFFIXES = ["th", "st", "nd", "rd"]


def ordinal(num: int) -> str:
    """1 -> '1st', 2 -> '2nd', 11 -> '11th', 22 -> '22nd', 113 -> '113th'."""
    v = num % 100
    if 11 <= v <= 13:
        return f"{num}th"
    last = v % 10
    suffix = _ORDINAL_SUFFIXES[last] if last < 4 else "th"
    return f"{num}{suffix}"


def next_ordinal_description(count: int) -> str:
    """Label for the entry that follows ``count`` existing entries."""
    return f"{ordinal(count + 1)} payment"


def relabel(schedules: List[PaymentScheduleEntry]) -> List[PaymentScheduleEntry]:
    """Regenerate every description from list position."""
    return [
        entry.model_copy(update={"description": next_ordinal_description(index)})
        for index, entry in enumerate(schedules)
    ]


def percentage_of(amount: float, invoice_amount: float) -> float:
    """Share of the invoice total in percent; 0 for a zero total."""
    return (amount / invoice_amount) * 100 if invoice_amount > 0 else 0.0


def amount_for_percentage(percentage: float, invoice_amount: float) -> float:
    return (invoice_amount * percentage) / 100


def find_entry(schedules: List[PaymentScheduleEntry], entry_id: str) -> Optional[PaymentScheduleEntry]:
    return next((entry for entry in schedules if entry.id == entry_id), None)


def schedule_summary(schedules: List[PaymentScheduleEntry], invoice_amount: float) -> ScheduleSummary:
    """Totals shown under the schedule; balanced when the amounts add up to the invoice."""
    total_amount = sum(entry.amount for entry in schedules)
    return ScheduleSummary(
        total_amount=total_amount,
        total_percentage=percentage_of(total_amount, invoice_amount),
        is_balanced=abs(total_amount - invoice_amount) < 0.01,
        paid_count=sum(1 for entry in schedules if entry.is_paid),
        unpaid_count=sum(1 for entry in schedules if not entry.is_paid),
    )
