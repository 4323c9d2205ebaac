"""
PaymentScheduleReconciler - keeps an invoice's payment schedule consistent
with the invoice total and with user edits.

Rules:
1. Paid entries never change amount; their percentage follows the total
2. Unpaid entries share whatever the paid entries leave of the total,
   in proportion to their previous amounts (equal split if all were zero)
3. Paid entries cannot be edited (amount/percentage) or removed
4. Removing an entry relabels the rest "1st payment", "2nd payment", ...

All operations are pure: the input list and its entries are never mutated.
A rejected or no-op operation returns the input list object itself.
"""

import logging
import math
from datetime import date
from typing import Any, List, Optional

from app.core.config import settings
from app.core.exceptions import (
    NegativeRemainderError,
    PaidEntryImmutableError,
    PaymentScheduleValidationError,
)
from app.models.invoice import PaymentScheduleEntry, PaymentStatus
from app.schemas.invoice import PaymentScheduleCreate
from app.services.notifications import NotificationSink
from app.utils.payment_schedule_utils import (
    amount_for_percentage,
    find_entry,
    next_ordinal_description,
    percentage_of,
    relabel,
    schedule_summary,
)

logger = logging.getLogger(__name__)

NEGATIVE_REMAINDER_MESSAGE = "Invoice total is less than already paid amounts. Please adjust manually."
PAID_EDIT_MESSAGE = "Cannot modify amount or percentage of a paid payment schedule"
PAID_REMOVE_MESSAGE = "Cannot remove a paid payment schedule"
PERCENTAGE_RANGE_MESSAGE = "Percentage must be between 0 and 100"
UNBALANCED_MESSAGE = "Payment schedule must equal invoice amount"

SCHEDULE_FIELDS = ("amount", "percentage", "status", "due_date", "description")

Schedules = List[PaymentScheduleEntry]


def _finite(value: Any) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"{value!r} is not a finite number")
    return number


class PaymentScheduleReconciler:
    def __init__(self, notifier: Optional[NotificationSink] = None, tolerance: Optional[float] = None):
        self.notifier = notifier if notifier is not None else NotificationSink()
        self.tolerance = settings.SCHEDULE_CHANGE_TOLERANCE if tolerance is None else tolerance

    next_ordinal_description = staticmethod(next_ordinal_description)

    def _reject(self, error_cls, message: str):
        self.notifier.error(message)
        raise error_cls(message)

    def ensure_default_schedule(self, schedules: Schedules, invoice_amount: float) -> Schedules:
        """Synthesize the single 100% entry for an invoice without a schedule."""
        if schedules:
            return schedules

        return [
            PaymentScheduleEntry(
                description=next_ordinal_description(0),
                due_date=date.today(),
                amount=invoice_amount,
                percentage=100.0,
                status=PaymentStatus.UNPAID,
            )
        ]

    def validate_schedule(self, schedules: Schedules, invoice_amount: float) -> Schedules:
        """
        Accept a caller-supplied schedule for a new invoice.

        Percentages are recomputed from the amounts; the amounts must add up to
        the invoice total.
        """
        if not schedules:
            return schedules

        updated = [
            entry.model_copy(update={"percentage": percentage_of(entry.amount, invoice_amount)})
            for entry in schedules
        ]
        if not schedule_summary(updated, invoice_amount).is_balanced:
            self._reject(PaymentScheduleValidationError, UNBALANCED_MESSAGE)
        return updated

    def reconcile_on_amount_change(self, schedules: Schedules, new_invoice_amount: float) -> Schedules:
        """
        Redistribute the schedule over a new invoice total.

        Paid amounts stay as they are; the remainder is split across unpaid
        entries by their previous relative shares. Raises NegativeRemainderError
        (schedule untouched) when the paid entries alone exceed the new total.
        """
        if not math.isfinite(new_invoice_amount):
            self._reject(PaymentScheduleValidationError, f"Invalid invoice amount: {new_invoice_amount!r}")
        if not schedules:
            return schedules

        paid = [entry for entry in schedules if entry.is_paid]
        unpaid = [entry for entry in schedules if not entry.is_paid]

        total_paid = sum(entry.amount for entry in paid)
        remaining = new_invoice_amount - total_paid
        logger.debug(
            "Reconciling %d paid / %d unpaid entries: total=%s paid=%s remaining=%s",
            len(paid), len(unpaid), new_invoice_amount, total_paid, remaining,
        )

        if remaining < 0:
            self._reject(NegativeRemainderError, NEGATIVE_REMAINDER_MESSAGE)

        # Pre-change amounts; zero-amount entries keep a zero share unless all are zero
        total_unpaid_prev = sum(entry.amount for entry in unpaid)

        updated: Schedules = []
        for entry in schedules:
            if entry.is_paid:
                updated.append(entry.model_copy(update={
                    "percentage": percentage_of(entry.amount, new_invoice_amount),
                }))
                continue

            if total_unpaid_prev > 0:
                share = entry.amount / total_unpaid_prev
            else:
                share = 1 / len(unpaid)
            new_amount = remaining * share
            updated.append(entry.model_copy(update={
                "amount": new_amount,
                "percentage": percentage_of(new_amount, new_invoice_amount),
            }))

        if not self._has_changes(schedules, updated):
            logger.debug("Payment schedule already matches invoice total %s", new_invoice_amount)
            return schedules

        if paid and unpaid:
            self.notifier.info(
                f"Payment schedules adjusted. {len(paid)} paid payment(s) unchanged, "
                f"{len(unpaid)} unpaid payment(s) redistributed."
            )
        return updated

    def _has_changes(self, before: Schedules, after: Schedules) -> bool:
        for old, new in zip(before, after):
            if abs(new.amount - old.amount) > self.tolerance:
                return True
            if abs(new.percentage - old.percentage) > self.tolerance:
                return True
        return False

    def update_entry(
        self,
        schedules: Schedules,
        entry_id: str,
        field: str,
        value: Any,
        invoice_amount: float,
    ) -> Schedules:
        """Apply one field edit to one entry, keeping amount and percentage in sync."""
        if field not in SCHEDULE_FIELDS:
            self._reject(PaymentScheduleValidationError, f"Unknown payment schedule field: {field}")

        entry = find_entry(schedules, entry_id)
        if entry is None:
            logger.warning("Payment schedule %s not found, update ignored", entry_id)
            return schedules

        if entry.is_paid and field in ("amount", "percentage"):
            self._reject(PaidEntryImmutableError, PAID_EDIT_MESSAGE)

        try:
            changes = self._changes_for(entry, field, value, invoice_amount)
            updated_entry = PaymentScheduleEntry.model_validate({**entry.model_dump(), **changes})
        except (ValueError, TypeError):
            self._reject(PaymentScheduleValidationError, f"Invalid value for {field}: {value!r}")

        return [updated_entry if item.id == entry_id else item for item in schedules]

    def _changes_for(self, entry: PaymentScheduleEntry, field: str, value: Any, invoice_amount: float) -> dict:
        if field == "status":
            status = PaymentStatus(value)
            if status == PaymentStatus.PAID and not entry.is_paid:
                # Freeze the current amount; other entries are not redistributed
                return {
                    "status": status,
                    "amount": entry.amount,
                    "percentage": percentage_of(entry.amount, invoice_amount),
                    "payment_date": date.today(),
                }
            if status == PaymentStatus.UNPAID:
                return {"status": status, "payment_date": None}
            return {"status": status}

        if field == "amount":
            amount = _finite(value)
            return {"amount": amount, "percentage": percentage_of(amount, invoice_amount)}

        if field == "percentage":
            percentage = _finite(value)
            if not 0 <= percentage <= 100:
                self._reject(PaymentScheduleValidationError, PERCENTAGE_RANGE_MESSAGE)
            return {"percentage": percentage, "amount": amount_for_percentage(percentage, invoice_amount)}

        return {field: value}

    def remove_entry(self, schedules: Schedules, entry_id: str) -> Schedules:
        entry = find_entry(schedules, entry_id)
        if entry is None:
            logger.warning("Payment schedule %s not found, nothing removed", entry_id)
            return schedules

        if entry.is_paid:
            self._reject(PaidEntryImmutableError, PAID_REMOVE_MESSAGE)

        remaining = relabel([item for item in schedules if item.id != entry_id])
        self.notifier.success("Payment schedule removed")
        return remaining

    def add_entry(self, schedules: Schedules, new_payment: PaymentScheduleCreate, invoice_amount: float) -> Schedules:
        """
        Append a payment.

        If the new amount pushes the schedule past the invoice total, the last
        unpaid entry gives up the excess (never below zero).
        """
        amount = new_payment.amount
        if not new_payment.due_date or not amount:
            self._reject(PaymentScheduleValidationError, "Please fill in all fields")
        if amount <= 0:
            self._reject(PaymentScheduleValidationError, "Amount must be greater than 0")

        total_current = sum(entry.amount for entry in schedules)
        exceeds = total_current + amount > invoice_amount
        if exceeds and all(entry.is_paid for entry in schedules):
            self._reject(
                PaymentScheduleValidationError,
                "Cannot add payment: would exceed invoice amount and all existing payments are paid",
            )

        updated = list(schedules)
        if exceeds:
            excess = total_current + amount - invoice_amount
            for index in range(len(updated) - 1, -1, -1):
                previous = updated[index]
                if previous.is_paid:
                    continue
                reduced = max(0.0, previous.amount - excess)
                updated[index] = previous.model_copy(update={
                    "amount": reduced,
                    "percentage": percentage_of(reduced, invoice_amount),
                })
                self.notifier.success(f"Adjusted previous unpaid payment by ${excess:.2f} to accommodate new payment")
                break

        entry = PaymentScheduleEntry(
            description=new_payment.description or next_ordinal_description(len(schedules)),
            due_date=new_payment.due_date,
            amount=amount,
            percentage=percentage_of(amount, invoice_amount),
            status=new_payment.status,
            payment_date=date.today() if new_payment.status == PaymentStatus.PAID else None,
        )
        updated.append(entry)
        self.notifier.success("Payment schedule added")
        return updated
