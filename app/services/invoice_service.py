import logging
from typing import Any, List

from fastapi import HTTPException

from app.db.session import get_database
from app.models.invoice import Invoice
from app.repositories.invoice_repo import InvoiceRepository
from app.schemas.invoice import (
    InvoiceCreate,
    InvoiceResponse,
    InvoiceChangeResponse,
    PaymentScheduleCreate,
)
from app.services.notifications import NotificationSink
from app.services.payment_schedule_service import PaymentScheduleReconciler
from app.utils.payment_schedule_utils import find_entry

logger = logging.getLogger(__name__)


def _changed(invoice: Invoice, sink: NotificationSink) -> InvoiceChangeResponse:
    return InvoiceChangeResponse(
        invoice=InvoiceResponse.from_invoice(invoice),
        notifications=sink.drain()
    )


class InvoiceService:
    """Load an invoice, run one reconciler operation on its schedule, persist the result."""

    @staticmethod
    async def _repository() -> InvoiceRepository:
        db = await get_database()
        return InvoiceRepository(db)

    @staticmethod
    async def _get_or_404(repo: InvoiceRepository, invoice_id: str) -> Invoice:
        invoice = await repo.get_invoice(invoice_id)
        if not invoice:
            raise HTTPException(status_code=404, detail="Invoice not found")
        return invoice

    @staticmethod
    def _require_entry(invoice: Invoice, entry_id: str) -> None:
        if find_entry(invoice.payment_schedules, entry_id) is None:
            raise HTTPException(status_code=404, detail="Payment schedule not found")

    @staticmethod
    async def list_invoices() -> List[Invoice]:
        repo = await InvoiceService._repository()
        return await repo.list_invoices()

    @staticmethod
    async def create(invoice_in: InvoiceCreate) -> Invoice:
        repo = await InvoiceService._repository()

        invoice = Invoice(**invoice_in.model_dump(exclude_none=True))
        reconciler = PaymentScheduleReconciler()
        schedules = reconciler.validate_schedule(invoice.payment_schedules, invoice.amount)
        invoice.payment_schedules = reconciler.ensure_default_schedule(schedules, invoice.amount)

        invoice = await repo.create_invoice(invoice)
        logger.info("Created invoice %s (%s) for %.2f", invoice.id, invoice.number, invoice.amount)
        return invoice

    @staticmethod
    async def get(invoice_id: str) -> Invoice:
        """Load an invoice, synthesizing and saving the default schedule if it has none."""
        repo = await InvoiceService._repository()
        invoice = await InvoiceService._get_or_404(repo, invoice_id)

        reconciler = PaymentScheduleReconciler()
        schedules = reconciler.ensure_default_schedule(invoice.payment_schedules, invoice.amount)
        if schedules is not invoice.payment_schedules:
            logger.info("Bootstrapping default payment schedule for invoice %s", invoice_id)
            invoice = await repo.replace_payment_schedules(invoice_id, schedules)
        return invoice

    @staticmethod
    async def update_amount(invoice_id: str, amount: float) -> InvoiceChangeResponse:
        """Change the invoice total and redistribute the unpaid part of the schedule."""
        repo = await InvoiceService._repository()
        invoice = await InvoiceService._get_or_404(repo, invoice_id)

        sink = NotificationSink()
        reconciler = PaymentScheduleReconciler(sink)
        if invoice.payment_schedules:
            schedules = reconciler.reconcile_on_amount_change(invoice.payment_schedules, amount)
        else:
            schedules = reconciler.ensure_default_schedule(invoice.payment_schedules, amount)

        updated = await repo.replace_payment_schedules(invoice_id, schedules, amount=amount)
        return _changed(updated, sink)

    @staticmethod
    async def add_payment(invoice_id: str, payment_in: PaymentScheduleCreate) -> InvoiceChangeResponse:
        repo = await InvoiceService._repository()
        invoice = await InvoiceService._get_or_404(repo, invoice_id)

        sink = NotificationSink()
        reconciler = PaymentScheduleReconciler(sink)
        schedules = reconciler.add_entry(invoice.payment_schedules, payment_in, invoice.amount)

        updated = await repo.replace_payment_schedules(invoice_id, schedules)
        return _changed(updated, sink)

    @staticmethod
    async def update_payment(invoice_id: str, entry_id: str, field: str, value: Any) -> InvoiceChangeResponse:
        repo = await InvoiceService._repository()
        invoice = await InvoiceService._get_or_404(repo, invoice_id)
        InvoiceService._require_entry(invoice, entry_id)

        sink = NotificationSink()
        reconciler = PaymentScheduleReconciler(sink)
        schedules = reconciler.update_entry(invoice.payment_schedules, entry_id, field, value, invoice.amount)

        updated = await repo.replace_payment_schedules(invoice_id, schedules)
        return _changed(updated, sink)

    @staticmethod
    async def remove_payment(invoice_id: str, entry_id: str) -> InvoiceChangeResponse:
        repo = await InvoiceService._repository()
        invoice = await InvoiceService._get_or_404(repo, invoice_id)
        InvoiceService._require_entry(invoice, entry_id)

        sink = NotificationSink()
        reconciler = PaymentScheduleReconciler(sink)
        schedules = reconciler.remove_entry(invoice.payment_schedules, entry_id)

        updated = await repo.replace_payment_schedules(invoice_id, schedules)
        return _changed(updated, sink)

    @staticmethod
    async def delete(invoice_id: str) -> bool:
        """Soft delete an invoice"""
        repo = await InvoiceService._repository()
        return await repo.soft_delete_invoice(invoice_id)
