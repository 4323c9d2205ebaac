from typing import List
from fastapi import APIRouter, HTTPException
from app.schemas.invoice import (
    InvoiceCreate,
    InvoiceResponse,
    InvoiceAmountUpdate,
    InvoiceChangeResponse,
    PaymentScheduleCreate,
    PaymentScheduleUpdate,
)
from app.services.invoice_service import InvoiceService

router = APIRouter()

@router.get("/", response_model=List[InvoiceResponse])
async def list_invoices():
    """List all invoices, newest first"""
    invoices = await InvoiceService.list_invoices()
    return [InvoiceResponse.from_invoice(invoice) for invoice in invoices]

@router.post("/", response_model=InvoiceResponse, status_code=201)
async def create_invoice(invoice_in: InvoiceCreate):
    """Create an invoice; a default 100% payment schedule is added if none is given"""
    invoice = await InvoiceService.create(invoice_in)
    return InvoiceResponse.from_invoice(invoice)

@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(invoice_id: str):
    """Get an invoice by ID"""
    invoice = await InvoiceService.get(invoice_id)
    return InvoiceResponse.from_invoice(invoice)

@router.delete("/{invoice_id}")
async def delete_invoice(invoice_id: str):
    """Delete an invoice"""
    success = await InvoiceService.delete(invoice_id)
    if not success:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return {"message": "Invoice deleted successfully"}

@router.patch("/{invoice_id}/amount", response_model=InvoiceChangeResponse)
async def update_invoice_amount(invoice_id: str, request: InvoiceAmountUpdate):
    """Change the invoice total; unpaid payments are redistributed, paid ones stay fixed"""
    return await InvoiceService.update_amount(invoice_id, request.amount)

@router.post("/{invoice_id}/payment-schedules", response_model=InvoiceChangeResponse, status_code=201)
async def add_payment_schedule(invoice_id: str, request: PaymentScheduleCreate):
    """Add a payment to the schedule"""
    return await InvoiceService.add_payment(invoice_id, request)

@router.patch("/{invoice_id}/payment-schedules/{entry_id}", response_model=InvoiceChangeResponse)
async def update_payment_schedule(invoice_id: str, entry_id: str, request: PaymentScheduleUpdate):
    """Edit one field of a payment"""
    return await InvoiceService.update_payment(invoice_id, entry_id, request.field, request.value)

@router.delete("/{invoice_id}/payment-schedules/{entry_id}", response_model=InvoiceChangeResponse)
async def remove_payment_schedule(invoice_id: str, entry_id: str):
    """Remove an unpaid payment; the rest are relabeled"""
    return await InvoiceService.remove_payment(invoice_id, entry_id)
