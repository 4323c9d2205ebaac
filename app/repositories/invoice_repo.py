from motor.motor_asyncio import AsyncIOMotorDatabase
from bson import ObjectId
from datetime import datetime, timezone
from typing import Optional, List

from app.models.invoice import Invoice, PaymentScheduleEntry


class InvoiceRepository:
    """Invoice database operations. Payment schedules are embedded in the invoice document."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["invoices"]

    async def create_invoice(self, invoice: Invoice) -> Invoice:
        result = await self.collection.insert_one(invoice.to_document())
        invoice.id = result.inserted_id
        return invoice

    async def get_invoice(self, invoice_id: str) -> Optional[Invoice]:
        """Get a live (not soft-deleted) invoice; None for unknown or malformed ids."""
        if not ObjectId.is_valid(invoice_id):
            return None
        doc = await self.collection.find_one({
            "_id": ObjectId(invoice_id),
            "is_deleted": False
        })
        if doc:
            return Invoice(**doc)
        return None

    async def list_invoices(self) -> List[Invoice]:
        docs = await self.collection.find({"is_deleted": False}).sort("created_at", -1).to_list(None)
        return [Invoice(**doc) for doc in docs]

    async def update_invoice_fields(self, invoice_id: str, fields: dict) -> Optional[Invoice]:
        """$set arbitrary top-level fields and bump updated_at."""
        if not ObjectId.is_valid(invoice_id):
            return None
        update = dict(fields)
        update["updated_at"] = datetime.now(timezone.utc)
        await self.collection.update_one(
            {"_id": ObjectId(invoice_id), "is_deleted": False},
            {"$set": update}
        )
        return await self.get_invoice(invoice_id)

    async def replace_payment_schedules(
        self,
        invoice_id: str,
        schedules: List[PaymentScheduleEntry],
        amount: Optional[float] = None
    ) -> Optional[Invoice]:
        """Persist a whole schedule (and optionally the new total) in one update."""
        fields = {"payment_schedules": [entry.model_dump(mode="json") for entry in schedules]}
        if amount is not None:
            fields["amount"] = amount
        return await self.update_invoice_fields(invoice_id, fields)

    async def soft_delete_invoice(self, invoice_id: str) -> bool:
        if not ObjectId.is_valid(invoice_id):
            return False
        result = await self.collection.update_one(
            {"_id": ObjectId(invoice_id), "is_deleted": False},
            {"$set": {"is_deleted": True, "updated_at": datetime.now(timezone.utc)}}
        )
        return result.modified_count > 0
