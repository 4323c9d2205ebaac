import os
from datetime import date

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from app.main import app
from app.models.invoice import PaymentScheduleEntry, PaymentStatus
from app.services.notifications import NotificationSink
from app.services.payment_schedule_service import PaymentScheduleReconciler

# Test database configuration
TEST_MONGODB_URI = os.getenv("MONGODB_URI")
TEST_MONGODB_DB = "studio_billing_test"


def make_entry(amount, percentage=0.0, status=PaymentStatus.UNPAID, description="", entry_id=None):
    """Build a schedule entry with a fixed due date."""
    fields = dict(
        description=description,
        due_date=date(2026, 1, 15),
        amount=amount,
        percentage=percentage,
        status=status,
    )
    if entry_id:
        fields["id"] = entry_id
    return PaymentScheduleEntry(**fields)


@pytest.fixture
def entry_factory():
    return make_entry


@pytest.fixture
def sink():
    return NotificationSink()


@pytest.fixture
def reconciler(sink):
    return PaymentScheduleReconciler(sink)


@pytest.fixture
def three_unpaid():
    """Three unpaid entries splitting a 900 invoice evenly."""
    return [
        make_entry(300, 100 / 3, description="1st payment", entry_id="p1"),
        make_entry(300, 100 / 3, description="2nd payment", entry_id="p2"),
        make_entry(300, 100 / 3, description="3rd payment", entry_id="p3"),
    ]


@pytest.fixture
def client():
    """API client without lifespan: no MongoDB connection is opened."""
    return TestClient(app)


@pytest_asyncio.fixture
async def test_db() -> AsyncIOMotorDatabase:
    """Fixture for test MongoDB database (for async repository tests)."""
    if not TEST_MONGODB_URI:
        pytest.skip("MONGODB_URI not set")

    client = AsyncIOMotorClient(TEST_MONGODB_URI)
    db = client[TEST_MONGODB_DB]

    # Drop database before test to ensure clean state
    await client.drop_database(TEST_MONGODB_DB)

    yield db

    await client.drop_database(TEST_MONGODB_DB)
    client.close()
