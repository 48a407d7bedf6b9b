import hashlib
import hmac
import os

# keep the app away from orders.json and real credentials during tests
os.environ.setdefault("ORDER_STORE", "memory")

from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_order_repository, get_razorpay_gateway, get_settings
from app.core.config import Settings
from app.core.exceptions import GatewayError
from app.main import app
from app.services.order_repository import InMemoryOrderRepository

TEST_KEY_SECRET = "test_key_secret"
TEST_WEBHOOK_SECRET = "test_webhook_secret"
TEST_CHECKSUM_KEY = "test_checksum_key"


def sign_payment(order_id: str, payment_id: str, secret: str) -> str:
    """Signs a checkout the way Razorpay does, for building valid callbacks."""
    return hmac.new(secret.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256).hexdigest()


class FakeGateway:
    """Stands in for RazorpayGateway; records every order it is asked to create."""

    def __init__(self, error: Exception = None):
        self.calls: List[Dict[str, Any]] = []
        self.error = error

    def create_order(self, data: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(data)
        if self.error:
            raise self.error
        return {
            "id": f"order_test{len(self.calls):04d}",
            "entity": "order",
            "amount": data["amount"],
            "currency": data["currency"],
            "receipt": data["receipt"],
            "notes": data["notes"],
            "status": "created",
        }


class BrokenRepository(InMemoryOrderRepository):
    async def create(self, record):
        raise OSError("disk full")

    async def update_status(self, order_id, status, payment_id=None):
        raise OSError("disk full")


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        ENVIRONMENT="test",
        BILLDESK_MERCHANT_ID="BDMERCHANT",
        BILLDESK_SECURITY_ID="bdsecid",
        BILLDESK_CHECKSUM_KEY=TEST_CHECKSUM_KEY,
        BILLDESK_USE_CHECKSUM=True,
        BILLDESK_BASE_URL="https://pgi.example.com/pay?msg=",
        BILLDESK_RETURN_URL="https://shop.example.com/api/payment_response",
        RAZORPAY_KEY_ID="rzp_test_key",
        RAZORPAY_KEY_SECRET=TEST_KEY_SECRET,
        RAZORPAY_WEBHOOK_SECRET=TEST_WEBHOOK_SECRET,
        ORDER_STORE="memory",
    )


@pytest.fixture
def repository() -> InMemoryOrderRepository:
    return InMemoryOrderRepository()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def client(test_settings, repository, gateway):
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_order_repository] = lambda: repository
    app.dependency_overrides[get_razorpay_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def failing_gateway() -> FakeGateway:
    return FakeGateway(error=GatewayError("The amount must be atleast INR 1.00"))
