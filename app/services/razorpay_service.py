import json
import logging
import time
from typing import Any, Dict, Optional

from fastapi.concurrency import run_in_threadpool

from app.core.amounts import parse_amount, to_minor_units
from app.core.config import RazorpayConfig
from app.core.exceptions import MissingParametersError
from app.core.security import verify_payment_signature, verify_webhook_signature
from app.schemas.common import PersistenceStatus, ServiceResult
from app.schemas.order import Gateway, OrderRecord, OrderStatus
from app.schemas.payment import OrderResponse, PaymentVerification
from app.services.order_repository import OrderRepository, best_effort
from app.services.razorpay_gateway import RazorpayGateway

logger = logging.getLogger(__name__)

PAID_EVENTS = ("payment.captured", "order.paid")


class RazorpayService:
    def __init__(self, config: RazorpayConfig, gateway: RazorpayGateway, repository: OrderRepository):
        self.config = config
        self.gateway = gateway
        self.repository = repository

    async def create_order(
        self,
        amount: Any,
        currency: str = "INR",
        receipt: Optional[str] = None,
        notes: Optional[Dict[str, Any]] = None,
    ) -> ServiceResult[OrderResponse]:
        """
        Creates a Razorpay order and records it locally with status ``created``.

        The amount is validated before the gateway is contacted; nothing is
        stored unless Razorpay accepted the order.
        """
        parsed_amount = parse_amount(amount)
        options = {
            "amount": to_minor_units(parsed_amount),
            "currency": currency,
            "receipt": receipt or f"receipt_{int(time.time() * 1000)}",
            "notes": notes or {},
            "payment_capture": 1,  # auto-capture payments
        }
        logger.info(f"Creating order with options: {json.dumps(options)}")

        order = await run_in_threadpool(self.gateway.create_order, options)
        logger.info(f"Order created with Razorpay: {order.get('id')}")

        record = OrderRecord(
            order_id=order["id"],
            gateway=Gateway.RAZORPAY,
            amount=parsed_amount,
            currency=order.get("currency", currency),
            status=OrderStatus.CREATED,
            receipt=order.get("receipt"),
            notes=order.get("notes") or {},
        )
        _, persistence, error = await best_effort(
            self.repository.create(record), f"Saving Razorpay order {record.order_id}"
        )

        response = OrderResponse(
            order_id=order["id"],
            amount=order["amount"],
            currency=order["currency"],
            receipt=order.get("receipt"),
        )
        return ServiceResult(data=response, persistence=persistence, persistence_error=error)

    async def verify_payment(
        self,
        order_id: Optional[str],
        payment_id: Optional[str],
        signature: Optional[str],
    ) -> ServiceResult[PaymentVerification]:
        """
        Checks the checkout signature and marks the order paid when it matches.

        A bad signature is reported through ``data.verified``; the stored
        order is left untouched. Raises MissingParametersError before any
        verification when a field is absent, ChecksumKeyError when the key
        secret is not configured.
        """
        if not order_id or not payment_id or not signature:
            raise MissingParametersError(
                "razorpay_order_id, razorpay_payment_id and razorpay_signature are required"
            )

        logger.info(f"Verifying payment for order: {order_id}")
        verified = verify_payment_signature(order_id, payment_id, signature, self.config.key_secret)
        outcome = PaymentVerification(verified=verified, order_id=order_id, payment_id=payment_id)
        if not verified:
            logger.warning(f"Signature validation failed for order {order_id}")
            return ServiceResult(data=outcome, persistence=PersistenceStatus.SKIPPED)

        logger.info("Signature is valid")
        return await self._mark_paid(outcome, order_id, payment_id)

    async def process_webhook(self, body: bytes, signature: Optional[str]) -> ServiceResult[PaymentVerification]:
        """
        Handles a Razorpay webhook delivery.

        Raises ValueError when the signature header or the event body is invalid.
        """
        if not signature:
            raise MissingParametersError("Missing signature header")
        if not verify_webhook_signature(body, signature, self.config.webhook_secret):
            logger.error("Invalid webhook signature")
            raise ValueError("Invalid signature")

        event = json.loads(body)
        if not isinstance(event, dict):
            raise ValueError("Webhook body must be a JSON object")
        event_name = event.get("event")
        if event_name not in PAID_EVENTS:
            logger.info(f"Ignoring webhook event {event_name}")
            return ServiceResult(data=None, persistence=PersistenceStatus.SKIPPED)

        payment_entity = event
        for key in ("payload", "payment", "entity"):
            payment_entity = payment_entity.get(key) if isinstance(payment_entity, dict) else None
        if not isinstance(payment_entity, dict):
            raise ValueError(f"Webhook {event_name} has no payment entity")
        order_id = payment_entity.get("order_id")
        payment_id = payment_entity.get("id")
        if not order_id or not payment_id:
            logger.warning(f"Webhook {event_name} without order or payment id")
            return ServiceResult(data=None, persistence=PersistenceStatus.SKIPPED)

        outcome = PaymentVerification(verified=True, order_id=order_id, payment_id=payment_id)
        return await self._mark_paid(outcome, order_id, payment_id)

    async def get_order(self, order_id: str) -> Optional[OrderRecord]:
        return await self.repository.find_by_id(order_id)

    async def _mark_paid(
        self, outcome: PaymentVerification, order_id: str, payment_id: str
    ) -> ServiceResult[PaymentVerification]:
        record, persistence, error = await best_effort(
            self.repository.update_status(order_id, OrderStatus.PAID, payment_id),
            f"Updating order {order_id}",
        )
        if persistence == PersistenceStatus.OK and record is None:
            logger.warning(f"Order {order_id} not found in local storage")
            persistence = PersistenceStatus.SKIPPED
        return ServiceResult(data=outcome, persistence=persistence, persistence_error=error)
