import logging
from typing import Any, Optional

from app.core.amounts import parse_amount
from app.core.billdesk import (
    AUTH_STATUS_FAILURE,
    AUTH_STATUS_PENDING,
    AUTH_STATUS_SUCCESS,
    append_checksum,
    build_payment_message,
    verify_response_message,
)
from app.core.config import BillDeskConfig
from app.core.exceptions import ChecksumKeyError, MissingParametersError
from app.core.identifiers import generate_customer_id, generate_order_id
from app.schemas.common import PersistenceStatus, ServiceResult
from app.schemas.order import Gateway, OrderRecord, OrderStatus
from app.schemas.payment import BillDeskOrder, BillDeskPaymentResult
from app.services.order_repository import OrderRepository, best_effort

logger = logging.getLogger(__name__)

AUTH_STATUS_TO_ORDER_STATUS = {
    AUTH_STATUS_SUCCESS: OrderStatus.PAID,
    AUTH_STATUS_FAILURE: OrderStatus.FAILED,
    AUTH_STATUS_PENDING: OrderStatus.PENDING,
}


class BillDeskService:
    def __init__(self, config: BillDeskConfig, repository: OrderRepository):
        self.config = config
        self.repository = repository

    def build_redirect(self, amount: Any) -> BillDeskOrder:
        """
        Builds the pipe-delimited payment request and the redirect URL.

        Raises InvalidAmountError, GatewayConfigurationError or ChecksumKeyError.
        """
        parsed_amount = parse_amount(amount)
        if self.config.use_checksum and not self.config.checksum_key:
            raise ChecksumKeyError("BillDesk checksum key is not configured")

        merchant_transaction_id = generate_order_id()
        customer_reference = generate_customer_id()

        message = build_payment_message(
            merchant_id=self.config.merchant_id,
            security_id=self.config.security_id,
            customer_reference=customer_reference,
            amount=parsed_amount,
            return_url=self.config.return_url,
            currency=self.config.currency,
        )
        if self.config.use_checksum:
            message = append_checksum(message, self.config.checksum_key)
        logger.info(f"Constructed BillDesk msg: {message}")

        # BillDesk wants the message appended as-is, without URL encoding
        redirect_url = f"{self.config.base_url}{message}"
        logger.info(f"Final redirect URL: {redirect_url}")

        return BillDeskOrder(
            redirect_url=redirect_url,
            message=message,
            merchant_transaction_id=merchant_transaction_id,
            customer_reference=customer_reference,
            amount=parsed_amount,
            currency=self.config.currency,
        )

    async def create_order(self, amount: Any, payment_option: Optional[str] = None) -> ServiceResult[BillDeskOrder]:
        logger.info(f"Received BillDesk order request: amount={amount}")
        order = self.build_redirect(amount)

        record = OrderRecord(
            order_id=order.merchant_transaction_id,
            gateway=Gateway.BILLDESK,
            amount=order.amount,
            currency=order.currency,
            status=OrderStatus.PENDING,
            customer_reference=order.customer_reference,
            redirect_url=order.redirect_url,
            notes={"paymentOption": payment_option} if payment_option else {},
        )
        _, persistence, error = await best_effort(
            self.repository.create(record), f"Saving BillDesk order {record.order_id}"
        )
        return ServiceResult(data=order, persistence=persistence, persistence_error=error)

    async def process_response(self, message: Optional[str]) -> ServiceResult[BillDeskPaymentResult]:
        """
        Verifies the message BillDesk posts to the return URL and records the outcome.

        Returns a result with ``data`` None when the checksum does not match.
        Raises MissingParametersError or MessageFormatError for unusable input.
        """
        if not message:
            raise MissingParametersError("msg is required")

        fields = verify_response_message(message, self.config.checksum_key)
        if fields is None:
            return ServiceResult(data=None, persistence=PersistenceStatus.SKIPPED)

        customer_reference = fields["CustomerID"]
        auth_status = fields["AuthStatus"]
        order_status = AUTH_STATUS_TO_ORDER_STATUS.get(auth_status, OrderStatus.FAILED)
        logger.info(f"BillDesk response for {customer_reference}: AuthStatus={auth_status}")

        result = BillDeskPaymentResult(
            status=order_status.value,
            customer_reference=customer_reference,
            transaction_reference=fields["TxnReferenceNo"],
            auth_status=auth_status,
            amount=fields["TxnAmount"],
        )

        record, persistence, error = await best_effort(
            self.repository.find_by_customer_reference(customer_reference),
            f"Looking up BillDesk order {customer_reference}",
        )
        if persistence != PersistenceStatus.OK:
            return ServiceResult(data=result, persistence=persistence, persistence_error=error)
        if record is None:
            logger.warning(f"Order with customer reference {customer_reference} not found in store")
            return ServiceResult(data=result, persistence=PersistenceStatus.SKIPPED)

        result.order_id = record.order_id
        if order_status == OrderStatus.PENDING:
            return ServiceResult(data=result, persistence=PersistenceStatus.SKIPPED)

        _, persistence, error = await best_effort(
            self.repository.update_status(record.order_id, order_status, fields["TxnReferenceNo"]),
            f"Updating BillDesk order {record.order_id}",
        )
        return ServiceResult(data=result, persistence=persistence, persistence_error=error)
