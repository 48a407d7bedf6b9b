from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse
from app.api.deps import get_razorpay_service, get_settings
from app.core.config import Settings
from app.core.exceptions import InvalidAmountError, MissingParametersError
from app.schemas.common import PersistenceStatus
from app.schemas.payment import (
    OrderCreateRequest,
    OrderResponse,
    OrderStatusResponse,
    PaymentVerificationRequest,
    PaymentVerificationResponse,
)
from app.services.razorpay_service import RazorpayService
import logging

router = APIRouter()
logger = logging.getLogger(__name__)


def _error_details(app_settings: Settings, e: Exception) -> dict:
    return {"details": repr(e)} if app_settings.is_development else {}


@router.post("/create-order", response_model=OrderResponse)
async def create_order(
    request: OrderCreateRequest,
    service: RazorpayService = Depends(get_razorpay_service),
    app_settings: Settings = Depends(get_settings),
):
    """
    Create a Razorpay order for payment.

    Accepts: amount (major units), currency, receipt, notes
    Returns: order_id, amount (paise), currency, receipt
    """
    logger.info("--- NEW ORDER REQUEST ---")
    try:
        result = await service.create_order(request.amount, request.currency, request.receipt, request.notes)
    except InvalidAmountError as e:
        logger.warning("Invalid amount received")
        return JSONResponse(status_code=400, content={"error": e.code, "message": e.message})
    except Exception as e:
        logger.error(f"ERROR creating order: {e}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "ORDER_CREATION_FAILED",
                "message": getattr(e, "message", None) or str(e),
                **_error_details(app_settings, e),
            },
        )

    if result.persistence == PersistenceStatus.FAILED:
        logger.warning(f"Order {result.data.order_id} was not saved locally: {result.persistence_error}")
    return result.data


async def _verify(
    service: RazorpayService,
    app_settings: Settings,
    params: PaymentVerificationRequest,
) -> JSONResponse:
    try:
        result = await service.verify_payment(
            params.razorpay_order_id, params.razorpay_payment_id, params.razorpay_signature
        )
    except MissingParametersError as e:
        logger.warning("Missing required parameters for verification")
        return JSONResponse(status_code=400, content={"error": e.code, "message": e.message})
    except Exception as e:
        logger.error(f"ERROR during verification: {e}")
        return JSONResponse(
            status_code=500,
            content={
                "status": "error",
                "error": "VERIFICATION_FAILED",
                "message": getattr(e, "message", None) or str(e),
                **_error_details(app_settings, e),
            },
        )

    if not result.data.verified:
        return JSONResponse(
            status_code=400,
            content={"status": "verification_failed", "message": "Invalid signature provided"},
        )

    response = PaymentVerificationResponse(order_id=result.data.order_id, payment_id=result.data.payment_id)
    return JSONResponse(status_code=200, content=response.model_dump())


@router.post("/verify-payment", response_model=PaymentVerificationResponse)
async def verify_payment(
    request: PaymentVerificationRequest,
    service: RazorpayService = Depends(get_razorpay_service),
    app_settings: Settings = Depends(get_settings),
):
    """
    Verify the signature returned by Razorpay checkout and mark the order paid.
    """
    logger.info("--- PAYMENT VERIFICATION REQUEST ---")
    return await _verify(service, app_settings, request)


@router.post("/razorpay-webhook")
async def razorpay_webhook(
    request: Request,
    x_razorpay_signature: Optional[str] = Header(None),
    service: RazorpayService = Depends(get_razorpay_service),
):
    """
    Handle Razorpay webhook events.

    - Verifies the X-Razorpay-Signature header using RAZORPAY_WEBHOOK_SECRET
    - On 'payment.captured' / 'order.paid', marks the stored order as paid
    - Returns 200 OK
    """
    body = await request.body()

    try:
        await service.process_webhook(body, x_razorpay_signature)
        return {"status": "ok"}
    except ValueError as e:
        return JSONResponse(status_code=400, content={"status": "error", "message": str(e)})
    except Exception as e:
        logger.error(f"Webhook processing error: {e}")
        return JSONResponse(status_code=500, content={"status": "error", "message": "Internal server error"})


@router.get("/payment-success", response_model=OrderStatusResponse)
async def payment_success(
    order_id: Optional[str] = None,
    service: RazorpayService = Depends(get_razorpay_service),
):
    order = None
    if order_id:
        logger.info(f"Showing success page for order: {order_id}")
        order = await service.get_order(order_id)
    return OrderStatusResponse(order=order)


@router.post("/")
async def handle_payment_return(
    request: Request,
    service: RazorpayService = Depends(get_razorpay_service),
    app_settings: Settings = Depends(get_settings),
):
    # Razorpay posts the checkout result here when this URL is configured as callback_url
    form_data = await request.form()
    params = PaymentVerificationRequest(
        razorpay_order_id=form_data.get("razorpay_order_id"),
        razorpay_payment_id=form_data.get("razorpay_payment_id"),
        razorpay_signature=form_data.get("razorpay_signature"),
    )
    return await _verify(service, app_settings, params)
