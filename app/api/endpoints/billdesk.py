import logging

from fastapi import APIRouter, Depends, Form
from fastapi.responses import JSONResponse

from app.api.deps import get_billdesk_service
from app.core.exceptions import InvalidAmountError, MessageFormatError, MissingParametersError
from app.schemas.common import PersistenceStatus
from app.schemas.payment import BillDeskOrderRequest, BillDeskOrderResponse
from app.services.billdesk_service import BillDeskService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/createOrder", response_model=BillDeskOrderResponse)
async def create_billdesk_order(
    request: BillDeskOrderRequest,
    service: BillDeskService = Depends(get_billdesk_service),
):
    """
    Build the BillDesk payment message and return the redirect URL.

    Accepts: amount, paymentOption
    Returns: redirectUrl
    """
    try:
        result = await service.create_order(request.amount, request.paymentOption)
    except InvalidAmountError as e:
        logger.warning(f"Invalid amount received: {request.amount!r}")
        return JSONResponse(status_code=400, content={"error": e.code, "details": e.message})
    except Exception as e:
        logger.error(f"Failed to create redirect URL: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to create encoded redirect", "details": str(e)},
        )

    if result.persistence == PersistenceStatus.FAILED:
        logger.warning(f"DB log failed: {result.persistence_error}")
    return BillDeskOrderResponse(redirectUrl=result.data.redirect_url)


@router.post("/payment_response")
async def billdesk_payment_response(
    msg: str = Form(None),
    service: BillDeskService = Depends(get_billdesk_service),
):
    """
    Return URL target for BillDesk: verifies the checksum of the posted msg.
    """
    try:
        result = await service.process_response(msg)
    except MissingParametersError as e:
        return JSONResponse(status_code=400, content={"error": e.code, "message": e.message})
    except MessageFormatError as e:
        logger.warning(f"Malformed BillDesk response: {e.message}")
        return JSONResponse(status_code=400, content={"error": e.code, "message": e.message})
    except Exception as e:
        logger.error(f"ERROR during BillDesk verification: {e}")
        return JSONResponse(
            status_code=500,
            content={"status": "error", "error": "VERIFICATION_FAILED", "message": str(e)},
        )

    if result.data is None:
        return JSONResponse(
            status_code=400,
            content={"status": "verification_failed", "message": "Invalid checksum provided"},
        )
    return result.data.model_dump()
