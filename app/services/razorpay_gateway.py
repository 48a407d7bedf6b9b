import logging
from typing import Any, Dict

import razorpay
import requests
from razorpay.errors import BadRequestError, GatewayError as RazorpayGatewayError, ServerError

from app.core.config import RazorpayConfig
from app.core.exceptions import GatewayConfigurationError, GatewayError

logger = logging.getLogger(__name__)

GENERIC_ORDER_ERROR = "Failed to create order with payment gateway"


class RazorpayGateway:
    """Thin wrapper around the razorpay SDK client; calls are blocking."""

    def __init__(self, config: RazorpayConfig):
        self.timeout = config.timeout
        if config.key_id and config.key_secret:
            self.client = razorpay.Client(auth=(config.key_id, config.key_secret))
        else:
            self.client = None
            logger.warning("Razorpay keys not set. Payment operations will fail.")

    def create_order(self, data: Dict[str, Any]) -> Dict[str, Any]:
        if not self.client:
            raise GatewayConfigurationError("Razorpay client not initialized")

        try:
            # extra kwargs are forwarded to requests, which bounds the call
            return self.client.order.create(data=data, timeout=self.timeout)
        except (BadRequestError, ServerError, RazorpayGatewayError) as e:
            logger.error(f"Error creating Razorpay order: {e}")
            raise GatewayError(str(e) or GENERIC_ORDER_ERROR)
        except requests.RequestException as e:
            logger.error(f"Razorpay request failed: {e}")
            raise GatewayError(GENERIC_ORDER_ERROR)
