from typing import Optional


class PaymentError(Exception):
    """Base class for errors raised by the payment services."""

    code: str = "PAYMENT_ERROR"
    status_code: int = 500

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class InvalidAmountError(PaymentError, ValueError):
    code = "VALIDATION_ERROR"
    status_code = 400


class MissingParametersError(PaymentError, ValueError):
    code = "MISSING_PARAMETERS"
    status_code = 400


class MessageFormatError(PaymentError, ValueError):
    code = "INVALID_MESSAGE"
    status_code = 400


class GatewayError(PaymentError):
    code = "ORDER_CREATION_FAILED"


class GatewayConfigurationError(PaymentError):
    code = "GATEWAY_NOT_CONFIGURED"


class ChecksumKeyError(GatewayConfigurationError):
    code = "CHECKSUM_KEY_MISSING"
