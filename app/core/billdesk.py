"""
BillDesk pipe-delimited message codec.

The request message is a fixed sequence of 21 positional fields. BillDesk
rejects anything that is reordered, renamed or shortened, so the layout
below is the contract; unused positions carry the literal ``NA``.

    MerchantID|CustomerID|NA|TxnAmount|NA|NA|NA|CurrencyType|NA|R|SecurityID|
    NA|NA|F|AdditionalInfo1..6|RU

With checksums enabled, the upper-case HMAC-SHA256 of that string is appended
as a 22nd field.
"""
import logging
from decimal import Decimal
from typing import Dict, List, Optional

from app.core.amounts import format_amount
from app.core.exceptions import GatewayConfigurationError, MessageFormatError
from app.core.security import generate_checksum, verify_checksum

logger = logging.getLogger(__name__)

PLACEHOLDER = "NA"
SEPARATOR = "|"
TYPE_FIELD_1 = "R"  # retail
TYPE_FIELD_2 = "F"  # general
REQUEST_FIELD_COUNT = 21

AUTH_STATUS_SUCCESS = "0300"
AUTH_STATUS_FAILURE = "0399"
AUTH_STATUS_PENDING = "0002"

RESPONSE_FIELDS = (
    "MerchantID",
    "CustomerID",
    "TxnReferenceNo",
    "BankReferenceNo",
    "TxnAmount",
    "BankID",
    "BankMerchantID",
    "TxnType",
    "CurrencyName",
    "ItemCode",
    "SecurityType",
    "SecurityID",
    "SecurityPassword",
    "TxnDate",
    "AuthStatus",
    "SettlementType",
    "AdditionalInfo1",
    "AdditionalInfo2",
    "AdditionalInfo3",
    "AdditionalInfo4",
    "AdditionalInfo5",
    "AdditionalInfo6",
    "AdditionalInfo7",
    "ErrorStatus",
    "ErrorDescription",
)


def build_payment_message(
    merchant_id: str,
    security_id: str,
    customer_reference: str,
    amount: Decimal,
    return_url: str,
    currency: str = "INR",
) -> str:
    if not merchant_id or not security_id:
        raise GatewayConfigurationError("BillDesk merchant id and security id must be configured")
    if not return_url:
        raise GatewayConfigurationError("BillDesk return URL must be configured")

    fields: List[str] = [
        merchant_id,
        customer_reference,
        PLACEHOLDER,
        format_amount(amount),
        PLACEHOLDER,
        PLACEHOLDER,
        PLACEHOLDER,
        currency,
        PLACEHOLDER,
        TYPE_FIELD_1,
        security_id,
        PLACEHOLDER,
        PLACEHOLDER,
        TYPE_FIELD_2,
        PLACEHOLDER,  # AdditionalInfo1
        PLACEHOLDER,  # AdditionalInfo2
        PLACEHOLDER,  # AdditionalInfo3
        PLACEHOLDER,  # AdditionalInfo4
        PLACEHOLDER,  # AdditionalInfo5
        PLACEHOLDER,  # AdditionalInfo6
        return_url,
    ]
    return SEPARATOR.join(fields)


def append_checksum(message: str, checksum_key: str) -> str:
    return f"{message}{SEPARATOR}{generate_checksum(message, checksum_key)}"


def parse_response_message(message: str) -> Dict[str, str]:
    """
    Splits a BillDesk response into named fields plus ``CheckSum``.

    Raises MessageFormatError when the field count does not match.
    """
    if not message:
        raise MessageFormatError("BillDesk response message is empty")
    parts = message.strip().split(SEPARATOR)
    if len(parts) != len(RESPONSE_FIELDS) + 1:
        raise MessageFormatError(
            f"BillDesk response must have {len(RESPONSE_FIELDS) + 1} fields, got {len(parts)}"
        )
    fields = dict(zip(RESPONSE_FIELDS, parts))
    fields["CheckSum"] = parts[-1]
    return fields


def verify_response_message(message: str, checksum_key: str) -> Optional[Dict[str, str]]:
    """
    Returns the parsed fields when the trailing checksum matches, otherwise None.
    """
    fields = parse_response_message(message)
    signed_part = message.strip().rsplit(SEPARATOR, 1)[0]
    if not verify_checksum(signed_part, fields["CheckSum"], checksum_key):
        logger.warning(f"BillDesk checksum mismatch for customer {fields['CustomerID']}")
        return None
    return fields
