import secrets
import string
import time

ORDER_ID_PREFIX = "ORD"
ORDER_ID_MIN_LENGTH = 5
ORDER_ID_MAX_LENGTH = 30
ORDER_ID_SUFFIX_LENGTH = 8

CUSTOMER_ID_MIN_LENGTH = 8

_BASE36 = string.digits + string.ascii_lowercase


def _unix_millis() -> int:
    return int(time.time() * 1000)


def generate_order_id(prefix: str = ORDER_ID_PREFIX) -> str:
    """
    Merchant transaction id of the form PREFIX_<unixMillis>_<base36(8)>.

    Truncated to 30 characters, the longest id the gateways accept.
    """
    suffix = "".join(secrets.choice(_BASE36) for _ in range(ORDER_ID_SUFFIX_LENGTH))
    order_id = f"{prefix}_{_unix_millis()}_{suffix}"
    return order_id[:ORDER_ID_MAX_LENGTH]


def generate_customer_id(min_length: int = CUSTOMER_ID_MIN_LENGTH) -> str:
    """
    Customer reference number: 3 uppercase letters followed by 5 digits, e.g. ARP10234.

    Padded with timestamp digits (then random digits) when min_length asks for more.
    """
    letters = "".join(secrets.choice(string.ascii_uppercase) for _ in range(3))
    digits = "".join(secrets.choice(string.digits) for _ in range(5))
    customer_id = letters + digits

    missing = min_length - len(customer_id)
    if missing > 0:
        timestamp = str(_unix_millis())
        padding = timestamp[-missing:]
        padding += "".join(secrets.choice(string.digits) for _ in range(missing - len(padding)))
        customer_id += padding
    return customer_id
