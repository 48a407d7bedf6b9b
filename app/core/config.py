import os
from typing import List, Union, Optional
from pydantic import AnyHttpUrl, BaseModel, validator
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()


class BillDeskConfig(BaseModel):
    merchant_id: str = ""
    security_id: str = ""
    checksum_key: str = ""
    use_checksum: bool = True
    base_url: str = ""
    return_url: str = ""
    currency: str = "INR"

    class Config:
        frozen = True


class RazorpayConfig(BaseModel):
    key_id: str = ""
    key_secret: str = ""
    webhook_secret: str = ""
    timeout: float = 10.0

    class Config:
        frozen = True


class Settings(BaseSettings):
    PROJECT_NAME: str = os.getenv("PROJECT_NAME", "Payment Gateway Bridge")
    API_PREFIX: str = os.getenv("API_PREFIX", "/api")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "production")

    BILLDESK_MERCHANT_ID: str = os.getenv("BILLDESK_MERCHANT_ID", "")
    BILLDESK_SECURITY_ID: str = os.getenv("BILLDESK_SECURITY_ID", "")
    BILLDESK_CHECKSUM_KEY: str = os.getenv("BILLDESK_CHECKSUM_KEY", "")
    BILLDESK_USE_CHECKSUM: bool = True
    BILLDESK_BASE_URL: str = os.getenv(
        "BILLDESK_BASE_URL", "https://pgi.billdesk.com/pgidsk/PGIMerchantPayment?msg="
    )
    BILLDESK_RETURN_URL: str = os.getenv("BILLDESK_RETURN_URL", "")
    BILLDESK_CURRENCY: str = os.getenv("BILLDESK_CURRENCY", "INR")

    RAZORPAY_KEY_ID: str = os.getenv("RAZORPAY_KEY_ID", "")
    RAZORPAY_KEY_SECRET: str = os.getenv("RAZORPAY_KEY_SECRET", "")
    RAZORPAY_WEBHOOK_SECRET: str = os.getenv("RAZORPAY_WEBHOOK_SECRET", "")
    RAZORPAY_TIMEOUT: float = 10.0

    # file | supabase | memory
    ORDER_STORE: str = os.getenv("ORDER_STORE", "file")
    ORDERS_FILE: str = os.getenv("ORDERS_FILE", "orders.json")
    ORDERS_TABLE: str = os.getenv("ORDERS_TABLE", "orders")

    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_KEY: str = os.getenv("SUPABASE_KEY", "")
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

    # CORS
    BACKEND_CORS_ORIGINS: List[Union[str, AnyHttpUrl]] = []

    @validator("BACKEND_CORS_ORIGINS", pre=True)
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    @validator("ORDER_STORE")
    def check_order_store(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("file", "supabase", "memory"):
            raise ValueError(f"Unsupported ORDER_STORE: {v}")
        return v

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    def billdesk_config(self) -> BillDeskConfig:
        return BillDeskConfig(
            merchant_id=self.BILLDESK_MERCHANT_ID,
            security_id=self.BILLDESK_SECURITY_ID,
            checksum_key=self.BILLDESK_CHECKSUM_KEY,
            use_checksum=self.BILLDESK_USE_CHECKSUM,
            base_url=self.BILLDESK_BASE_URL,
            return_url=self.BILLDESK_RETURN_URL,
            currency=self.BILLDESK_CURRENCY,
        )

    def razorpay_config(self) -> RazorpayConfig:
        return RazorpayConfig(
            key_id=self.RAZORPAY_KEY_ID,
            key_secret=self.RAZORPAY_KEY_SECRET,
            webhook_secret=self.RAZORPAY_WEBHOOK_SECRET,
            timeout=self.RAZORPAY_TIMEOUT,
        )

    class Config:
        case_sensitive = True


settings = Settings()
