from functools import lru_cache

from fastapi import Depends

from app.core.config import BillDeskConfig, RazorpayConfig, Settings, settings
from app.services.billdesk_service import BillDeskService
from app.services.order_repository import OrderRepository, build_order_repository
from app.services.razorpay_gateway import RazorpayGateway
from app.services.razorpay_service import RazorpayService

# Services are assembled per request from explicit config objects, so tests
# can swap any piece through app.dependency_overrides without touching the
# environment.


def get_settings() -> Settings:
    return settings


@lru_cache
def get_order_repository() -> OrderRepository:
    return build_order_repository(settings.ORDER_STORE, settings.ORDERS_FILE, settings.ORDERS_TABLE)


def get_billdesk_config(app_settings: Settings = Depends(get_settings)) -> BillDeskConfig:
    return app_settings.billdesk_config()


def get_razorpay_config(app_settings: Settings = Depends(get_settings)) -> RazorpayConfig:
    return app_settings.razorpay_config()


@lru_cache
def _razorpay_gateway(config: RazorpayConfig) -> RazorpayGateway:
    return RazorpayGateway(config)


def get_razorpay_gateway(config: RazorpayConfig = Depends(get_razorpay_config)) -> RazorpayGateway:
    return _razorpay_gateway(config)


def get_billdesk_service(
    config: BillDeskConfig = Depends(get_billdesk_config),
    repository: OrderRepository = Depends(get_order_repository),
) -> BillDeskService:
    return BillDeskService(config, repository)


def get_razorpay_service(
    config: RazorpayConfig = Depends(get_razorpay_config),
    gateway: RazorpayGateway = Depends(get_razorpay_gateway),
    repository: OrderRepository = Depends(get_order_repository),
) -> RazorpayService:
    return RazorpayService(config, gateway, repository)
