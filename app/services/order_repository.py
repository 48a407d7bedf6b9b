import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Awaitable, Dict, List, Optional, Tuple

from fastapi.concurrency import run_in_threadpool

from app.core.supabase import SupabaseManager
from app.schemas.common import PersistenceStatus
from app.schemas.order import OrderRecord, OrderStatus, utcnow

logger = logging.getLogger(__name__)


class OrderRepository(ABC):
    """Append-only store of order records, looked up by exact order id."""

    @abstractmethod
    async def create(self, record: OrderRecord) -> OrderRecord:
        ...

    @abstractmethod
    async def find_by_id(self, order_id: str) -> Optional[OrderRecord]:
        ...

    @abstractmethod
    async def find_by_customer_reference(self, reference: str) -> Optional[OrderRecord]:
        ...

    @abstractmethod
    async def update_status(
        self, order_id: str, status: OrderStatus, payment_id: Optional[str] = None
    ) -> Optional[OrderRecord]:
        """Returns the updated record, or None when no record has that id."""


def apply_status(record: OrderRecord, status: OrderStatus, payment_id: Optional[str]) -> OrderRecord:
    # a paid order is final
    if record.status == OrderStatus.PAID:
        return record
    now = utcnow()
    changes: Dict[str, Any] = {"status": status, "updated_at": now}
    if payment_id:
        changes["payment_id"] = payment_id
    if status == OrderStatus.PAID:
        changes["paid_at"] = now
    return record.model_copy(update=changes)


class InMemoryOrderRepository(OrderRepository):
    def __init__(self):
        self.records: List[OrderRecord] = []

    async def create(self, record: OrderRecord) -> OrderRecord:
        self.records.append(record)
        return record

    async def find_by_id(self, order_id: str) -> Optional[OrderRecord]:
        return next((r for r in self.records if r.order_id == order_id), None)

    async def find_by_customer_reference(self, reference: str) -> Optional[OrderRecord]:
        return next((r for r in self.records if r.customer_reference == reference), None)

    async def update_status(
        self, order_id: str, status: OrderStatus, payment_id: Optional[str] = None
    ) -> Optional[OrderRecord]:
        for index, record in enumerate(self.records):
            if record.order_id == order_id:
                self.records[index] = apply_status(record, status, payment_id)
                return self.records[index]
        return None


class JsonFileOrderRepository(OrderRepository):
    """
    Orders kept as a JSON array in a single file.

    Every operation reads the whole file and writes it back, off the event
    loop.
    """

    def __init__(self, path: str):
        self.path = Path(path)

    def ensure_file(self):
        if not self.path.exists():
            logger.info(f"{self.path} not found, creating new file...")
            self._write([])

    def _read(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            logger.warning(f"{self.path} not found, returning empty list")
            return []
        with open(self.path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _write(self, rows: List[Dict[str, Any]]):
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(rows, f, indent=2)

    async def create(self, record: OrderRecord) -> OrderRecord:
        rows = await run_in_threadpool(self._read)
        rows.append(record.model_dump(mode="json"))
        await run_in_threadpool(self._write, rows)
        logger.info(f"Order {record.order_id} saved to {self.path}")
        return record

    async def find_by_id(self, order_id: str) -> Optional[OrderRecord]:
        for row in await run_in_threadpool(self._read):
            if row.get("order_id") == order_id:
                return OrderRecord.model_validate(row)
        return None

    async def find_by_customer_reference(self, reference: str) -> Optional[OrderRecord]:
        for row in await run_in_threadpool(self._read):
            if row.get("customer_reference") == reference:
                return OrderRecord.model_validate(row)
        return None

    async def update_status(
        self, order_id: str, status: OrderStatus, payment_id: Optional[str] = None
    ) -> Optional[OrderRecord]:
        rows = await run_in_threadpool(self._read)
        for index, row in enumerate(rows):
            if row.get("order_id") == order_id:
                updated = apply_status(OrderRecord.model_validate(row), status, payment_id)
                rows[index] = updated.model_dump(mode="json")
                await run_in_threadpool(self._write, rows)
                logger.info(f"Order {order_id} updated in {self.path}: status={updated.status.value}")
                return updated
        return None


class SupabaseOrderRepository(OrderRepository):
    def __init__(self, table: str = "orders", manager=SupabaseManager):
        self.table = table
        self.manager = manager

    async def create(self, record: OrderRecord) -> OrderRecord:
        client = await self.manager.get_client()
        result = await client.table(self.table).insert(record.model_dump(mode="json")).execute()
        if result.data:
            return OrderRecord.model_validate(result.data[0])
        return record

    async def _find_one(self, column: str, value: str) -> Optional[OrderRecord]:
        client = await self.manager.get_client()
        result = await client.table(self.table).select("*").eq(column, value).limit(1).execute()
        if result.data:
            return OrderRecord.model_validate(result.data[0])
        return None

    async def find_by_id(self, order_id: str) -> Optional[OrderRecord]:
        return await self._find_one("order_id", order_id)

    async def find_by_customer_reference(self, reference: str) -> Optional[OrderRecord]:
        return await self._find_one("customer_reference", reference)

    async def update_status(
        self, order_id: str, status: OrderStatus, payment_id: Optional[str] = None
    ) -> Optional[OrderRecord]:
        record = await self.find_by_id(order_id)
        if record is None:
            return None
        updated = apply_status(record, status, payment_id)
        if updated is record:
            return record

        changes = updated.model_dump(mode="json", include={"status", "payment_id", "updated_at", "paid_at"})
        client = await self.manager.get_client()
        await client.table(self.table).update(changes).eq("order_id", order_id).execute()
        return updated


def build_order_repository(store: str, orders_file: str = "orders.json", table: str = "orders") -> OrderRepository:
    if store == "supabase":
        return SupabaseOrderRepository(table=table)
    if store == "memory":
        return InMemoryOrderRepository()
    return JsonFileOrderRepository(orders_file)


async def best_effort(
    operation: Awaitable[Any], description: str
) -> Tuple[Optional[Any], PersistenceStatus, Optional[str]]:
    """
    Awaits a repository call, logging instead of raising when it fails.

    Order creation and verification must answer the client even when the
    store is unavailable.
    """
    try:
        result = await operation
    except Exception as e:
        logger.warning(f"{description} failed: {e}")
        return None, PersistenceStatus.FAILED, str(e)
    return result, PersistenceStatus.OK, None
