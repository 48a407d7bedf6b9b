import json
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.schemas.common import PersistenceStatus
from app.schemas.order import Gateway, OrderRecord, OrderStatus
from app.services.order_repository import (
    InMemoryOrderRepository,
    JsonFileOrderRepository,
    SupabaseOrderRepository,
    best_effort,
    build_order_repository,
)


def _record(order_id="order_1", **kwargs) -> OrderRecord:
    return OrderRecord(order_id=order_id, gateway=Gateway.RAZORPAY, amount=Decimal("100"), **kwargs)


@pytest.fixture
def file_repository(tmp_path) -> JsonFileOrderRepository:
    return JsonFileOrderRepository(str(tmp_path / "orders.json"))


def test_ensure_file_creates_empty_list(file_repository):
    file_repository.ensure_file()
    assert json.loads(file_repository.path.read_text()) == []


@pytest.mark.anyio
async def test_file_repository_appends_records(file_repository):
    await file_repository.create(_record("order_1"))
    await file_repository.create(_record("order_2", customer_reference="ABC12345"))

    rows = json.loads(file_repository.path.read_text())
    assert [row["order_id"] for row in rows] == ["order_1", "order_2"]
    assert rows[0]["status"] == "created"
    assert rows[0]["amount"] == "100"

    found = await file_repository.find_by_customer_reference("ABC12345")
    assert found.order_id == "order_2"
    assert await file_repository.find_by_id("order_3") is None


@pytest.mark.anyio
async def test_file_repository_lookup_is_exact(file_repository):
    await file_repository.create(_record("order_10"))
    assert await file_repository.find_by_id("order_1") is None
    assert (await file_repository.find_by_id("order_10")).order_id == "order_10"


@pytest.mark.anyio
async def test_file_repository_marks_paid_once(file_repository):
    await file_repository.create(_record("order_1"))

    paid = await file_repository.update_status("order_1", OrderStatus.PAID, "pay_1")
    assert paid.status == OrderStatus.PAID
    assert paid.payment_id == "pay_1"
    assert paid.paid_at is not None

    again = await file_repository.update_status("order_1", OrderStatus.PAID, "pay_2")
    assert again.payment_id == "pay_1"
    assert again.paid_at == paid.paid_at

    stored = await file_repository.find_by_id("order_1")
    assert stored.payment_id == "pay_1"


@pytest.mark.anyio
async def test_update_of_unknown_order_returns_none(file_repository):
    assert await file_repository.update_status("missing", OrderStatus.PAID, "pay_1") is None


@pytest.mark.anyio
async def test_file_repository_does_io_in_threadpool(file_repository):
    offloaded = AsyncMock(side_effect=lambda func, *args: func(*args))
    with patch("app.services.order_repository.run_in_threadpool", offloaded):
        await file_repository.create(_record())
        await file_repository.find_by_id("order_1")
        await file_repository.update_status("order_1", OrderStatus.PAID, "pay_1")

    called = [call.args[0] for call in offloaded.call_args_list]
    assert called == [
        file_repository._read,
        file_repository._write,
        file_repository._read,
        file_repository._read,
        file_repository._write,
    ]
    assert json.loads(file_repository.path.read_text())[0]["status"] == "paid"


@pytest.mark.anyio
async def test_in_memory_repository():
    repository = InMemoryOrderRepository()
    await repository.create(_record("order_1", status=OrderStatus.PENDING, customer_reference="XYZ00001"))

    updated = await repository.update_status("order_1", OrderStatus.FAILED)
    assert updated.status == OrderStatus.FAILED
    assert updated.paid_at is None
    assert (await repository.find_by_customer_reference("XYZ00001")).status == OrderStatus.FAILED


def _supabase_manager(rows):
    execute = AsyncMock(return_value=MagicMock(data=rows))
    query = MagicMock()
    query.insert.return_value = query
    query.select.return_value = query
    query.update.return_value = query
    query.eq.return_value = query
    query.limit.return_value = query
    query.execute = execute
    client = MagicMock()
    client.table.return_value = query
    manager = MagicMock()
    manager.get_client = AsyncMock(return_value=client)
    return manager, client, query


@pytest.mark.anyio
async def test_supabase_repository_inserts_json_row():
    record = _record("order_1")
    manager, client, query = _supabase_manager([record.model_dump(mode="json")])
    repository = SupabaseOrderRepository(table="orders", manager=manager)

    created = await repository.create(record)

    client.table.assert_called_with("orders")
    query.insert.assert_called_once_with(record.model_dump(mode="json"))
    assert created.order_id == "order_1"


@pytest.mark.anyio
async def test_supabase_repository_updates_status():
    manager, client, query = _supabase_manager([_record("order_1").model_dump(mode="json")])
    repository = SupabaseOrderRepository(manager=manager)

    updated = await repository.update_status("order_1", OrderStatus.PAID, "pay_1")

    assert updated.status == OrderStatus.PAID
    changes = query.update.call_args.args[0]
    assert changes["status"] == "paid"
    assert changes["payment_id"] == "pay_1"
    query.eq.assert_called_with("order_id", "order_1")


def test_build_order_repository(tmp_path):
    assert isinstance(build_order_repository("memory"), InMemoryOrderRepository)
    assert isinstance(build_order_repository("supabase"), SupabaseOrderRepository)
    repository = build_order_repository("file", str(tmp_path / "o.json"))
    assert isinstance(repository, JsonFileOrderRepository)


@pytest.mark.anyio
async def test_best_effort_reports_failure():
    async def boom():
        raise RuntimeError("connection refused")

    result, status, error = await best_effort(boom(), "Saving order")
    assert result is None
    assert status == PersistenceStatus.FAILED
    assert error == "connection refused"
