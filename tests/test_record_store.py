"""Tests for the record store implementations."""

import asyncio
import json

import httpx
import pytest

from pharmacy_pos.database.memory import InMemoryRecordStore
from pharmacy_pos.database.record_store import (
    ConditionFailed,
    Filter,
    RecordNotFound,
    RecordStoreError,
)
from pharmacy_pos.database.supabase import SupabaseRecordStore, render_filter


# ==================== In-memory store ====================

def test_memory_insert_assigns_id_and_copies():
    store = InMemoryRecordStore()
    record = {"name": "x"}

    row = asyncio.run(store.insert("things", record))

    assert row["id"]
    assert row["created_at"]
    assert "id" not in record
    row["name"] = "changed"
    assert store.collections["things"][row["id"]]["name"] == "x"


def test_memory_select_filters_orders_and_limits():
    store = InMemoryRecordStore({
        "drugs": [
            {"id": "1", "name": "b", "quantity": 0},
            {"id": "2", "name": "a", "quantity": 4},
            {"id": "3", "name": "c", "quantity": 9},
            {"id": "4", "name": None, "quantity": 2},
        ]
    })

    rows = asyncio.run(store.select("drugs", [Filter("quantity", "gt", 0)], order="name"))
    assert [r["id"] for r in rows] == ["2", "3", "4"]

    rows = asyncio.run(store.select("drugs", [Filter("id", "in", ["1", "3"])], order="quantity", descending=True))
    assert [r["id"] for r in rows] == ["3", "1"]

    rows = asyncio.run(store.select("drugs", order="quantity", limit=2))
    assert [r["id"] for r in rows] == ["1", "4"]


def test_memory_conditional_update():
    store = InMemoryRecordStore({"drugs": [{"id": "A", "quantity": 5}]})

    asyncio.run(store.update("drugs", "A", {"quantity": 3}, match={"quantity": 5}))
    assert store.collections["drugs"]["A"]["quantity"] == 3

    with pytest.raises(ConditionFailed):
        asyncio.run(store.update("drugs", "A", {"quantity": 0}, match={"quantity": 5}))
    assert store.collections["drugs"]["A"]["quantity"] == 3

    with pytest.raises(RecordNotFound):
        asyncio.run(store.update("drugs", "missing", {"quantity": 1}))


def test_memory_delete():
    store = InMemoryRecordStore({"drugs": [{"id": "A"}]})
    asyncio.run(store.delete("drugs", "A"))
    with pytest.raises(RecordNotFound):
        asyncio.run(store.delete("drugs", "A"))


def test_demo_data_has_sold_out_and_expired_drugs():
    store = InMemoryRecordStore.with_demo_data()
    drugs = store.collections["drugs"]
    assert drugs["drug-004"]["quantity"] == 0
    assert len(drugs) == 5


def test_filter_rejects_unknown_op():
    with pytest.raises(ValueError):
        Filter("quantity", "like", "x")


# ==================== Supabase store ====================

def test_render_filter():
    assert render_filter(Filter("quantity", "gt", 0)) == ("quantity", "gt.0")
    assert render_filter(Filter("id", "in", ["a", "b c"])) == ("id", 'in.(a,"b c")')
    assert render_filter(Filter("expiry_date", "eq", None)) == ("expiry_date", "is.null")
    assert render_filter(Filter("active", "eq", True)) == ("active", "eq.true")


def _store(handler) -> SupabaseRecordStore:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SupabaseRecordStore("https://pos.example/rest/v1/", "anon-key", http_client=client)


def test_supabase_insert_sends_headers_and_returns_row():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["request"] = request
        body = json.loads(request.content)
        return httpx.Response(201, json=[{"id": "sale-1", **body}])

    row = asyncio.run(_store(handler).insert("sales", {"total_amount": "25.00"}))

    request = seen["request"]
    assert request.method == "POST"
    assert str(request.url) == "https://pos.example/rest/v1/sales"
    assert request.headers["apikey"] == "anon-key"
    assert request.headers["Authorization"] == "Bearer anon-key"
    assert request.headers["Prefer"] == "return=representation"
    assert row == {"id": "sale-1", "total_amount": "25.00"}


def test_supabase_select_builds_query():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = list(request.url.params.multi_items())
        return httpx.Response(200, json=[{"id": "A"}])

    rows = asyncio.run(_store(handler).select(
        "drugs",
        [Filter("quantity", "gt", 0)],
        order="name",
        descending=True,
        limit=10,
    ))

    assert rows == [{"id": "A"}]
    assert seen["params"] == [
        ("select", "*"),
        ("quantity", "gt.0"),
        ("order", "name.desc"),
        ("limit", "10"),
    ]


def test_supabase_conditional_update_miss_raises_condition_failed():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = list(request.url.params.multi_items())
        return httpx.Response(200, json=[])

    with pytest.raises(ConditionFailed):
        asyncio.run(_store(handler).update("drugs", "A", {"quantity": 3}, match={"quantity": 5}))

    assert seen["params"] == [("id", "eq.A"), ("quantity", "eq.5")]


def test_supabase_update_without_match_raises_not_found():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[])

    with pytest.raises(RecordNotFound):
        asyncio.run(_store(handler).update("drugs", "A", {"quantity": 3}))


def test_supabase_http_error_maps_to_record_store_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(409, json={"message": "duplicate key"})

    with pytest.raises(RecordStoreError) as exc:
        asyncio.run(_store(handler).insert("sales", {}))
    assert "409" in str(exc.value)


def test_supabase_transport_error_maps_to_record_store_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(RecordStoreError):
        asyncio.run(_store(handler).select("drugs"))


def test_supabase_batch_insert_checks_row_count():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(201, json=[{"id": "1"}])

    with pytest.raises(RecordStoreError):
        asyncio.run(_store(handler).insert_many("sale_items", [{"a": 1}, {"a": 2}]))
