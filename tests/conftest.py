"""Pytest fixtures for the POS service."""

import asyncio
from decimal import Decimal
from typing import Callable, Optional

import pytest

from pharmacy_pos.core.identity import StaticIdentityProvider
from pharmacy_pos.database.catalog import CatalogReader
from pharmacy_pos.database.memory import InMemoryRecordStore
from pharmacy_pos.database.record_store import RecordStoreError
from pharmacy_pos.models.catalog import CatalogItem
from pharmacy_pos.services.sale_manager import SaleTransactionManager


class FaultyRecordStore(InMemoryRecordStore):
    """In-memory store that records writes and fails on demand."""

    def __init__(self, collections=None):
        super().__init__(collections)
        self.fail_inserts: set[str] = set()
        self.fail_updates: set[str] = set()
        self.fail_selects: set[str] = set()
        self.writes: list[tuple[str, str]] = []
        self.insert_gate: Optional[asyncio.Event] = None
        self.after_lines: Optional[Callable[[], None]] = None

    async def insert(self, collection, record):
        if self.insert_gate is not None:
            await self.insert_gate.wait()
        if collection in self.fail_inserts:
            raise RecordStoreError(f"simulated insert fault on {collection}")
        self.writes.append(("insert", collection))
        return await super().insert(collection, record)

    async def insert_many(self, collection, records):
        if collection in self.fail_inserts:
            raise RecordStoreError(f"simulated batch fault on {collection}")
        self.writes.append(("insert_many", collection))
        rows = await super().insert_many(collection, records)
        if self.after_lines:
            self.after_lines()
        return rows

    async def update(self, collection, record_id, patch, match=None):
        if record_id in self.fail_updates:
            raise RecordStoreError(f"simulated update fault on {collection}/{record_id}")
        self.writes.append(("update", f"{collection}/{record_id}"))
        return await super().update(collection, record_id, patch, match)

    async def select(self, collection, filters=(), order=None, descending=False, limit=None):
        if collection in self.fail_selects:
            raise RecordStoreError(f"simulated read fault on {collection}")
        return await super().select(collection, filters, order, descending, limit)


def drug_row(drug_id: str, name: str, price: str, quantity: int, **extra) -> dict:
    row = {
        "id": drug_id,
        "name": name,
        "manufacturer": "Acme Pharma",
        "selling_price": price,
        "quantity": quantity,
        "low_stock_threshold": 10,
    }
    row.update(extra)
    return row


def make_item(drug_id: str, price: str, quantity: int, name: Optional[str] = None) -> CatalogItem:
    return CatalogItem(
        id=drug_id,
        name=name or f"Drug {drug_id}",
        unit_price=Decimal(price),
        available_quantity=quantity,
    )


@pytest.fixture
def store() -> FaultyRecordStore:
    return FaultyRecordStore({
        "drugs": [
            drug_row("A", "Amoxicillin", "10.00", 5),
            drug_row("B", "Brufen", "5.00", 3),
            drug_row("C", "Cetirizine", "7.50", 0),
        ],
    })


@pytest.fixture
def catalog(store) -> CatalogReader:
    return CatalogReader(store, collection="drugs")


@pytest.fixture
def manager(store, catalog) -> SaleTransactionManager:
    return SaleTransactionManager(
        catalog=catalog,
        store=store,
        identity=StaticIdentityProvider("user-1"),
        session_id="test",
    )


def stock_of(store: InMemoryRecordStore, drug_id: str) -> int:
    return store.collections["drugs"][drug_id]["quantity"]
