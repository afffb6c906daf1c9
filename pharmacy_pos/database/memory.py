"""In-memory record store for local development and tests"""

import copy
import logging
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from .record_store import (
    ConditionFailed,
    Filter,
    RecordNotFound,
    RecordStore,
)

logger = logging.getLogger(__name__)


def _demo_drugs() -> list[dict[str, Any]]:
    today = date.today()
    return [
        {
            "id": "drug-001",
            "name": "Paracetamol 500mg",
            "manufacturer": "GSK",
            "selling_price": "50.00",
            "purchase_price": "30.00",
            "quantity": 200,
            "low_stock_threshold": 20,
            "expiry_date": (today + timedelta(days=400)).isoformat(),
        },
        {
            "id": "drug-002",
            "name": "Amoxicillin 250mg",
            "manufacturer": "Cosmos",
            "selling_price": "120.00",
            "purchase_price": "80.00",
            "quantity": 8,
            "low_stock_threshold": 10,
            "expiry_date": (today + timedelta(days=20)).isoformat(),
        },
        {
            "id": "drug-003",
            "name": "Ibuprofen 400mg",
            "manufacturer": "Dawa",
            "selling_price": "75.50",
            "purchase_price": "45.00",
            "quantity": 60,
            "low_stock_threshold": 15,
            "expiry_date": (today + timedelta(days=200)).isoformat(),
        },
        {
            "id": "drug-004",
            "name": "Cetirizine 10mg",
            "manufacturer": "Beta Healthcare",
            "selling_price": "30.00",
            "purchase_price": "12.00",
            "quantity": 0,
            "low_stock_threshold": 10,
            "expiry_date": (today + timedelta(days=300)).isoformat(),
        },
        {
            "id": "drug-005",
            "name": "Oral Rehydration Salts",
            "manufacturer": "Universal",
            "selling_price": "25.00",
            "purchase_price": "10.00",
            "quantity": 40,
            "low_stock_threshold": 10,
            "expiry_date": (today - timedelta(days=5)).isoformat(),
        },
    ]


def _matches(row: dict[str, Any], f: Filter) -> bool:
    value = row.get(f.column)
    if f.op == "eq":
        return value == f.value
    if f.op == "neq":
        return value != f.value
    if f.op == "in":
        return value in f.value
    if value is None:
        return False
    if f.op == "gt":
        return value > f.value
    if f.op == "gte":
        return value >= f.value
    if f.op == "lt":
        return value < f.value
    return value <= f.value


class InMemoryRecordStore(RecordStore):
    """
    Dict-backed record store.

    Rows are stored as plain JSON-style dicts, the way the hosted backend
    returns them. Every read and write copies, so callers never share state
    with the store.
    """

    def __init__(self, collections: Optional[dict[str, list[dict[str, Any]]]] = None):
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        for name, rows in (collections or {}).items():
            for row in rows:
                self._put(name, dict(row))

    @classmethod
    def with_demo_data(cls, items_collection: str = "drugs") -> "InMemoryRecordStore":
        """Create a store seeded with a small drug catalog"""
        return cls({items_collection: _demo_drugs()})

    def _table(self, collection: str) -> dict[str, dict[str, Any]]:
        return self.collections.setdefault(collection, {})

    def _put(self, collection: str, record: dict[str, Any]) -> dict[str, Any]:
        record.setdefault("id", str(uuid.uuid4()))
        record.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        self._table(collection)[record["id"]] = record
        return copy.deepcopy(record)

    async def insert(self, collection: str, record: dict[str, Any]) -> dict[str, Any]:
        return self._put(collection, copy.deepcopy(record))

    async def insert_many(
        self, collection: str, records: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        return [self._put(collection, copy.deepcopy(r)) for r in records]

    async def update(
        self,
        collection: str,
        record_id: str,
        patch: dict[str, Any],
        match: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        row = self._table(collection).get(record_id)
        if match:
            if not row or any(row.get(k) != v for k, v in match.items()):
                raise ConditionFailed(f"{collection}/{record_id} did not match {match}")
        elif not row:
            raise RecordNotFound(f"{collection}/{record_id} not found")

        row.update(copy.deepcopy(patch))
        return copy.deepcopy(row)

    async def select(
        self,
        collection: str,
        filters: tuple[Filter, ...] | list[Filter] = (),
        order: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        rows = [
            r for r in self._table(collection).values()
            if all(_matches(r, f) for f in filters)
        ]
        if order:
            rows.sort(key=lambda r: (r.get(order) is None, r.get(order)), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return copy.deepcopy(rows)

    async def delete(self, collection: str, record_id: str) -> None:
        if self._table(collection).pop(record_id, None) is None:
            raise RecordNotFound(f"{collection}/{record_id} not found")
