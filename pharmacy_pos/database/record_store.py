"""
Record store contract.

Generic create/read/update/delete over named collections. The hosted
backend offers no multi-row transactions to the client, so every call here
is its own unit of work.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

FILTER_OPS = ("eq", "neq", "gt", "gte", "lt", "lte", "in")


class RecordStoreError(Exception):
    """Base exception for record store errors"""
    pass


class RecordNotFound(RecordStoreError):
    """No record with the given id"""
    pass


class ConditionFailed(RecordStoreError):
    """A conditional update matched no row"""
    pass


@dataclass(frozen=True)
class Filter:
    """Column filter, e.g. ``Filter("quantity", "gt", 0)``"""
    column: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in FILTER_OPS:
            raise ValueError(f"Unsupported filter op: {self.op}")


class RecordStore(ABC):
    """Async record store over named collections"""

    @abstractmethod
    async def insert(self, collection: str, record: dict[str, Any]) -> dict[str, Any]:
        """Insert one record and return it with its generated id"""

    @abstractmethod
    async def insert_many(
        self, collection: str, records: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        """Insert a batch of records in a single call"""

    @abstractmethod
    async def update(
        self,
        collection: str,
        record_id: str,
        patch: dict[str, Any],
        match: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """
        Patch one record.

        Args:
            collection: Collection name
            record_id: Record to update
            patch: Columns to set
            match: Extra column values the record must currently hold for
                the update to apply

        Raises:
            RecordNotFound: no record with ``record_id`` (and no ``match``)
            ConditionFailed: ``match`` was given and no row satisfied it
        """

    @abstractmethod
    async def select(
        self,
        collection: str,
        filters: tuple[Filter, ...] | list[Filter] = (),
        order: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        """Read rows matching all filters"""

    @abstractmethod
    async def delete(self, collection: str, record_id: str) -> None:
        """Delete one record"""

    async def close(self) -> None:
        """Release any held resources"""
