"""Catalog reader over the drugs collection"""

import logging
from typing import Optional

from pydantic import ValidationError

from ..errors import CatalogUnavailable
from ..models.catalog import CatalogItem
from .record_store import Filter, RecordStore, RecordStoreError

logger = logging.getLogger(__name__)


class CatalogReader:
    """Reads sellable items and current stock from the record store"""

    def __init__(self, store: RecordStore, collection: str = "drugs"):
        self.store = store
        self.collection = collection

    async def _select_items(self, filters: list[Filter], order: Optional[str] = "name") -> list[CatalogItem]:
        try:
            rows = await self.store.select(self.collection, filters, order=order)
            return [CatalogItem.model_validate(row) for row in rows]
        except (RecordStoreError, ValidationError) as e:
            logger.error(f"Catalog read failed: {e}")
            raise CatalogUnavailable() from e

    async def list_sellable_items(self) -> list[CatalogItem]:
        """Items with stock on hand, ordered by name"""
        return await self._select_items([Filter("quantity", "gt", 0)])

    async def list_all_items(self) -> list[CatalogItem]:
        """Every item, including out-of-stock ones"""
        return await self._select_items([])

    async def search(self, query: Optional[str] = None) -> list[CatalogItem]:
        """Sellable items whose name or manufacturer contains ``query``"""
        items = await self.list_sellable_items()
        if not query:
            return items
        return [item for item in items if item.matches(query)]

    async def get_item(self, product_id: str) -> Optional[CatalogItem]:
        """Get one item by id, regardless of stock"""
        items = await self._select_items([Filter("id", "eq", product_id)], order=None)
        return items[0] if items else None

    async def get_stock_levels(self, product_ids: list[str]) -> dict[str, int]:
        """
        Read current stock for the given products.

        Products missing from the store map to 0. Raises RecordStoreError
        on failure so the commit sequence can tell a failed read apart from
        an unavailable catalog.
        """
        if not product_ids:
            return {}
        rows = await self.store.select(self.collection, [Filter("id", "in", list(product_ids))])
        levels = {pid: 0 for pid in product_ids}
        for row in rows:
            levels[row["id"]] = int(row["quantity"])
        return levels
