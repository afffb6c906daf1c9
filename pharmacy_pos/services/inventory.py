"""Inventory alerts: low stock and expiry"""

from datetime import date
from typing import Optional

from ..database.catalog import CatalogReader
from ..models.catalog import CatalogItem


class InventoryMonitor:
    """Derives restocking and expiry alerts from the full catalog"""

    def __init__(self, catalog: CatalogReader):
        self.catalog = catalog

    async def low_stock(self, limit: Optional[int] = 5) -> list[CatalogItem]:
        """Items at or below their low-stock threshold, lowest quantity first"""
        items = [item for item in await self.catalog.list_all_items() if item.is_low_stock]
        items.sort(key=lambda item: item.available_quantity)
        return items[:limit] if limit is not None else items

    async def expired(self, today: Optional[date] = None) -> list[CatalogItem]:
        """Items whose expiry date has passed"""
        today = today or date.today()
        return [
            item for item in await self.catalog.list_all_items()
            if item.expiry_date and item.expiry_date < today
        ]

    async def near_expiry(self, today: Optional[date] = None, days: int = 30) -> list[CatalogItem]:
        """Items expiring within ``days`` days from today (inclusive)"""
        today = today or date.today()
        return [
            item for item in await self.catalog.list_all_items()
            if item.expiry_date and 0 <= (item.expiry_date - today).days <= days
        ]
