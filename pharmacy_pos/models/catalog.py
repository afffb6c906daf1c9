"""Catalog models for the POS"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class CatalogItem(BaseModel):
    """
    Snapshot of a sellable drug.

    Field aliases follow the column names of the hosted ``drugs`` table.
    """
    id: str
    name: str
    manufacturer: Optional[str] = None
    unit_price: Decimal = Field(alias="selling_price", ge=0)
    available_quantity: int = Field(alias="quantity", ge=0)
    low_stock_threshold: int = Field(default=10, ge=0)
    expiry_date: Optional[date] = None

    class Config:
        frozen = True
        populate_by_name = True

    @property
    def is_low_stock(self) -> bool:
        return self.available_quantity <= self.low_stock_threshold

    def matches(self, query: str) -> bool:
        """Case-insensitive match on name or manufacturer"""
        query_lower = query.lower()
        return query_lower in self.name.lower() or query_lower in (self.manufacturer or "").lower()


class CatalogResponse(BaseModel):
    """Catalog listing API response"""
    items: list[CatalogItem]
    total: int


class ExpiryAlertResponse(BaseModel):
    """Expired and soon-to-expire items"""
    expired: list[CatalogItem]
    near_expiry: list[CatalogItem]
    days: int
