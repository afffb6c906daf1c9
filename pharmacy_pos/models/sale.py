"""Sale models for the POS"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    MOBILE = "mobile"


class SaleLine(BaseModel):
    """Persisted line of a sale (``sale_items`` row)"""
    id: Optional[str] = None
    sale_id: str
    product_id: str = Field(alias="drug_id")
    quantity: int = Field(gt=0)
    # Captured at sale time so later price changes do not rewrite history
    unit_price: Decimal = Field(ge=0)
    subtotal: Decimal = Field(ge=0)

    class Config:
        populate_by_name = True


class Sale(BaseModel):
    """Persisted sale header (``sales`` row)"""
    id: str
    created_at: datetime
    user_id: str
    payment_method: Optional[str] = None
    total_amount: Decimal = Field(ge=0)
    lines: list[SaleLine] = []


class CommitRequest(BaseModel):
    """Request to commit a checkout session"""
    payment_method: PaymentMethod = PaymentMethod.CASH


class CommitResponse(BaseModel):
    """Response from a successful commit"""
    success: bool
    sale: Optional[Sale] = None
    message: Optional[str] = None


class DailySales(BaseModel):
    date: date
    sales: int = 0
    revenue: Decimal = Decimal("0.00")


class SalesSummary(BaseModel):
    """Sales report for a date range"""
    date_from: date
    date_to: date
    total_sales: int
    total_revenue: Decimal
    total_items: int
    avg_sale_value: Decimal
    daily: list[DailySales] = []


class UserSalesStats(BaseModel):
    """A user's sales for one day"""
    user_id: str
    day: date
    sales_count: int
    total_amount: Decimal
    items_sold: int
