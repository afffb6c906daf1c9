"""Cart models for the POS"""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from pydantic import BaseModel, Field

from .catalog import CatalogItem

CENTS = Decimal("0.01")


def to_money(amount: Decimal) -> Decimal:
    """Quantize an amount to cents"""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


class CartLine(BaseModel):
    """One product's presence in the in-progress sale"""
    item: CatalogItem
    quantity: int = Field(gt=0)

    @property
    def product_id(self) -> str:
        return self.item.id

    @property
    def unit_price(self) -> Decimal:
        return self.item.unit_price

    @property
    def subtotal(self) -> Decimal:
        return to_money(self.item.unit_price * self.quantity)


class CartLineView(BaseModel):
    """Cart line as returned by the API"""
    product_id: str
    name: str
    manufacturer: Optional[str] = None
    unit_price: Decimal
    quantity: int
    available_quantity: int
    subtotal: Decimal


class CartView(BaseModel):
    """Checkout session cart as returned by the API"""
    session_id: str
    state: str
    lines: list[CartLineView] = []
    total: Decimal = Decimal("0.00")
    currency: str = "KSH"
    created_at: datetime
    updated_at: datetime


class AddToCartRequest(BaseModel):
    """Request to add one unit of a product to the cart"""
    product_id: str


class UpdateCartLineRequest(BaseModel):
    """Request to set a cart line quantity (0 or less removes the line)"""
    quantity: int


class CartResponse(BaseModel):
    """Cart API response"""
    cart: CartView
    message: Optional[str] = None


class ViolationView(BaseModel):
    """A cart line that now exceeds current stock"""
    product_id: str
    requested: int
    max_allowed: int


class StockCheckResponse(BaseModel):
    """Result of checking a cart against current stock"""
    ok: bool
    violations: list[ViolationView] = []
