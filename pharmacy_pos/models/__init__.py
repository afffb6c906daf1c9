# POS Models

from .catalog import CatalogItem, CatalogResponse, ExpiryAlertResponse
from .cart import (
    CartLine,
    CartLineView,
    CartView,
    AddToCartRequest,
    UpdateCartLineRequest,
    CartResponse,
    StockCheckResponse,
    ViolationView,
)
from .sale import (
    PaymentMethod,
    Sale,
    SaleLine,
    CommitRequest,
    CommitResponse,
    DailySales,
    SalesSummary,
    UserSalesStats,
)

__all__ = [
    "CatalogItem",
    "CatalogResponse",
    "ExpiryAlertResponse",
    "CartLine",
    "CartLineView",
    "CartView",
    "AddToCartRequest",
    "UpdateCartLineRequest",
    "CartResponse",
    "StockCheckResponse",
    "ViolationView",
    "PaymentMethod",
    "Sale",
    "SaleLine",
    "CommitRequest",
    "CommitResponse",
    "DailySales",
    "SalesSummary",
    "UserSalesStats",
]
