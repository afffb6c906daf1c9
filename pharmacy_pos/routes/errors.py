"""Mapping from sale errors to HTTP responses"""

from fastapi import HTTPException

from ..errors import SaleError

STATUS_CODES = {
    "empty_cart": 400,
    "invalid_payment_method": 400,
    "not_authenticated": 401,
    "product_not_found": 404,
    "insufficient_stock": 409,
    "stock_changed": 409,
    "commit_in_progress": 409,
    "cart_locked": 409,
    "partial_commit": 500,
    "sale_write_failed": 503,
    "catalog_unavailable": 503,
    "stock_check_failed": 503,
}


def http_error(error: SaleError) -> HTTPException:
    """Convert a sale error into an HTTPException carrying its details"""
    detail = error.to_dict()
    detail["user_message"] = error.user_message
    detail["recoverable"] = error.recoverable
    return HTTPException(status_code=STATUS_CODES.get(error.code, 400), detail=detail)


def store_unavailable() -> HTTPException:
    return HTTPException(
        status_code=503,
        detail={"code": "store_unavailable", "message": "The record store is unavailable"},
    )
