"""Catalog API routes"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..core.config import Settings, get_settings
from ..database.catalog import CatalogReader
from ..dependencies import get_catalog_reader, get_inventory_monitor
from ..errors import CatalogUnavailable
from ..models.catalog import CatalogItem, CatalogResponse, ExpiryAlertResponse
from ..services.inventory import InventoryMonitor
from .errors import http_error

router = APIRouter(prefix="/api/catalog", tags=["Catalog"])


@router.get("", response_model=CatalogResponse)
async def list_catalog(
    query: Optional[str] = Query(None, description="Match on name or manufacturer"),
    catalog: CatalogReader = Depends(get_catalog_reader),
):
    """Sellable drugs (stock above zero), ordered by name"""
    try:
        items = await catalog.search(query)
    except CatalogUnavailable as e:
        raise http_error(e)
    return CatalogResponse(items=items, total=len(items))


@router.get("/alerts/low-stock", response_model=list[CatalogItem])
async def low_stock_alerts(
    limit: Optional[int] = Query(None, ge=1, le=100),
    monitor: InventoryMonitor = Depends(get_inventory_monitor),
    settings: Settings = Depends(get_settings),
):
    """Items at or below their low-stock threshold"""
    limit = settings.low_stock_alert_limit if limit is None else limit
    try:
        return await monitor.low_stock(limit=limit)
    except CatalogUnavailable as e:
        raise http_error(e)


@router.get("/alerts/expiry", response_model=ExpiryAlertResponse)
async def expiry_alerts(
    days: Optional[int] = Query(None, ge=0, le=365, description="Near-expiry window in days"),
    monitor: InventoryMonitor = Depends(get_inventory_monitor),
    settings: Settings = Depends(get_settings),
):
    """Expired items and items expiring within the window"""
    days = settings.near_expiry_days if days is None else days
    today = date.today()
    try:
        expired = await monitor.expired(today)
        near_expiry = await monitor.near_expiry(today, days=days)
    except CatalogUnavailable as e:
        raise http_error(e)
    return ExpiryAlertResponse(expired=expired, near_expiry=near_expiry, days=days)


@router.get("/{product_id}", response_model=CatalogItem)
async def get_catalog_item(
    product_id: str,
    catalog: CatalogReader = Depends(get_catalog_reader),
):
    """Get a drug by ID"""
    try:
        item = await catalog.get_item(product_id)
    except CatalogUnavailable as e:
        raise http_error(e)
    if not item:
        raise HTTPException(status_code=404, detail="Product not found")
    return item
