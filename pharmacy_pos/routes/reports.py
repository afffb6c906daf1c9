"""Sales history and report routes"""

from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..database.record_store import RecordStoreError
from ..dependencies import get_sales_reporter
from ..models.sale import Sale, SalesSummary, UserSalesStats
from ..security.auth import AuthenticatedUser, require_manager, require_user
from ..services.reporting import SalesReporter
from .errors import store_unavailable

router = APIRouter(prefix="/api", tags=["Reports"])


@router.get("/reports/sales", response_model=SalesSummary)
async def sales_report(
    date_from: Optional[date] = Query(None, description="First day (defaults to 30 days ago)"),
    date_to: Optional[date] = Query(None, description="Last day, inclusive (defaults to today)"),
    user: AuthenticatedUser = Depends(require_manager),
    reporter: SalesReporter = Depends(get_sales_reporter),
):
    """Revenue, sale count, items sold and a daily breakdown"""
    date_to = date_to or date.today()
    date_from = date_from or date_to - timedelta(days=30)
    if date_from > date_to:
        raise HTTPException(status_code=400, detail="date_from must not be after date_to")

    try:
        return await reporter.summary(date_from, date_to)
    except RecordStoreError:
        raise store_unavailable()


@router.get("/reports/me", response_model=UserSalesStats)
async def my_stats(
    user: AuthenticatedUser = Depends(require_user),
    reporter: SalesReporter = Depends(get_sales_reporter),
):
    """Today's sales for the calling user"""
    try:
        return await reporter.user_stats(user.user_id)
    except RecordStoreError:
        raise store_unavailable()


@router.get("/sales", response_model=list[Sale])
async def list_sales(
    limit: int = Query(50, ge=1, le=500),
    user: AuthenticatedUser = Depends(require_manager),
    reporter: SalesReporter = Depends(get_sales_reporter),
):
    """Recent sales, newest first"""
    try:
        return await reporter.list_sales(limit=limit)
    except RecordStoreError:
        raise store_unavailable()


@router.get("/sales/{sale_id}", response_model=Sale)
async def get_sale(
    sale_id: str,
    user: AuthenticatedUser = Depends(require_manager),
    reporter: SalesReporter = Depends(get_sales_reporter),
):
    """A sale with its line items"""
    try:
        sale = await reporter.get_sale(sale_id)
    except RecordStoreError:
        raise store_unavailable()
    if not sale:
        raise HTTPException(status_code=404, detail="Sale not found")
    return sale
