"""Sales history and reports"""

import logging
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Optional

from ..database.record_store import Filter, RecordStore
from ..models.cart import to_money
from ..models.sale import DailySales, Sale, SaleLine, SalesSummary, UserSalesStats

logger = logging.getLogger(__name__)


def _day_start(day: date) -> str:
    return datetime.combine(day, time.min, tzinfo=timezone.utc).isoformat()


def _day_end(day: date) -> str:
    return datetime.combine(day, time.max, tzinfo=timezone.utc).isoformat()


class SalesReporter:
    """Aggregates persisted sales for the dashboard and reports pages"""

    def __init__(
        self,
        store: RecordStore,
        sales_collection: str = "sales",
        sale_lines_collection: str = "sale_items",
    ):
        self.store = store
        self.sales_collection = sales_collection
        self.sale_lines_collection = sale_lines_collection

    async def _sales(self, filters: list[Filter], limit: Optional[int] = None) -> list[Sale]:
        rows = await self.store.select(
            self.sales_collection, filters, order="created_at", descending=True, limit=limit
        )
        return [Sale.model_validate(row) for row in rows]

    async def _items_sold(self, sale_ids: list[str]) -> int:
        if not sale_ids:
            return 0
        rows = await self.store.select(self.sale_lines_collection, [Filter("sale_id", "in", sale_ids)])
        return sum(int(row["quantity"]) for row in rows)

    async def list_sales(self, limit: int = 50) -> list[Sale]:
        """Recent sales, newest first"""
        return await self._sales([], limit=limit)

    async def get_sale(self, sale_id: str) -> Optional[Sale]:
        """A sale with its lines"""
        sales = await self._sales([Filter("id", "eq", sale_id)])
        if not sales:
            return None
        sale = sales[0]
        rows = await self.store.select(self.sale_lines_collection, [Filter("sale_id", "eq", sale_id)])
        sale.lines = [SaleLine.model_validate(row) for row in rows]
        return sale

    async def summary(self, date_from: date, date_to: date) -> SalesSummary:
        """Totals and a per-day breakdown for sales in [date_from, date_to]"""
        sales = await self._sales([
            Filter("created_at", "gte", _day_start(date_from)),
            Filter("created_at", "lte", _day_end(date_to)),
        ])

        total_revenue = sum((s.total_amount for s in sales), Decimal("0.00"))
        total_items = await self._items_sold([s.id for s in sales])

        daily: dict[date, DailySales] = {}
        for sale in sales:
            day = sale.created_at.astimezone(timezone.utc).date()
            group = daily.setdefault(day, DailySales(date=day))
            group.sales += 1
            group.revenue += sale.total_amount

        avg = to_money(total_revenue / len(sales)) if sales else Decimal("0.00")
        logger.debug(f"Sales summary {date_from}..{date_to}: {len(sales)} sales, revenue={total_revenue}")

        return SalesSummary(
            date_from=date_from,
            date_to=date_to,
            total_sales=len(sales),
            total_revenue=total_revenue,
            total_items=total_items,
            avg_sale_value=avg,
            daily=sorted(daily.values(), key=lambda d: d.date, reverse=True),
        )

    async def user_stats(self, user_id: str, day: Optional[date] = None) -> UserSalesStats:
        """A user's sales count, amount and items since the start of ``day``"""
        day = day or datetime.now(timezone.utc).date()
        sales = await self._sales([
            Filter("user_id", "eq", user_id),
            Filter("created_at", "gte", _day_start(day)),
        ])
        return UserSalesStats(
            user_id=user_id,
            day=day,
            sales_count=len(sales),
            total_amount=sum((s.total_amount for s in sales), Decimal("0.00")),
            items_sold=await self._items_sold([s.id for s in sales]),
        )
