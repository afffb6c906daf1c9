"""
Sale Transaction Manager

Owns one checkout cart and turns it into a persisted sale. The record store
has no multi-row transactions, so the commit runs as an ordered pipeline
(header, lines, stock) where each step fails in its own distinguishable
way and nothing is ever retried automatically.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from ..core.identity import IdentityProvider
from ..database.catalog import CatalogReader
from ..database.record_store import RecordStore, RecordStoreError
from ..errors import (
    CartLocked,
    CatalogUnavailable,
    CommitAlreadyInProgress,
    EmptyCart,
    InsufficientStock,
    InvalidPaymentMethod,
    NotAuthenticated,
    PartialCommit,
    ProductNotFound,
    SaleError,
    SaleWriteFailed,
    StockChanged,
    StockCheckFailed,
)
from ..models.catalog import CatalogItem
from ..models.sale import PaymentMethod, Sale, SaleLine
from .cart import Cart
from .stock import Violation, revalidate

logger = logging.getLogger(__name__)


class CartState(str, Enum):
    """Lifecycle of a checkout cart"""
    EMPTY = "empty"
    BUILDING = "building"
    COMMIT_IN_FLIGHT = "commit_in_flight"
    COMMITTED = "committed"
    FAILED = "failed"


@dataclass
class CommitResult:
    """Outcome of a commit: the persisted sale, or the error that stopped it"""
    sale: Optional[Sale] = None
    error: Optional[SaleError] = None

    @property
    def success(self) -> bool:
        return self.sale is not None and self.error is None

    @property
    def is_partial(self) -> bool:
        return isinstance(self.error, PartialCommit)

    @property
    def user_message(self) -> str:
        if self.success:
            return "Sale completed successfully"
        return self.error.user_message


class SaleTransactionManager:
    """
    Cart state machine plus the commit sequence for one checkout session.

    Usage:
        manager = SaleTransactionManager(catalog, store, identity)
        await manager.load_catalog()
        await manager.add_product("drug-001")
        result = await manager.commit(PaymentMethod.CASH)
    """

    def __init__(
        self,
        catalog: CatalogReader,
        store: RecordStore,
        identity: IdentityProvider,
        sales_collection: str = "sales",
        sale_lines_collection: str = "sale_items",
        session_id: Optional[str] = None,
    ):
        self.catalog = catalog
        self.store = store
        self.identity = identity
        self.sales_collection = sales_collection
        self.sale_lines_collection = sale_lines_collection
        self.session_id = session_id or "-"

        self.cart = Cart()
        self.state = CartState.EMPTY
        self.catalog_available = True
        self.last_error: Optional[SaleError] = None
        self._catalog: dict[str, CatalogItem] = {}

    def _log(self, message: str, level: int = logging.INFO) -> None:
        logger.log(level, f"[session={self.session_id}] {message}")

    # ==================== Cart operations ====================

    def _ensure_not_busy(self) -> None:
        if self.state == CartState.COMMIT_IN_FLIGHT:
            raise CommitAlreadyInProgress()
        if self.state == CartState.FAILED:
            raise CartLocked(self.state.value)

    def _ensure_mutable(self) -> None:
        self._ensure_not_busy()
        if not self.catalog_available:
            raise CatalogUnavailable()

    def _sync_state(self) -> None:
        self.state = CartState.EMPTY if self.cart.is_empty else CartState.BUILDING

    def add_item(self, item: CatalogItem) -> None:
        """Add one unit of ``item``; raises InsufficientStock past its stock"""
        self._ensure_mutable()
        line = self.cart.add(item)
        self.state = CartState.BUILDING
        self._log(f"added {item.id} (qty={line.quantity})", logging.DEBUG)

    def set_quantity(self, product_id: str, quantity: int) -> None:
        """Set a line's quantity; 0 or less removes it, above stock raises"""
        self._ensure_mutable()
        self.cart.set_quantity(product_id, quantity)
        self._sync_state()

    def remove_item(self, product_id: str) -> None:
        self._ensure_mutable()
        self.cart.remove(product_id)
        self._sync_state()

    def total(self) -> Decimal:
        return self.cart.total()

    def clear(self) -> None:
        """Empty the cart; also the way out of a failed commit"""
        if self.state == CartState.COMMIT_IN_FLIGHT:
            raise CommitAlreadyInProgress()
        self.cart.clear()
        self.state = CartState.EMPTY
        self.last_error = None

    # ==================== Catalog glue ====================

    async def load_catalog(self) -> list[CatalogItem]:
        """
        Load the sellable catalog snapshot.

        A failed load blocks all cart changes until a later load succeeds,
        so a stale cart is never silently edited.
        """
        try:
            items = await self.catalog.list_sellable_items()
        except CatalogUnavailable:
            self.catalog_available = False
            self._log("catalog unavailable, cart changes blocked", logging.WARNING)
            raise

        self._catalog = {item.id: item for item in items}
        self.catalog_available = True
        return items

    async def add_product(self, product_id: str) -> None:
        """
        Add a product by id.

        The catalog is reloaded when it is unavailable, when the product is
        not in the snapshot, or when the snapshot's stock rejects the add.
        A reload happens at most once per call.
        """
        self._ensure_not_busy()
        reloaded = False
        if not self.catalog_available or product_id not in self._catalog:
            await self.load_catalog()
            reloaded = True

        item = self._catalog.get(product_id)
        if item is None:
            raise ProductNotFound(product_id)
        try:
            self.add_item(item)
            return
        except InsufficientStock:
            if reloaded:
                raise

        # The snapshot may predate a restock
        await self.load_catalog()
        fresh = self._catalog.get(product_id)
        if fresh is None:
            line = self.cart.get_line(product_id)
            raise InsufficientStock(product_id, (line.quantity if line else 0) + 1, 0)
        self.add_item(fresh)

    async def _fresh_stock(self) -> dict[str, int]:
        try:
            return await self.catalog.get_stock_levels([line.product_id for line in self.cart.lines])
        except RecordStoreError as e:
            self._log(f"stock read failed: {e}", logging.ERROR)
            raise StockCheckFailed() from e

    async def check_stock(self) -> list[Violation]:
        """Compare the cart with current stock without writing anything"""
        return revalidate(self.cart, await self._fresh_stock())

    # ==================== Commit sequence ====================

    async def commit(
        self,
        payment_method: Union[PaymentMethod, str],
        acting_user_id: Optional[str] = None,
    ) -> CommitResult:
        """
        Persist the cart as a sale.

        Never raises for business conditions; the returned CommitResult
        carries either the sale or the error.
        """
        # Guards run before the first await so a concurrent call sees the state
        if self.state == CartState.COMMIT_IN_FLIGHT:
            self._log("commit rejected: already in flight", logging.WARNING)
            return CommitResult(error=CommitAlreadyInProgress())
        if self.state == CartState.FAILED:
            return CommitResult(error=CartLocked(self.state.value))
        if not self.catalog_available:
            return CommitResult(error=CatalogUnavailable())
        if self.cart.is_empty:
            return CommitResult(error=EmptyCart())

        try:
            method = PaymentMethod(payment_method).value
        except ValueError:
            return CommitResult(error=InvalidPaymentMethod(str(payment_method)))
        self.state = CartState.COMMIT_IN_FLIGHT
        self._log(f"COMMIT START lines={len(self.cart)} total={self.total()} payment={method}")

        try:
            result = await self._run_commit(method, acting_user_id)
        except Exception:
            self.state = CartState.FAILED
            self._log("COMMIT CRASHED", logging.ERROR)
            raise

        if result.success:
            self.state = CartState.COMMITTED
            self.cart.clear()
            self.last_error = None
            # Stock levels changed; the next add reloads the catalog
            self._catalog = {}
            self._log(f"COMMIT OK sale={result.sale.id}")
        else:
            self.last_error = result.error
            self.state = CartState.FAILED if result.is_partial else CartState.BUILDING
            self._log(f"COMMIT FAILED: {result.error}", logging.ERROR if result.is_partial else logging.WARNING)
        return result

    async def _run_commit(self, method: str, acting_user_id: Optional[str]) -> CommitResult:
        user_id = acting_user_id or await self.identity.current_user_id()
        if not user_id:
            return CommitResult(error=NotAuthenticated())

        # 1. Re-validate stock; nothing is written on a violation
        try:
            fresh = await self._fresh_stock()
        except StockCheckFailed as e:
            return CommitResult(error=e)
        violations = revalidate(self.cart, fresh)
        if violations:
            return CommitResult(error=StockChanged(violations))

        # 2. Sale header
        total = self.total()
        now = datetime.now(timezone.utc)
        try:
            row = await self.store.insert(
                self.sales_collection,
                {
                    "user_id": user_id,
                    "payment_method": method,
                    "total_amount": str(total),
                    "created_at": now.isoformat(),
                },
            )
            sale_id = str(row["id"])
        except (RecordStoreError, KeyError) as e:
            self._log(f"sale header write failed: {e!r}", logging.ERROR)
            return CommitResult(error=SaleWriteFailed())

        sale = Sale(
            id=sale_id,
            created_at=row.get("created_at") or now,
            user_id=user_id,
            payment_method=method,
            total_amount=total,
        )
        self._log(f"sale header written: sale={sale_id}")

        # 3. Line batch; a failure leaves a header without lines
        lines = [
            SaleLine(
                sale_id=sale_id,
                product_id=line.product_id,
                quantity=line.quantity,
                unit_price=line.unit_price,
                subtotal=line.subtotal,
            )
            for line in self.cart.lines
        ]
        try:
            rows = await self.store.insert_many(
                self.sale_lines_collection,
                [line.model_dump(by_alias=True, mode="json", exclude_none=True) for line in lines],
            )
        except RecordStoreError as e:
            self._log(f"sale lines write failed: {e}", logging.ERROR)
            return CommitResult(error=PartialCommit(sale_id, "lines"))

        sale.lines = [line.model_copy(update={"id": r.get("id")}) for line, r in zip(lines, rows)]
        self._log(f"sale lines written: sale={sale_id} count={len(lines)}")

        # 4. Stock decrements, each conditional on the level read in step 1
        applied: list[str] = []
        for line in self.cart.lines:
            current = fresh[line.product_id]
            try:
                await self.store.update(
                    self.catalog.collection,
                    line.product_id,
                    {"quantity": current - line.quantity},
                    match={"quantity": current},
                )
            except RecordStoreError as e:
                self._log(f"stock decrement failed for {line.product_id}: {e}", logging.ERROR)
                return CommitResult(error=PartialCommit(sale_id, "stock", tuple(applied)))
            applied.append(line.product_id)
            self._log(f"stock decremented: {line.product_id} {current} -> {current - line.quantity}", logging.DEBUG)

        return CommitResult(sale=sale)
