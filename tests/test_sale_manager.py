"""Tests for the sale commit sequence."""

import asyncio
from decimal import Decimal

import pytest

from conftest import stock_of

from pharmacy_pos.core.identity import StaticIdentityProvider
from pharmacy_pos.errors import (
    CartLocked,
    CatalogUnavailable,
    CommitAlreadyInProgress,
    EmptyCart,
    InsufficientStock,
    InvalidPaymentMethod,
    NotAuthenticated,
    PartialCommit,
    SaleWriteFailed,
    StockChanged,
    StockCheckFailed,
)
from pharmacy_pos.models.sale import PaymentMethod
from pharmacy_pos.services.sale_manager import CartState, SaleTransactionManager


def _build_cart(manager):
    """A x2 at 10.00 and B x1 at 5.00."""
    async def build():
        await manager.add_product("A")
        await manager.add_product("A")
        await manager.add_product("B")
    asyncio.run(build())


def test_successful_commit_end_to_end(store, manager):
    _build_cart(manager)
    assert manager.total() == Decimal("25")

    result = asyncio.run(manager.commit("cash", "user-1"))

    assert result.success is True
    sale = result.sale
    assert sale.total_amount == Decimal("25")
    assert sale.user_id == "user-1"
    assert sale.payment_method == "cash"
    assert sorted(line.subtotal for line in sale.lines) == [Decimal("5"), Decimal("20")]
    assert all(line.sale_id == sale.id for line in sale.lines)

    assert stock_of(store, "A") == 3
    assert stock_of(store, "B") == 2

    sales = store.collections["sales"]
    assert list(sales) == [sale.id]
    assert Decimal(sales[sale.id]["total_amount"]) == Decimal("25")
    line_rows = list(store.collections["sale_items"].values())
    assert {(r["drug_id"], r["quantity"]) for r in line_rows} == {("A", 2), ("B", 1)}

    assert manager.state == CartState.COMMITTED
    assert manager.cart.is_empty
    assert result.user_message == "Sale completed successfully"


def test_commit_uses_identity_provider_when_no_user_given(manager):
    _build_cart(manager)

    result = asyncio.run(manager.commit(PaymentMethod.MOBILE))

    assert result.success is True
    assert result.sale.user_id == "user-1"
    assert result.sale.payment_method == "mobile"


def test_commit_without_user_is_rejected(store, catalog):
    manager = SaleTransactionManager(catalog, store, StaticIdentityProvider(None))
    _build_cart(manager)

    result = asyncio.run(manager.commit("cash"))

    assert isinstance(result.error, NotAuthenticated)
    assert store.writes == []
    assert manager.state == CartState.BUILDING


def test_empty_cart_commit_writes_nothing(store, manager):
    result = asyncio.run(manager.commit("cash", "user-1"))

    assert result.success is False
    assert isinstance(result.error, EmptyCart)
    assert store.writes == []
    assert manager.state == CartState.EMPTY


def test_stock_changed_aborts_before_any_write(store, manager):
    _build_cart(manager)
    # Another till sold four units of A meanwhile
    store.collections["drugs"]["A"]["quantity"] = 1

    result = asyncio.run(manager.commit("cash", "user-1"))

    assert isinstance(result.error, StockChanged)
    assert result.error.product_id == "A"
    assert result.error.available == 1
    assert store.writes == []
    assert "sales" not in store.collections
    assert stock_of(store, "B") == 3
    assert manager.state == CartState.BUILDING
    assert manager.cart.get_line("A").quantity == 2


def test_failed_stock_read_aborts_before_any_write(store, manager):
    _build_cart(manager)
    store.fail_selects.add("drugs")

    result = asyncio.run(manager.commit("cash", "user-1"))

    assert isinstance(result.error, StockCheckFailed)
    assert store.writes == []
    assert manager.state == CartState.BUILDING


def test_header_write_failure_is_retryable(store, manager):
    _build_cart(manager)
    store.fail_inserts.add("sales")

    result = asyncio.run(manager.commit("cash", "user-1"))

    assert isinstance(result.error, SaleWriteFailed)
    assert result.error.recoverable is True
    assert manager.state == CartState.BUILDING
    assert len(manager.cart) == 2
    assert stock_of(store, "A") == 5

    store.fail_inserts.clear()
    retry = asyncio.run(manager.commit("cash", "user-1"))
    assert retry.success is True
    assert stock_of(store, "A") == 3


def test_line_batch_failure_leaves_orphaned_header(store, manager):
    _build_cart(manager)
    store.fail_inserts.add("sale_items")

    result = asyncio.run(manager.commit("card", "user-1"))

    error = result.error
    assert isinstance(error, PartialCommit)
    assert error.stage == "lines"
    assert error.applied_product_ids == ()
    assert error.recoverable is False
    assert error.sale_id in store.collections["sales"]
    assert stock_of(store, "A") == 5
    assert stock_of(store, "B") == 3
    assert manager.state == CartState.FAILED
    assert "contact support" in result.user_message
    assert result.user_message != SaleWriteFailed.user_message


def test_stock_failure_lists_applied_products(store, manager):
    _build_cart(manager)
    store.fail_updates.add("B")

    result = asyncio.run(manager.commit("cash", "user-1"))

    error = result.error
    assert isinstance(error, PartialCommit)
    assert error.stage == "stock"
    assert error.applied_product_ids == ("A",)
    assert stock_of(store, "A") == 3
    assert stock_of(store, "B") == 3
    assert len(store.collections["sale_items"]) == 2


def test_conditional_decrement_detects_concurrent_sale(store, manager):
    _build_cart(manager)

    def concurrent_sale():
        store.collections["drugs"]["A"]["quantity"] = 4

    store.after_lines = concurrent_sale

    result = asyncio.run(manager.commit("cash", "user-1"))

    assert isinstance(result.error, PartialCommit)
    assert result.error.stage == "stock"
    assert result.error.applied_product_ids == ()
    # The other sale's decrement is not overwritten
    assert stock_of(store, "A") == 4


def test_failed_cart_is_locked_until_cleared(store, manager):
    _build_cart(manager)
    store.fail_inserts.add("sale_items")
    asyncio.run(manager.commit("cash", "user-1"))
    store.fail_inserts.clear()

    with pytest.raises(CartLocked):
        asyncio.run(manager.add_product("A"))
    again = asyncio.run(manager.commit("cash", "user-1"))
    assert isinstance(again.error, CartLocked)
    assert len(store.collections["sales"]) == 1

    manager.clear()
    assert manager.state == CartState.EMPTY
    asyncio.run(manager.add_product("B"))
    assert manager.state == CartState.BUILDING


def test_second_commit_while_in_flight_is_rejected(store, manager):
    _build_cart(manager)

    async def scenario():
        store.insert_gate = asyncio.Event()
        first = asyncio.create_task(manager.commit("cash", "user-1"))
        await asyncio.sleep(0)
        assert manager.state == CartState.COMMIT_IN_FLIGHT

        second = await manager.commit("cash", "user-1")
        with pytest.raises(CommitAlreadyInProgress):
            manager.add_item(manager.cart.lines[0].item)
        with pytest.raises(CommitAlreadyInProgress):
            manager.clear()

        store.insert_gate.set()
        return await first, second

    first, second = asyncio.run(scenario())

    assert first.success is True
    assert isinstance(second.error, CommitAlreadyInProgress)
    assert len(store.collections["sales"]) == 1
    assert stock_of(store, "A") == 3


def test_commit_refused_while_catalog_unavailable(store, manager):
    _build_cart(manager)
    store.fail_selects.add("drugs")
    with pytest.raises(CatalogUnavailable):
        asyncio.run(manager.load_catalog())

    result = asyncio.run(manager.commit("cash", "user-1"))

    assert isinstance(result.error, CatalogUnavailable)
    assert store.writes == []


def test_cart_reusable_after_commit(store, manager):
    _build_cart(manager)
    asyncio.run(manager.commit("cash", "user-1"))

    asyncio.run(manager.add_product("B"))
    result = asyncio.run(manager.commit("cash", "user-1"))

    assert result.success is True
    assert result.sale.total_amount == Decimal("5")
    assert stock_of(store, "B") == 1
    assert len(store.collections["sales"]) == 2


def test_unknown_payment_method_is_returned_as_error(store, manager):
    _build_cart(manager)

    result = asyncio.run(manager.commit("cheque", "user-1"))

    assert isinstance(result.error, InvalidPaymentMethod)
    assert result.error.payment_method == "cheque"
    assert manager.state == CartState.BUILDING
    assert store.writes == []


def test_next_sale_uses_stock_left_by_previous_commit(store, manager):
    _build_cart(manager)
    asyncio.run(manager.commit("cash", "user-1"))

    for _ in range(3):
        asyncio.run(manager.add_product("A"))
    with pytest.raises(InsufficientStock) as exc:
        asyncio.run(manager.add_product("A"))

    assert exc.value.available == 3
    assert manager.cart.get_line("A").quantity == 3
