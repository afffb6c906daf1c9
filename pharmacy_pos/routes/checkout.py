"""Checkout session API routes: cart operations and commit"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from ..core.config import Settings, get_settings
from ..core.session import CheckoutSession, CheckoutSessionManager
from ..dependencies import get_session_manager
from ..errors import SaleError
from ..models.cart import (
    AddToCartRequest,
    CartLineView,
    CartResponse,
    CartView,
    StockCheckResponse,
    UpdateCartLineRequest,
    ViolationView,
)
from ..models.sale import CommitRequest, CommitResponse
from ..security.auth import AuthenticatedUser, require_user
from ..services.sale_manager import CartState
from .errors import http_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/checkout", tags=["Checkout"])


def _get_session(
    session_id: str,
    user: AuthenticatedUser,
    sessions: CheckoutSessionManager,
) -> CheckoutSession:
    session = sessions.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Checkout session not found")
    if session.owner_id != user.user_id:
        raise HTTPException(status_code=403, detail="Checkout session belongs to another user")
    session.touch()
    return session


def _cart_view(session: CheckoutSession, currency: str) -> CartView:
    manager = session.manager
    return CartView(
        session_id=session.session_id,
        state=manager.state.value,
        lines=[
            CartLineView(
                product_id=line.product_id,
                name=line.item.name,
                manufacturer=line.item.manufacturer,
                unit_price=line.unit_price,
                quantity=line.quantity,
                available_quantity=line.item.available_quantity,
                subtotal=line.subtotal,
            )
            for line in manager.cart.lines
        ],
        total=manager.total(),
        currency=currency,
        created_at=session.created_at,
        updated_at=session.updated_at,
    )


@router.post("", response_model=CartResponse)
async def create_session(
    user: AuthenticatedUser = Depends(require_user),
    sessions: CheckoutSessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_settings),
):
    """Start a new checkout session with an empty cart"""
    removed = sessions.cleanup_old_sessions(settings.session_max_age_hours)
    if removed:
        logger.info(f"Removed {removed} idle checkout sessions")

    session = sessions.create_session(user.user_id)
    logger.info(f"Checkout session {session.session_id} opened by {user.user_id}")
    return CartResponse(cart=_cart_view(session, settings.currency), message="Checkout session created")


@router.get("/{session_id}", response_model=CartResponse)
async def get_cart(
    session_id: str,
    user: AuthenticatedUser = Depends(require_user),
    sessions: CheckoutSessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_settings),
):
    """Get the session's cart"""
    session = _get_session(session_id, user, sessions)
    return CartResponse(cart=_cart_view(session, settings.currency))


@router.post("/{session_id}/items", response_model=CartResponse)
async def add_to_cart(
    session_id: str,
    request: AddToCartRequest,
    user: AuthenticatedUser = Depends(require_user),
    sessions: CheckoutSessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_settings),
):
    """Add one unit of a product to the cart"""
    session = _get_session(session_id, user, sessions)
    try:
        await session.manager.add_product(request.product_id)
    except SaleError as e:
        raise http_error(e)

    line = session.manager.cart.get_line(request.product_id)
    return CartResponse(
        cart=_cart_view(session, settings.currency),
        message=f"{line.item.name} added to cart",
    )


@router.put("/{session_id}/items/{product_id}", response_model=CartResponse)
async def update_cart_line(
    session_id: str,
    product_id: str,
    request: UpdateCartLineRequest,
    user: AuthenticatedUser = Depends(require_user),
    sessions: CheckoutSessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_settings),
):
    """Set a line's quantity; 0 or less removes the line"""
    session = _get_session(session_id, user, sessions)
    if product_id not in session.manager.cart:
        raise HTTPException(status_code=404, detail="Item not in cart")

    try:
        session.manager.set_quantity(product_id, request.quantity)
    except SaleError as e:
        raise http_error(e)
    return CartResponse(cart=_cart_view(session, settings.currency), message="Cart updated")


@router.delete("/{session_id}/items/{product_id}", response_model=CartResponse)
async def remove_from_cart(
    session_id: str,
    product_id: str,
    user: AuthenticatedUser = Depends(require_user),
    sessions: CheckoutSessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_settings),
):
    """Remove a line from the cart"""
    session = _get_session(session_id, user, sessions)
    try:
        session.manager.remove_item(product_id)
    except SaleError as e:
        raise http_error(e)
    return CartResponse(cart=_cart_view(session, settings.currency), message="Item removed")


@router.delete("/{session_id}/items", response_model=CartResponse)
async def clear_cart(
    session_id: str,
    user: AuthenticatedUser = Depends(require_user),
    sessions: CheckoutSessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_settings),
):
    """Clear all items from the cart (also resets a failed cart)"""
    session = _get_session(session_id, user, sessions)
    try:
        session.manager.clear()
    except SaleError as e:
        raise http_error(e)
    return CartResponse(cart=_cart_view(session, settings.currency), message="Cart cleared")


@router.post("/{session_id}/catalog", response_model=CartResponse)
async def reload_catalog(
    session_id: str,
    user: AuthenticatedUser = Depends(require_user),
    sessions: CheckoutSessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_settings),
):
    """Refresh the session's catalog snapshot; unblocks the cart after an outage"""
    session = _get_session(session_id, user, sessions)
    try:
        items = await session.manager.load_catalog()
    except SaleError as e:
        raise http_error(e)
    return CartResponse(
        cart=_cart_view(session, settings.currency),
        message=f"Catalog reloaded ({len(items)} items)",
    )


@router.get("/{session_id}/stock-check", response_model=StockCheckResponse)
async def check_stock(
    session_id: str,
    user: AuthenticatedUser = Depends(require_user),
    sessions: CheckoutSessionManager = Depends(get_session_manager),
):
    """Compare the cart with current stock before checkout"""
    session = _get_session(session_id, user, sessions)
    try:
        violations = await session.manager.check_stock()
    except SaleError as e:
        raise http_error(e)

    return StockCheckResponse(
        ok=not violations,
        violations=[
            ViolationView(product_id=v.product_id, requested=v.requested, max_allowed=v.max_allowed)
            for v in violations
        ],
    )


@router.post("/{session_id}/commit", response_model=CommitResponse)
async def commit(
    session_id: str,
    request: CommitRequest,
    user: AuthenticatedUser = Depends(require_user),
    sessions: CheckoutSessionManager = Depends(get_session_manager),
):
    """
    Persist the cart as a sale.

    Only a fully committed sale is reported as success. A partial commit
    comes back as a 500 with the sale id so it can be reconciled.
    """
    session = _get_session(session_id, user, sessions)
    result = await session.manager.commit(request.payment_method, acting_user_id=user.user_id)

    if not result.success:
        raise http_error(result.error)

    logger.info(
        f"Sale {result.sale.id} committed: {result.sale.total_amount} "
        f"via {result.sale.payment_method} by {user.user_id}"
    )
    return CommitResponse(success=True, sale=result.sale, message=result.user_message)


@router.delete("/{session_id}")
async def abandon_session(
    session_id: str,
    user: AuthenticatedUser = Depends(require_user),
    sessions: CheckoutSessionManager = Depends(get_session_manager),
):
    """Abandon a checkout session; nothing is written"""
    session = _get_session(session_id, user, sessions)
    if session.manager.state == CartState.COMMIT_IN_FLIGHT:
        raise HTTPException(status_code=409, detail="A sale is being processed for this session")
    sessions.delete_session(session_id)
    return {"session_id": session_id, "deleted": True}
