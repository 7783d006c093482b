# storefront/api/routers/orders.py
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query

from storefront.api.container import Container
from storefront.api.deps import get_container
from storefront.domain.errors import (
    AddressNotFound,
    AlreadyReviewed,
    CheckoutError,
    InvalidTransition,
    OrderNotFound,
    PersistFailed,
    PromoError,
    ReviewError,
)
from storefront.domain.schemas import CheckoutIn, Eta, Order, Review, ReviewIn
from storefront.services.order_service import cancel_order

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/", response_model=Order, status_code=201)
def create_order(payload: CheckoutIn, c: Container = Depends(get_container)):
    """
    Places an order from the session cart.
    The cart is cleared only when the order was stored.
    """
    cart = c.carts.get_cart(payload.session_id)
    try:
        address = payload.address
        if payload.address_id is not None:
            address = c.address_book.get_address(payload.user_id, payload.address_id)

        applied = None
        if payload.promo_code:
            applied = c.promos.evaluate(payload.promo_code, cart.total())

        return c.checkout.submit(
            cart,
            user_id=payload.user_id,
            address=address,
            payment_method=payload.payment_method,
            applied_promo=applied,
        )
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except AddressNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    except PersistFailed as e:
        raise HTTPException(status_code=503, detail=e.message)
    except (CheckoutError, PromoError) as e:
        raise HTTPException(status_code=400, detail=e.message)


@router.get("/", response_model=List[Order])
def list_orders(user_id: int = Query(...), c: Container = Depends(get_container)):
    return c.lifecycle.list_orders(user_id)


@router.get("/{order_id}", response_model=Order)
def get_order(order_id: int, user_id: int = Query(...), c: Container = Depends(get_container)):
    try:
        return c.lifecycle.get_order(order_id, user_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.get("/{order_id}/eta", response_model=Eta)
def get_eta(order_id: int, user_id: int = Query(...), c: Container = Depends(get_container)):
    try:
        order = c.lifecycle.get_order(order_id, user_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    return c.lifecycle.estimated_time(order)


@router.post("/{order_id}/track")
def track_order(order_id: int, user_id: int = Query(...), c: Container = Depends(get_container)):
    """
    Starts simulated progress of the order.
    Calling it again while a driver runs does nothing.
    """
    try:
        c.lifecycle.get_order(order_id, user_id)
        started = c.lifecycle.start_progression(order_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    return {"order_id": order_id, "started": started, "progressing": c.lifecycle.is_progressing(order_id)}


@router.post("/{order_id}/cancel", response_model=Order)
def cancel(order_id: int, c: Container = Depends(get_container)):
    """Administrative cancellation."""
    try:
        return cancel_order(c.order_store, order_id, notifier=c.notifier)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=e.message)


@router.post("/{order_id}/review", response_model=Review, status_code=201)
def review_order(order_id: int, payload: ReviewIn, c: Container = Depends(get_container)):
    try:
        return c.reviews.submit_review(order_id, payload.user_id, payload.rating, payload.comment)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    except AlreadyReviewed as e:
        raise HTTPException(status_code=409, detail=e.message)
    except ReviewError as e:
        raise HTTPException(status_code=400, detail=e.message)
