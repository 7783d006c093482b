# storefront/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException
from requests import RequestException

from storefront.api.container import Container
from storefront.api.deps import get_container
from storefront.domain.errors import DifferentRestaurantError, PromoError
from storefront.domain.schemas import AppliedPromo, CartOut, ItemIn, PromoIn, QuantityIn

router = APIRouter(prefix="/carts", tags=["carts"])


def _cart_out(session_id: str, c: Container) -> dict:
    return {"session_id": session_id, **c.carts.get_cart(session_id).snapshot()}


@router.get("/{session_id}", response_model=CartOut)
def get_cart(session_id: str, c: Container = Depends(get_container)):
    return _cart_out(session_id, c)


@router.post("/{session_id}/items", response_model=CartOut)
def add_item(session_id: str, payload: ItemIn, c: Container = Depends(get_container)):
    # price and name come from the catalog, never from the client
    try:
        restaurant = c.catalog.get_restaurant(payload.restaurant_id)
    except RequestException:
        raise HTTPException(status_code=503, detail="Catalog unavailable")
    if not restaurant:
        raise HTTPException(status_code=404, detail="Restaurant not found")

    item = c.catalog.find_menu_item(restaurant, payload.item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Menu item not found")

    try:
        c.carts.get_cart(session_id).add_item(item, restaurant.id, restaurant.name)
    except DifferentRestaurantError as e:
        raise HTTPException(status_code=409, detail=e.message)
    return _cart_out(session_id, c)


@router.patch("/{session_id}/items/{item_id}", response_model=CartOut)
def update_quantity(session_id: str, item_id: str, payload: QuantityIn, c: Container = Depends(get_container)):
    c.carts.get_cart(session_id).update_quantity(item_id, payload.quantity)
    return _cart_out(session_id, c)


@router.delete("/{session_id}/items/{item_id}", response_model=CartOut)
def remove_item(session_id: str, item_id: str, c: Container = Depends(get_container)):
    c.carts.get_cart(session_id).remove_item(item_id)
    return _cart_out(session_id, c)


@router.delete("/{session_id}", response_model=CartOut)
def clear_cart(session_id: str, c: Container = Depends(get_container)):
    c.carts.get_cart(session_id).clear_cart()
    return _cart_out(session_id, c)


@router.post("/{session_id}/promo", response_model=AppliedPromo)
def preview_promo(session_id: str, payload: PromoIn, c: Container = Depends(get_container)):
    cart = c.carts.get_cart(session_id)
    try:
        return c.promos.evaluate(payload.code, cart.total())
    except PromoError as e:
        raise HTTPException(status_code=400, detail=e.message)
