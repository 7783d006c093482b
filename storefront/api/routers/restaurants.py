# storefront/api/routers/restaurants.py
from typing import List
from fastapi import APIRouter, Depends, HTTPException
from requests import RequestException

from storefront.api.container import Container
from storefront.api.deps import get_container
from storefront.domain.schemas import Restaurant

router = APIRouter(prefix="/restaurants", tags=["restaurants"])


@router.get("/", response_model=List[Restaurant])
def list_restaurants(
    cuisine: str | None = None,
    search: str | None = None,
    c: Container = Depends(get_container),
):
    try:
        return c.catalog.list_restaurants(cuisine=cuisine, search=search)
    except RequestException:
        raise HTTPException(status_code=503, detail="Catalog unavailable")


@router.get("/{restaurant_id}", response_model=Restaurant)
def get_restaurant(restaurant_id: str, c: Container = Depends(get_container)):
    try:
        restaurant = c.catalog.get_restaurant(restaurant_id)
    except RequestException:
        raise HTTPException(status_code=503, detail="Catalog unavailable")
    if not restaurant:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return restaurant
