# storefront/api/routers/addresses.py
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query

from storefront.api.container import Container
from storefront.api.deps import get_container
from storefront.domain.errors import AddressNotFound, IncompleteAddress
from storefront.domain.schemas import Address, AddressIn

router = APIRouter(prefix="/addresses", tags=["addresses"])


@router.get("/", response_model=List[Address])
def list_addresses(user_id: int = Query(...), c: Container = Depends(get_container)):
    return c.address_book.list_addresses(user_id)


@router.post("/", response_model=Address, status_code=201)
def create_address(payload: AddressIn, user_id: int = Query(...), c: Container = Depends(get_container)):
    try:
        return c.address_book.create_address(user_id, payload)
    except IncompleteAddress as e:
        raise HTTPException(status_code=400, detail=e.message)


@router.post("/{address_id}/default", response_model=Address)
def set_default(address_id: int, user_id: int = Query(...), c: Container = Depends(get_container)):
    try:
        return c.address_book.set_default(user_id, address_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except AddressNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
