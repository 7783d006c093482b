# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List
from decimal import Decimal
from datetime import datetime
from enum import Enum

from storefront.domain.status import OrderStatus


# =====================================================
# CATALOG
# =====================================================
class MenuItem(BaseModel):
    """Menu item, read-only copy from the catalog."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    price: Decimal = Field(..., ge=0)
    image: str = ""
    category: str = ""
    popular: bool = False


class Restaurant(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    image: str = ""
    cuisine: str = ""
    rating: float = 0.0
    review_count: int = 0
    delivery_time: str = ""
    delivery_fee: Decimal = Decimal("0.00")
    min_order: Decimal = Decimal("0.00")
    featured: bool = False
    menu: List[MenuItem] = []


# =====================================================
# CART
# =====================================================
class CartLine(BaseModel):
    """One menu item in the cart. Replaced, never mutated in place."""

    model_config = ConfigDict(frozen=True)

    menu_item: MenuItem
    quantity: int = Field(..., ge=1)
    restaurant_id: str
    restaurant_name: str

    @property
    def line_total(self) -> Decimal:
        return self.menu_item.price * self.quantity


class CartEvent(BaseModel):
    """Emitted to cart observers after an item was added."""

    kind: str = "item_added"
    item_id: str
    item_name: str
    quantity: int
    message: str
    lines: List[CartLine]


class ItemIn(BaseModel):
    """Schema for adding a menu item to the cart."""

    restaurant_id: str = Field(..., min_length=1, description="Catalog restaurant id")
    item_id: str = Field(..., min_length=1, description="Menu item id")


class QuantityIn(BaseModel):
    quantity: int = Field(..., description="New quantity; 0 or less removes the line")


class CartLineOut(BaseModel):
    item_id: str
    name: str
    price: Decimal
    quantity: int
    image: str = ""


class CartOut(BaseModel):
    """Schema for the cart (response)."""

    session_id: str
    restaurant_id: str | None = None
    restaurant_name: str | None = None
    items: List[CartLineOut]
    item_count: int
    subtotal: Decimal


# =====================================================
# PROMO
# =====================================================
class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class PromoCode(BaseModel):
    """Promo code snapshot, immutable once fetched."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    code: str
    discount_type: DiscountType
    discount_value: Decimal
    min_order_amount: Decimal | None = None
    expires_at: datetime | None = None
    max_uses: int | None = None
    current_uses: int = 0
    is_active: bool = True


class AppliedPromo(BaseModel):
    model_config = ConfigDict(frozen=True)

    promo: PromoCode
    discount_amount: Decimal


class PromoIn(BaseModel):
    code: str = Field(..., description="Promo code, case-insensitive")


# =====================================================
# ADDRESS
# =====================================================
class AddressIn(BaseModel):
    """New address. Required-field presence is checked by the address book, not here."""

    label: str = "Home"
    street_address: str = ""
    apartment: str | None = None
    city: str = ""
    state: str = ""
    zip_code: str = ""
    is_default: bool | None = None


class Address(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    user_id: int
    label: str
    street_address: str
    apartment: str | None = None
    city: str
    state: str
    zip_code: str
    is_default: bool = False


class DeliveryAddress(BaseModel):
    """Address as captured on the order."""

    model_config = ConfigDict(frozen=True)

    label: str
    street_address: str
    apartment: str | None = None
    city: str
    state: str
    zip_code: str


# =====================================================
# ORDER
# =====================================================
class PaymentMethod(str, Enum):
    CARD = "card"
    CASH = "cash"


class OrderLineSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    price: Decimal
    quantity: int
    image: str = ""


class OrderDraft(BaseModel):
    """Order before it is stored: everything except id and timestamps."""

    model_config = ConfigDict(frozen=True)

    user_id: int
    restaurant_id: str
    restaurant_name: str
    items: List[OrderLineSnapshot]
    subtotal: Decimal
    delivery_fee: Decimal
    discount: Decimal | None = None
    promo_code: str | None = None
    total: Decimal
    delivery_address: DeliveryAddress
    payment_method: PaymentMethod
    status: OrderStatus = OrderStatus.CONFIRMED
    driver_name: str | None = None
    estimated_delivery: datetime | None = None


class Order(OrderDraft):
    """Schema for an order (persisted snapshot)."""

    id: int
    created_at: datetime
    updated_at: datetime


class CheckoutIn(BaseModel):
    """Schema for placing an order from the session cart."""

    session_id: str = Field(..., min_length=1)
    user_id: int = Field(..., gt=0, description="User id (must be > 0)")
    payment_method: PaymentMethod = PaymentMethod.CARD
    address_id: int | None = None
    address: AddressIn | None = None
    promo_code: str | None = None


class Eta(BaseModel):
    status: OrderStatus
    arrived: bool
    minutes_remaining: int | None = None
    label: str


# =====================================================
# REVIEW
# =====================================================
class ReviewIn(BaseModel):
    user_id: int = Field(..., gt=0)
    rating: int
    comment: str | None = None


class Review(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_id: int
    user_id: int
    restaurant_id: str
    rating: int
    comment: str | None = None
    created_at: datetime
