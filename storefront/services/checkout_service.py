# storefront/services/checkout_service.py
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.exc import SQLAlchemyError

from storefront.domain.errors import EmptyCart, IncompleteAddress
from storefront.domain.schemas import (
    Address,
    AddressIn,
    AppliedPromo,
    DeliveryAddress,
    Order,
    OrderDraft,
    OrderLineSnapshot,
    PaymentMethod,
)
from storefront.domain.status import OrderStatus
from storefront.services.address_service import validate_address
from storefront.services.cart_service import CartEngine
from storefront.services.promo_service import PromoEvaluator
from storefront.utils.clock import SystemClock
from storefront.utils.settings import DELIVERY_FEE, ETA_MINUTES
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")


def _money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class CheckoutAssembler:
    """
    Turns the session cart into a stored order.
    Separate from the cart engine: the cart only knows lines, checkout knows money,
    addresses and the persistence port.
    """

    def __init__(
        self,
        store,
        address_book=None,
        promo_store=None,
        notifier=None,
        clock=None,
        delivery_fee: Decimal = DELIVERY_FEE,
        eta_minutes: int = ETA_MINUTES,
    ):
        self.store = store
        self.address_book = address_book
        self.promo_store = promo_store
        self.notifier = notifier
        self.clock = clock or SystemClock()
        self.delivery_fee = _money(delivery_fee)
        self.eta_minutes = eta_minutes

    def submit(
        self,
        cart: CartEngine,
        user_id: int,
        address: Address | AddressIn | None,
        payment_method: PaymentMethod | str = PaymentMethod.CARD,
        applied_promo: AppliedPromo | None = None,
    ) -> Order:
        """
        Use Case: place the order.

        1. cart must not be empty (EmptyCart, store never touched)
        2. address: a stored one, or a complete new one (IncompleteAddress)
        3. snapshot lines and money, ETA = now + eta_minutes
        4. persist as confirmed (PersistFailed leaves the cart as it was)
        5. clear the cart, save a new address, redeem the promo, notify
        """
        lines = cart.lines
        if not lines:
            raise EmptyCart()

        delivery_address = self._resolve_address(address)
        payment_method = PaymentMethod(payment_method)

        items = [
            OrderLineSnapshot(
                id=line.menu_item.id,
                name=line.menu_item.name,
                price=line.menu_item.price,
                quantity=line.quantity,
                image=line.menu_item.image,
            )
            for line in lines
        ]
        subtotal = _money(sum((line.line_total for line in lines), Decimal("0.00")))

        discount = None
        promo_code = None
        if applied_promo is not None:
            # re-priced on the cart as it is now, the promo may have been applied to an older subtotal
            discount = PromoEvaluator.price(applied_promo.promo, subtotal)
            promo_code = applied_promo.promo.code

        total = max(subtotal - (discount or Decimal("0")) + self.delivery_fee, Decimal("0"))

        now = self.clock.now()
        draft = OrderDraft(
            user_id=user_id,
            restaurant_id=lines[0].restaurant_id,
            restaurant_name=lines[0].restaurant_name,
            items=items,
            subtotal=subtotal,
            delivery_fee=self.delivery_fee,
            discount=discount,
            promo_code=promo_code,
            total=_money(total),
            delivery_address=delivery_address,
            payment_method=payment_method,
            status=OrderStatus.CONFIRMED,
            estimated_delivery=now + timedelta(minutes=self.eta_minutes),
        )

        # PersistFailed propagates, cart untouched
        order = self.store.create_order(draft)

        cart.clear_cart()
        logger.info(
            f"Order {order.id} placed by user {user_id} at {order.restaurant_name}, "
            f"total {order.total} ({payment_method.value})"
        )

        if isinstance(address, AddressIn) and self.address_book is not None:
            try:
                self.address_book.create_address(user_id, address)
            except SQLAlchemyError as e:
                logger.warning(f"Could not save address of order {order.id} for user {user_id}: {e}")

        if applied_promo is not None and self.promo_store is not None:
            try:
                self.promo_store.increment_uses(applied_promo.promo.id)
            except Exception as e:
                logger.warning(f"Could not record use of promo {promo_code} for order {order.id}: {e}")

        if self.notifier:
            self.notifier.order_placed(order)
        return order

    def _resolve_address(self, address) -> DeliveryAddress:
        if address is None:
            raise IncompleteAddress("Please select a delivery address")

        if isinstance(address, AddressIn):
            # saved to the book only once the order is stored
            validate_address(address)

        return DeliveryAddress(
            label=address.label or "Home",
            street_address=address.street_address.strip(),
            apartment=(address.apartment or "").strip() or None,
            city=address.city.strip(),
            state=address.state.strip(),
            zip_code=address.zip_code.strip(),
        )
