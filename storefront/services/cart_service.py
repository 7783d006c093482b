# storefront/services/cart_service.py
import threading
import time
from decimal import Decimal
from typing import Any, Callable, Dict, List, Tuple

from storefront.domain.errors import DifferentRestaurantError
from storefront.domain.schemas import CartEvent, CartLine, MenuItem
from storefront.utils.settings import CART_TTL_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

CartObserver = Callable[[CartEvent], None]


class CartEngine:
    """
    Draft order of one session.

    commands (add, update, remove, clear) modify the lines
    queries (lines, subtotal, item_count) only read, totals are never cached

    Invariant: the cart is empty or every line has the same restaurant_id.
    Every command is read-modify-write under the cart's lock: read the current
    lines, compute the next tuple, replace.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._lines: Tuple[CartLine, ...] = ()
        self._observers: List[CartObserver] = []

    # =====================================================
    # QUERY
    # =====================================================
    @property
    def lines(self) -> Tuple[CartLine, ...]:
        return self._lines

    @property
    def restaurant_id(self) -> str | None:
        lines = self._lines
        return lines[0].restaurant_id if lines else None

    @property
    def restaurant_name(self) -> str | None:
        lines = self._lines
        return lines[0].restaurant_name if lines else None

    def is_empty(self) -> bool:
        return not self._lines

    def total(self) -> Decimal:
        """Subtotal of the cart (before discount and delivery fee)."""
        return sum((line.line_total for line in self._lines), Decimal("0.00"))

    @property
    def subtotal(self) -> Decimal:
        return self.total()

    def item_count(self) -> int:
        # quantities, not lines
        return sum(line.quantity for line in self._lines)

    def snapshot(self) -> Dict[str, Any]:
        lines = self._lines
        return {
            "restaurant_id": lines[0].restaurant_id if lines else None,
            "restaurant_name": lines[0].restaurant_name if lines else None,
            "items": [
                {
                    "item_id": line.menu_item.id,
                    "name": line.menu_item.name,
                    "price": line.menu_item.price,
                    "quantity": line.quantity,
                    "image": line.menu_item.image,
                }
                for line in lines
            ],
            "item_count": sum(line.quantity for line in lines),
            "subtotal": sum((line.line_total for line in lines), Decimal("0.00")),
        }

    # =====================================================
    # COMMANDS
    # =====================================================
    def add_item(self, item: MenuItem, restaurant_id: str, restaurant_name: str) -> CartLine:
        """
        Add one unit of item.
        Raises DifferentRestaurantError (cart unchanged) if the cart belongs to another restaurant.
        """
        with self._lock:
            lines = self._lines
            if lines and lines[0].restaurant_id != restaurant_id:
                logger.info(
                    f"Rejected {item.id} from restaurant {restaurant_id}, "
                    f"cart belongs to {lines[0].restaurant_id}"
                )
                raise DifferentRestaurantError(lines[0].restaurant_id, restaurant_id)

            existing = next((line for line in lines if line.menu_item.id == item.id), None)
            if existing:
                added = existing.model_copy(update={"quantity": existing.quantity + 1})
                self._lines = tuple(added if line is existing else line for line in lines)
                message = f"Added another {item.name}"
            else:
                added = CartLine(
                    menu_item=item,
                    quantity=1,
                    restaurant_id=restaurant_id,
                    restaurant_name=restaurant_name,
                )
                self._lines = lines + (added,)
                message = f"{item.name} added to cart"

            event = CartEvent(
                item_id=item.id,
                item_name=item.name,
                quantity=added.quantity,
                message=message,
                lines=list(self._lines),
            )
            observers = list(self._observers)

        logger.info(message)
        for observer in observers:
            try:
                observer(event)
            except Exception as e:
                logger.error(f"Cart observer failed: {e}")
        return added

    def update_quantity(self, item_id: str, quantity: int):
        """Set the quantity exactly; 0 or less removes the line. Unknown ids are ignored."""
        if quantity <= 0:
            self.remove_item(item_id)
            return
        with self._lock:
            self._lines = tuple(
                line.model_copy(update={"quantity": quantity}) if line.menu_item.id == item_id else line
                for line in self._lines
            )

    def remove_item(self, item_id: str):
        with self._lock:
            self._lines = tuple(line for line in self._lines if line.menu_item.id != item_id)

    def clear_cart(self):
        with self._lock:
            self._lines = ()

    # =====================================================
    # OBSERVERS
    # =====================================================
    def subscribe(self, observer: CartObserver) -> Callable[[], None]:
        with self._lock:
            self._observers.append(observer)

        def unsubscribe():
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return unsubscribe


class CartRegistry:
    """
    One CartEngine per session id.
    Carts untouched for ttl seconds are dropped on the next access.
    """

    def __init__(self, ttl: int = CART_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self._lock = threading.Lock()
        self._carts: Dict[str, Tuple[CartEngine, float]] = {}

    def get_cart(self, session_id: str) -> CartEngine:
        now = self.clock()
        with self._lock:
            self._expire(now)
            entry = self._carts.get(session_id)
            cart = entry[0] if entry else CartEngine()
            if not entry:
                logger.info(f"Created cart for session {session_id}")
            self._carts[session_id] = (cart, now)
            return cart

    def __len__(self):
        with self._lock:
            return len(self._carts)

    def _expire(self, now: float):
        expired = [sid for sid, (_, seen) in self._carts.items() if now - seen > self.ttl]
        for sid in expired:
            del self._carts[sid]
        if expired:
            logger.info(f"Expired {len(expired)} idle carts")
