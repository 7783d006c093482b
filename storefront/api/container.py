# storefront/api/container.py
from storefront.services.address_service import AddressBook
from storefront.services.cart_service import CartRegistry
from storefront.services.catalog_client import CatalogClient
from storefront.services.checkout_service import CheckoutAssembler
from storefront.services.notification_service import NotificationService
from storefront.services.order_hub import OrderChangeHub
from storefront.services.order_service import OrderLifecycleEngine
from storefront.services.order_store import SqlOrderStore
from storefront.services.promo_service import PromoEvaluator, SqlPromoStore
from storefront.services.review_service import ReviewService
from storefront.utils.clock import SystemClock


class Container:
    """
    Process-wide collaborators, built once per app.
    Carts and progression drivers live in memory here, so they must not be per-request.
    """

    def __init__(
        self,
        session_factory,
        catalog=None,
        notifier=None,
        clock=None,
        lock_service=None,
        dwell_times=None,
    ):
        self.session_factory = session_factory
        self.clock = clock or SystemClock()
        self.catalog = catalog or CatalogClient()
        self.notifier = notifier or NotificationService()

        self.carts = CartRegistry()
        self.order_store = SqlOrderStore(session_factory, OrderChangeHub())
        self.promo_store = SqlPromoStore(session_factory)
        self.address_book = AddressBook(session_factory)

        self.promos = PromoEvaluator(self.promo_store, clock=self.clock)
        self.checkout = CheckoutAssembler(
            self.order_store,
            address_book=self.address_book,
            promo_store=self.promo_store,
            notifier=self.notifier,
            clock=self.clock,
        )
        self.lifecycle = OrderLifecycleEngine(
            self.order_store,
            clock=self.clock,
            notifier=self.notifier,
            dwell_times=dwell_times,
            lock_service=lock_service,
        )
        self.reviews = ReviewService(session_factory, self.order_store)
