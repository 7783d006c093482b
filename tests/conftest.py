import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from storefront.data.database import Base, make_engine, make_session_factory
from storefront.data.models import PromoCodeModel
from storefront.domain.schemas import (
    AddressIn,
    DeliveryAddress,
    MenuItem,
    OrderDraft,
    OrderLineSnapshot,
    PaymentMethod,
    Restaurant,
)
from storefront.services.cart_service import CartEngine
from storefront.services.order_store import SqlOrderStore

START = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Sleeps return at once and move the clock forward."""

    def __init__(self, start: datetime = START):
        self.current = start
        self.sleeps = []
        self._lock = threading.Lock()

    def now(self):
        return self.current

    def advance(self, **delta):
        self.current += timedelta(**delta)

    def sleep(self, seconds, stop_event):
        if stop_event.is_set():
            return False
        with self._lock:
            self.sleeps.append(seconds)
            self.current += timedelta(seconds=seconds)
        return not stop_event.is_set()


class GatedClock(FakeClock):
    """Sleeps block until the test calls release() or the driver is stopped."""

    def __init__(self, start: datetime = START):
        super().__init__(start)
        self.sleeping = threading.Event()
        self._gate = threading.Semaphore(0)

    def sleep(self, seconds, stop_event):
        with self._lock:
            self.sleeps.append(seconds)
        self.sleeping.set()
        while not stop_event.is_set():
            if self._gate.acquire(timeout=0.01):
                return True
        return False

    def release(self):
        self._gate.release()


class RecordingNotifier:
    def __init__(self):
        self.placed = []
        self.changes = []

    def order_placed(self, order):
        self.placed.append(order)

    def status_changed(self, order):
        self.changes.append(order)


def menu_item(item_id="m1", name="Margherita", price="12.50", **extra):
    return MenuItem(id=item_id, name=name, price=Decimal(price), **extra)


class FakeCatalog:
    def __init__(self):
        self.restaurants = {
            "r1": Restaurant(
                id="r1",
                name="Bella Napoli",
                cuisine="Italian",
                menu=[menu_item("m1", "Margherita", "12.50"), menu_item("m2", "Tiramisu", "6.50")],
            ),
            "r2": Restaurant(
                id="r2",
                name="Tokyo Ramen Bar",
                cuisine="Japanese",
                menu=[menu_item("k1", "Tonkotsu Ramen", "15.00")],
            ),
        }

    def get_restaurant(self, restaurant_id):
        return self.restaurants.get(restaurant_id)

    def list_restaurants(self, cuisine=None, search=None):
        result = list(self.restaurants.values())
        if cuisine:
            result = [r for r in result if r.cuisine.lower() == cuisine.lower()]
        if search:
            result = [r for r in result if search.lower() in r.name.lower()]
        return result

    @staticmethod
    def find_menu_item(restaurant, item_id):
        return next((i for i in restaurant.menu if i.id == item_id), None)


@pytest.fixture
def session_factory(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def store(session_factory):
    return SqlOrderStore(session_factory)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def cart():
    return CartEngine()


@pytest.fixture
def home_address():
    return AddressIn(
        label="Home",
        street_address="123 Main Street",
        apartment="Apt 4B",
        city="New York",
        state="NY",
        zip_code="10001",
    )


@pytest.fixture
def add_promo(session_factory):
    def _add(code, discount_type="percentage", discount_value="10", **extra):
        with session_factory() as db:
            promo = PromoCodeModel(
                code=code,
                discount_type=discount_type,
                discount_value=Decimal(discount_value),
                current_uses=extra.pop("current_uses", 0),
                is_active=extra.pop("is_active", True),
                **extra,
            )
            db.add(promo)
            db.commit()
            db.refresh(promo)
            return promo.id

    return _add


@pytest.fixture
def gated_clock():
    return GatedClock()


@pytest.fixture
def make_item():
    return menu_item


@pytest.fixture
def place_order(store):
    def _place(user_id=1, **overrides):
        fields = dict(
            user_id=user_id,
            restaurant_id="r1",
            restaurant_name="Bella Napoli",
            items=[OrderLineSnapshot(id="m1", name="Margherita", price=Decimal("12.50"), quantity=2)],
            subtotal=Decimal("25.00"),
            delivery_fee=Decimal("2.99"),
            total=Decimal("27.99"),
            delivery_address=DeliveryAddress(
                label="Home", street_address="123 Main Street", city="New York", state="NY", zip_code="10001"
            ),
            payment_method=PaymentMethod.CARD,
            estimated_delivery=START + timedelta(minutes=35),
        )
        fields.update(overrides)
        return store.create_order(OrderDraft(**fields))

    return _place
