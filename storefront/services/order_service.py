# storefront/services/order_service.py
import math
import os
import socket
import threading
import uuid
from datetime import datetime
from typing import Callable, Dict, List, Mapping

from storefront.domain.errors import InvalidTransition, OrderNotFound
from storefront.domain.schemas import Eta, Order
from storefront.domain.status import OrderStatus, is_terminal, next_status
from storefront.utils.clock import SystemClock
from storefront.utils.settings import (
    DRIVER_LEASE_SECONDS,
    DRIVER_NAME,
    DRIVER_RETRY_SECONDS,
    DWELL_TIMES,
)
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class ProgressionDriver:
    """
    Background walker of one order: dwell, re-read, step, repeat.

    Never trusts what it read before the dwell: the step is a compare-and-set
    against the status seen when the dwell started, so an external
    cancellation or correction made meanwhile wins and the loop picks it up
    on the next read. Stops for good on delivered/cancelled or stop().
    """

    def __init__(self, engine: "OrderLifecycleEngine", order_id: int):
        self.engine = engine
        self.order_id = order_id
        self.stop_event = threading.Event()
        self._thread = threading.Thread(target=self.run, name=f"order-{order_id}-driver", daemon=True)

    def start(self):
        self._thread.start()

    def stop(self):
        self.stop_event.set()

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def join(self, timeout: float | None = None):
        self._thread.join(timeout)

    def run(self):
        logger.info(f"Driver for order {self.order_id} started")
        try:
            self._loop()
        finally:
            self.engine._driver_finished(self)
            logger.info(f"Driver for order {self.order_id} finished")

    def _loop(self):
        engine = self.engine
        clock = engine.clock

        while not self.stop_event.is_set():
            try:
                order = engine.store.get_order(self.order_id)
            except OrderNotFound:
                logger.warning(f"Order {self.order_id} disappeared, driver stops")
                return
            except Exception as e:
                logger.warning(f"Reading order {self.order_id} failed, skipping tick: {e}")
                if not engine._renew_lease(self.order_id):
                    return
                if not clock.sleep(engine.retry_interval, self.stop_event):
                    return
                continue

            if is_terminal(order.status):
                return

            if not engine._renew_lease(self.order_id):
                return

            if not clock.sleep(engine.dwell_for(order.status), self.stop_event):
                return

            try:
                engine._step(self.order_id, expected=order.status)
            except OrderNotFound:
                logger.warning(f"Order {self.order_id} disappeared, driver stops")
                return
            except Exception as e:
                # transient, the next tick re-reads and tries again
                logger.warning(f"Advancing order {self.order_id} failed, skipping tick: {e}")


class OrderLifecycleEngine:
    """
    Finite-state progression of placed orders:
    confirmed -> preparing -> picked_up -> on_the_way -> delivered.
    cancelled is applied from outside; the engine only stops on it.

    The store (persistence port) is the source of truth, every decision is
    taken on a fresh read of it.
    """

    def __init__(
        self,
        store,
        clock=None,
        notifier=None,
        dwell_times: Mapping[str, float] | None = None,
        retry_interval: float = DRIVER_RETRY_SECONDS,
        driver_name: str = DRIVER_NAME,
        lock_service=None,
        lease_seconds: int = DRIVER_LEASE_SECONDS,
    ):
        self.store = store
        self.clock = clock or SystemClock()
        self.notifier = notifier
        self.dwell_times = {OrderStatus(k): float(v) for k, v in (dwell_times or DWELL_TIMES).items()}
        self.retry_interval = retry_interval
        self.driver_name = driver_name
        self.lock_service = lock_service
        self.lease_seconds = lease_seconds
        self.owner = f"{socket.gethostname()}:{os.getpid()}:{uuid.uuid4().hex[:8]}"

        self._lock = threading.Lock()
        self._drivers: Dict[int, ProgressionDriver] = {}

    # =====================================================
    # QUERY
    # =====================================================
    def get_order(self, order_id: int, user_id: int | None = None) -> Order:
        """
        Use Case: current persisted snapshot of an order.
        Raises OrderNotFound; PermissionError when user_id is given and does not own it.
        """
        order = self.store.get_order(order_id)
        if user_id is not None and order.user_id != user_id:
            raise PermissionError("No access to this order")
        return order

    def list_orders(self, user_id: int) -> List[Order]:
        return self.store.list_orders(user_id)

    def dwell_for(self, status: OrderStatus) -> float:
        return self.dwell_times.get(OrderStatus(status), self.retry_interval)

    def estimated_time(self, order: Order, now: datetime | None = None) -> Eta:
        """
        Remaining time until estimated_delivery, whole minutes, never negative.
        Delivered orders report arrived regardless of the clock.
        """
        status = OrderStatus(order.status)
        if status == OrderStatus.DELIVERED:
            return Eta(status=status, arrived=True, minutes_remaining=0, label="Delivered!")
        if order.estimated_delivery is None:
            return Eta(status=status, arrived=False, label="Calculating...")

        now = now or self.clock.now()
        seconds = (order.estimated_delivery - now).total_seconds()
        minutes = max(0, math.floor(seconds / 60 + 0.5))
        label = "Arriving now!" if minutes == 0 else f"{minutes} min"
        return Eta(status=status, arrived=False, minutes_remaining=minutes, label=label)

    # =====================================================
    # SUBSCRIPTIONS
    # =====================================================
    def subscribe(self, order_id: int, callback: Callable[[Order], None]) -> Callable[[], None]:
        """Register callback for status changes of order_id; returns the unsubscribe function."""
        self.store.get_order(order_id)
        return self.store.subscribe_order(order_id, callback)

    # =====================================================
    # COMMANDS
    # =====================================================
    def advance(self, order_id: int) -> Order:
        """
        Use Case: move the order exactly one stage forward.
        Terminal orders are returned unchanged.
        """
        current = self.store.get_order(order_id)
        if is_terminal(current.status):
            return current
        updated = self._transition(current)
        # lost a race with another writer; report what is stored now
        return updated or self.store.get_order(order_id)

    def _step(self, order_id: int, expected: OrderStatus) -> Order | None:
        current = self.store.get_order(order_id)
        if current.status != expected:
            logger.info(
                f"Order {order_id} changed from {expected.value} to "
                f"{current.status.value} outside the driver"
            )
            return None
        if is_terminal(current.status):
            return None
        return self._transition(current)

    def _transition(self, current: Order) -> Order | None:
        target = next_status(current.status)
        if target is None:
            return None

        changes = {}
        if target == OrderStatus.PICKED_UP and not current.driver_name:
            # simulated dispatch
            changes["driver_name"] = self.driver_name

        updated = self.store.update_order_status(
            current.id, target, expected_status=current.status, **changes
        )
        if updated is None:
            logger.info(f"Order {current.id} was modified concurrently, not advancing")
            return None

        logger.info(f"Order {current.id}: {current.status.value} -> {target.value}")
        if self.notifier:
            self.notifier.status_changed(updated)
        return updated

    # =====================================================
    # PROGRESSION DRIVERS
    # =====================================================
    def start_progression(self, order_id: int) -> bool:
        """
        Start the background driver of order_id.
        Returns False (and does nothing) when one already runs or the order is terminal.
        """
        order = self.store.get_order(order_id)
        if is_terminal(order.status):
            logger.info(f"Order {order_id} is {order.status.value}, no driver needed")
            return False

        with self._lock:
            existing = self._drivers.get(order_id)
            if existing and existing.is_alive():
                logger.info(f"Driver for order {order_id} already running")
                return False

            if self.lock_service and not self.lock_service.acquire_order_lock(
                order_id, self.owner, self.lease_seconds
            ):
                logger.info(f"Driver for order {order_id} is owned by another process")
                return False

            driver = ProgressionDriver(self, order_id)
            self._drivers[order_id] = driver
            driver.start()
        return True

    def stop_progression(self, order_id: int, timeout: float | None = 5.0) -> bool:
        with self._lock:
            driver = self._drivers.get(order_id)
        if not driver:
            return False
        driver.stop()
        driver.join(timeout)
        return True

    def is_progressing(self, order_id: int) -> bool:
        with self._lock:
            driver = self._drivers.get(order_id)
        return bool(driver and driver.is_alive())

    def wait(self, order_id: int, timeout: float | None = None) -> bool:
        """Block until the driver of order_id is done. True if none is left running."""
        with self._lock:
            driver = self._drivers.get(order_id)
        if driver:
            driver.join(timeout)
            return not driver.is_alive()
        return True

    def shutdown(self, timeout: float | None = 5.0):
        with self._lock:
            drivers = list(self._drivers.values())
        for driver in drivers:
            driver.stop()
        for driver in drivers:
            driver.join(timeout)

    def _renew_lease(self, order_id: int) -> bool:
        """False when another process took the lease over; the driver must stop."""
        if not self.lock_service:
            return True
        try:
            held = self.lock_service.extend_order_lock(order_id, self.owner, self.lease_seconds)
        except Exception as e:
            # redis down: keep driving, the lease still runs until its ttl
            logger.warning(f"Failed to extend driver lock of order {order_id}: {e}")
            return True
        if not held:
            logger.warning(f"Driver lock of order {order_id} was lost, driver stops")
        return held

    def _driver_finished(self, driver: ProgressionDriver):
        with self._lock:
            if self._drivers.get(driver.order_id) is driver:
                del self._drivers[driver.order_id]
        if self.lock_service:
            try:
                self.lock_service.release_order_lock(driver.order_id, self.owner)
            except Exception as e:
                logger.warning(f"Failed to release driver lock of order {driver.order_id}: {e}")


def cancel_order(store, order_id: int, notifier=None) -> Order:
    """
    Administrative cancellation, outside the forward chain.
    Allowed from any non-terminal status; a running driver halts on its next read.
    """
    while True:
        current = store.get_order(order_id)
        if is_terminal(current.status):
            raise InvalidTransition(order_id, current.status.value, OrderStatus.CANCELLED.value)

        updated = store.update_order_status(
            order_id, OrderStatus.CANCELLED, expected_status=current.status
        )
        if updated is not None:
            break

    logger.info(f"Order {order_id} cancelled (was {current.status.value})")
    if notifier:
        notifier.status_changed(updated)
    return updated
