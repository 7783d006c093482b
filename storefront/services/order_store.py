# storefront/services/order_store.py
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List

from sqlalchemy.exc import SQLAlchemyError

from storefront.data.models.order import OrderModel
from storefront.domain.errors import OrderNotFound, PersistFailed
from storefront.domain.schemas import Order, OrderDraft
from storefront.domain.status import OrderStatus
from storefront.repos.order_repo import OrderRepo
from storefront.services.order_hub import OrderChangeHub, OrderCallback
from storefront.utils.retry import db_retry
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def _as_utc(value: datetime | None) -> datetime | None:
    # sqlite hands back naive datetimes even for timezone=True columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_order(model: OrderModel) -> Order:
    return Order(
        id=model.id,
        user_id=model.user_id,
        restaurant_id=model.restaurant_id,
        restaurant_name=model.restaurant_name,
        items=model.items,
        subtotal=model.subtotal,
        delivery_fee=model.delivery_fee,
        discount=model.discount,
        promo_code=model.promo_code,
        total=model.total,
        delivery_address=model.delivery_address,
        payment_method=model.payment_method,
        status=model.status,
        driver_name=model.driver_name,
        estimated_delivery=_as_utc(model.estimated_delivery),
        created_at=_as_utc(model.created_at),
        updated_at=_as_utc(model.updated_at),
    )


class SqlOrderStore:
    """
    Persistence + change notification port for orders.

    - create_order / get_order / list_orders / update_order_status on SQLAlchemy
    - subscribe_order fans snapshots out through an OrderChangeHub
    A session is opened per call, the lifecycle driver threads never share one.
    """

    def __init__(self, session_factory, hub: OrderChangeHub | None = None):
        self.session_factory = session_factory
        self.hub = hub or OrderChangeHub()

    def create_order(self, draft: OrderDraft) -> Order:
        data = draft.model_dump(mode="json")
        model = OrderModel(
            user_id=draft.user_id,
            restaurant_id=draft.restaurant_id,
            restaurant_name=draft.restaurant_name,
            items=data["items"],
            subtotal=draft.subtotal,
            delivery_fee=draft.delivery_fee,
            discount=draft.discount,
            promo_code=draft.promo_code,
            total=draft.total,
            delivery_address=data["delivery_address"],
            payment_method=draft.payment_method.value,
            status=draft.status.value,
            driver_name=draft.driver_name,
            estimated_delivery=draft.estimated_delivery,
        )
        try:
            created = self._create(model)
        except SQLAlchemyError as e:
            logger.error(f"Failed to persist order for user {draft.user_id}: {e}")
            raise PersistFailed() from e

        logger.info(f"Order {created.id} stored for user {created.user_id}")
        return to_order(created)

    @db_retry()
    def _create(self, model: OrderModel) -> OrderModel:
        with self.session_factory() as db:
            return OrderRepo(db).create_order(model)

    @db_retry()
    def get_order(self, order_id: int) -> Order:
        with self.session_factory() as db:
            model = OrderRepo(db).get_order(order_id)
            if not model:
                raise OrderNotFound(order_id)
            return to_order(model)

    @db_retry()
    def list_orders(self, user_id: int) -> List[Order]:
        with self.session_factory() as db:
            return [to_order(m) for m in OrderRepo(db).list_orders(user_id)]

    def update_order_status(
        self,
        order_id: int,
        status: OrderStatus,
        expected_status: OrderStatus | None = None,
        **changes: Any,
    ) -> Order | None:
        """
        Write a new status (plus coupled fields such as driver_name).
        With expected_status the write only happens if the row still has it;
        returns None when it did not. Observers get the stored snapshot.
        """
        updated = self._update(order_id, status, expected_status, changes)
        if updated is not None:
            self.hub.publish(updated)
        return updated

    @db_retry()
    def _update(self, order_id, status, expected_status, changes: Dict[str, Any]) -> Order | None:
        with self.session_factory() as db:
            repo = OrderRepo(db)
            rowcount = repo.update_order_status(
                order_id,
                OrderStatus(status).value,
                expected_status=OrderStatus(expected_status).value if expected_status else None,
                changes=changes,
            )
            if rowcount == 0:
                repo.rollback()
                if repo.get_order(order_id) is None:
                    raise OrderNotFound(order_id)
                return None
            repo.commit()
            return to_order(repo.get_order(order_id))

    def subscribe_order(self, order_id: int, callback: OrderCallback) -> Callable[[], None]:
        return self.hub.subscribe(order_id, callback)
