# storefront/repos/order_repo.py
from typing import Any, Dict, List
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def list_orders(self, user_id: int) -> List[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .where(OrderModel.user_id == user_id)
                .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            ).scalars()
        )

    def update_order_status(
        self,
        order_id: int,
        status: str,
        expected_status: str | None = None,
        changes: Dict[str, Any] | None = None,
    ) -> int:
        """
        Compare-and-set on status, e.g.
        update orders set status 'preparing' where id 1 and status 'confirmed'.
        Returns rowcount; 0 means the row is gone or someone moved it first.
        """
        stmt = update(OrderModel).where(OrderModel.id == order_id)
        if expected_status is not None:
            stmt = stmt.where(OrderModel.status == expected_status)

        values = {"status": status, **(changes or {})}
        result = self.db.execute(stmt.values(**values).execution_options(synchronize_session=False))
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
