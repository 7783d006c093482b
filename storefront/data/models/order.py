# storefront/data/models/order.py
from sqlalchemy import Column, Integer, String, DateTime, Numeric, JSON
from datetime import datetime, timezone

from storefront.data.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=False, index=True)

    restaurant_id = Column(String, nullable=False)
    restaurant_name = Column(String, nullable=False)
    # line snapshots, frozen at checkout
    items = Column(JSON, nullable=False)

    subtotal = Column(Numeric(10, 2), nullable=False)
    delivery_fee = Column(Numeric(10, 2), nullable=False)
    discount = Column(Numeric(10, 2), nullable=True)
    promo_code = Column(String, nullable=True)
    total = Column(Numeric(10, 2), nullable=False)

    delivery_address = Column(JSON, nullable=False)
    payment_method = Column(String, nullable=False)

    status = Column(String, nullable=False, default="confirmed")  # confirmed .. delivered, cancelled
    driver_name = Column(String, nullable=True)
    estimated_delivery = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
