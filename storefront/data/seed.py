# storefront/data/seed.py
from decimal import Decimal

from storefront.data.database import SessionLocal
from storefront.data.models.promo_code import PromoCodeModel

DEFAULT_PROMOS = [
    {"code": "WELCOME10", "discount_type": "percentage", "discount_value": Decimal("10")},
    {"code": "FLAT50", "discount_type": "fixed", "discount_value": Decimal("50")},
    {"code": "SAVE20", "discount_type": "percentage", "discount_value": Decimal("20"),
     "min_order_amount": Decimal("25.00")},
]


def seed(session_factory=SessionLocal):
    db = session_factory()
    try:
        # not forcing: only seed if empty
        if db.query(PromoCodeModel).first():
            return
        db.add_all(PromoCodeModel(current_uses=0, is_active=True, **data) for data in DEFAULT_PROMOS)
        db.commit()
    finally:
        db.close()
