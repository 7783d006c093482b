# storefront/services/promo_service.py
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

from storefront.domain.errors import Expired, InvalidCode, MinimumNotMet, UsageLimitExceeded
from storefront.domain.schemas import AppliedPromo, DiscountType, PromoCode
from storefront.repos.promo_repo import PromoRepo
from storefront.utils.clock import SystemClock
from storefront.utils.retry import db_retry
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")


def canonical_code(code: str) -> str:
    return (code or "").strip().upper()


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class SqlPromoStore:
    """Promo backing store on the promo_codes table."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    @db_retry()
    def find_active_promo(self, code: str) -> PromoCode | None:
        with self.session_factory() as db:
            model = PromoRepo(db).find_active_promo(canonical_code(code))
            return PromoCode.model_validate(model) if model else None

    @db_retry()
    def increment_uses(self, promo_id: int):
        with self.session_factory() as db:
            PromoRepo(db).increment_uses(promo_id)


class PromoEvaluator:
    def __init__(self, store, clock=None):
        self.store = store
        self.clock = clock or SystemClock()

    def evaluate(self, code: str, subtotal: Decimal, now: datetime | None = None) -> AppliedPromo:
        """
        Validate code against subtotal; first failing check wins:
        1. exists and active   -> InvalidCode
        2. not expired         -> Expired
        3. uses below max_uses -> UsageLimitExceeded
        4. subtotal >= minimum -> MinimumNotMet
        """
        code = canonical_code(code)
        if not code:
            raise InvalidCode("Please enter a promo code")

        promo = self.store.find_active_promo(code)
        if promo is None or not promo.is_active:
            logger.info(f"Promo {code} rejected: unknown or inactive")
            raise InvalidCode()

        now = now or self.clock.now()
        if promo.expires_at is not None and _as_utc(promo.expires_at) < now:
            logger.info(f"Promo {code} rejected: expired at {promo.expires_at}")
            raise Expired()

        if promo.max_uses is not None and promo.current_uses >= promo.max_uses:
            logger.info(f"Promo {code} rejected: {promo.current_uses}/{promo.max_uses} uses")
            raise UsageLimitExceeded()

        if promo.min_order_amount is not None and subtotal < promo.min_order_amount:
            logger.info(f"Promo {code} rejected: subtotal {subtotal} below {promo.min_order_amount}")
            raise MinimumNotMet(promo.min_order_amount)

        discount = self.price(promo, subtotal)
        logger.info(f"Promo {code} applied, discount {discount} on {subtotal}")
        return AppliedPromo(promo=promo, discount_amount=discount)

    @staticmethod
    def price(promo: PromoCode, subtotal: Decimal) -> Decimal:
        """Discount of promo on subtotal, never more than the subtotal."""
        subtotal = Decimal(subtotal)
        if promo.discount_type == DiscountType.PERCENTAGE:
            discount = subtotal * promo.discount_value / Decimal(100)
        else:
            discount = Decimal(promo.discount_value)
        discount = min(discount, subtotal)
        return max(discount, Decimal("0")).quantize(CENT, rounding=ROUND_HALF_UP)
