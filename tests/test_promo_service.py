from datetime import timedelta
from decimal import Decimal

import pytest

from storefront.domain.errors import Expired, InvalidCode, MinimumNotMet, UsageLimitExceeded
from storefront.services.promo_service import PromoEvaluator, SqlPromoStore


@pytest.fixture
def evaluator(session_factory, clock):
    return PromoEvaluator(SqlPromoStore(session_factory), clock=clock)


def test_fixed_discount_is_clamped_to_subtotal(evaluator, add_promo):
    add_promo("FLAT50", "fixed", "50")

    applied = evaluator.evaluate("FLAT50", Decimal("30.00"))

    assert applied.discount_amount == Decimal("30.00")
    assert applied.promo.code == "FLAT50"


def test_percentage_discount(evaluator, add_promo):
    add_promo("WELCOME10", "percentage", "10")

    applied = evaluator.evaluate("WELCOME10", Decimal("200"))

    assert applied.discount_amount == Decimal("20.00")


def test_code_matching_ignores_case_and_whitespace(evaluator, add_promo):
    add_promo("WELCOME10", "percentage", "10")

    applied = evaluator.evaluate("  welcome10 ", Decimal("50.00"))

    assert applied.discount_amount == Decimal("5.00")


@pytest.mark.parametrize("code", ["", "   ", "NOPE"])
def test_unknown_or_blank_code(evaluator, code):
    with pytest.raises(InvalidCode):
        evaluator.evaluate(code, Decimal("10.00"))


def test_inactive_code_is_invalid(evaluator, add_promo):
    add_promo("OLD", is_active=False)

    with pytest.raises(InvalidCode):
        evaluator.evaluate("OLD", Decimal("10.00"))


def test_expired_code(evaluator, add_promo, clock):
    add_promo("GONE", expires_at=clock.now() - timedelta(days=1))

    with pytest.raises(Expired):
        evaluator.evaluate("GONE", Decimal("10.00"))


def test_code_not_yet_expired(evaluator, add_promo, clock):
    add_promo("LATER", expires_at=clock.now() + timedelta(days=1))

    assert evaluator.evaluate("LATER", Decimal("10.00")).discount_amount == Decimal("1.00")


def test_usage_limit(evaluator, add_promo):
    add_promo("ONCE", max_uses=1, current_uses=1)

    with pytest.raises(UsageLimitExceeded):
        evaluator.evaluate("ONCE", Decimal("10.00"))


def test_minimum_message_names_the_minimum(evaluator, add_promo):
    add_promo("SAVE20", "percentage", "20", min_order_amount=Decimal("25.00"))

    with pytest.raises(MinimumNotMet) as exc:
        evaluator.evaluate("SAVE20", Decimal("24.99"))

    assert "25.00" in exc.value.message
    assert evaluator.evaluate("SAVE20", Decimal("25.00")).discount_amount == Decimal("5.00")


def test_first_failing_check_wins(evaluator, add_promo, clock):
    # expired, used up and below minimum at once: expiry is reported
    add_promo(
        "BAD",
        expires_at=clock.now() - timedelta(minutes=1),
        max_uses=1,
        current_uses=5,
        min_order_amount=Decimal("100"),
    )

    with pytest.raises(Expired):
        evaluator.evaluate("BAD", Decimal("1.00"))


def test_increment_uses(session_factory, add_promo, evaluator):
    promo_id = add_promo("TWICE", max_uses=2)
    store = SqlPromoStore(session_factory)

    store.increment_uses(promo_id)
    assert evaluator.evaluate("TWICE", Decimal("10")).promo.current_uses == 1

    store.increment_uses(promo_id)
    with pytest.raises(UsageLimitExceeded):
        evaluator.evaluate("TWICE", Decimal("10"))
