# storefront/domain/errors.py
from decimal import Decimal


class StorefrontError(Exception):
    """Base for domain errors. `message` is safe to show to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# cart

class DifferentRestaurantError(StorefrontError):
    def __init__(self, current_restaurant_id: str, requested_restaurant_id: str):
        super().__init__("You can only order from one restaurant at a time")
        self.current_restaurant_id = current_restaurant_id
        self.requested_restaurant_id = requested_restaurant_id


# promo

class PromoError(StorefrontError):
    pass


class InvalidCode(PromoError):
    def __init__(self, message: str = "Invalid promo code"):
        super().__init__(message)


class Expired(PromoError):
    def __init__(self):
        super().__init__("This promo code has expired")


class UsageLimitExceeded(PromoError):
    def __init__(self):
        super().__init__("This promo code has reached its usage limit")


class MinimumNotMet(PromoError):
    def __init__(self, minimum: Decimal):
        super().__init__(f"Minimum order amount of {minimum:.2f} required for this code")
        self.minimum = minimum


# checkout

class CheckoutError(StorefrontError):
    pass


class EmptyCart(CheckoutError):
    def __init__(self):
        super().__init__("Cart is empty")


class IncompleteAddress(CheckoutError):
    def __init__(self, message: str = "Please fill in all required address fields"):
        super().__init__(message)


class PersistFailed(CheckoutError):
    """Transient storage failure, the caller may retry."""

    def __init__(self, message: str = "Failed to place order, please try again"):
        super().__init__(message)


# orders

class OrderNotFound(StorefrontError):
    def __init__(self, order_id: int):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class InvalidTransition(StorefrontError):
    def __init__(self, order_id: int, status: str, target: str):
        super().__init__(f"Order {order_id} cannot move from {status} to {target}")
        self.order_id = order_id
        self.status = status
        self.target = target


class AddressNotFound(StorefrontError):
    def __init__(self, address_id: int):
        super().__init__(f"Address {address_id} not found")
        self.address_id = address_id


# reviews

class ReviewError(StorefrontError):
    pass


class InvalidRating(ReviewError):
    def __init__(self):
        super().__init__("Please select a rating between 1 and 5")


class ReviewNotAllowed(ReviewError):
    def __init__(self):
        super().__init__("Only delivered orders can be reviewed")


class AlreadyReviewed(ReviewError):
    def __init__(self):
        super().__init__("You have already reviewed this order")
