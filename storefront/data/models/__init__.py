# import all models so SQLAlchemy registers them in Base.metadata

from storefront.data.models.order import OrderModel
from storefront.data.models.promo_code import PromoCodeModel
from storefront.data.models.address import AddressModel
from storefront.data.models.review import ReviewModel

__all__ = ["OrderModel", "PromoCodeModel", "AddressModel", "ReviewModel"]
