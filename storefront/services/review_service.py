# storefront/services/review_service.py
from sqlalchemy.exc import IntegrityError

from storefront.data.models.review import ReviewModel
from storefront.domain.errors import AlreadyReviewed, InvalidRating, ReviewNotAllowed
from storefront.domain.schemas import Review
from storefront.domain.status import OrderStatus
from storefront.repos.review_repo import ReviewRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class ReviewService:
    def __init__(self, session_factory, store):
        self.session_factory = session_factory
        self.store = store

    def submit_review(self, order_id: int, user_id: int, rating: int, comment: str | None = None) -> Review:
        """
        Use Case: rate a delivered order, once.
        """
        if not 1 <= rating <= 5:
            raise InvalidRating()

        order = self.store.get_order(order_id)
        if order.user_id != user_id:
            raise PermissionError("No access to this order")
        if order.status != OrderStatus.DELIVERED:
            raise ReviewNotAllowed()

        with self.session_factory() as db:
            repo = ReviewRepo(db)
            if repo.get_by_order(order_id):
                raise AlreadyReviewed()
            try:
                created = repo.create_review(
                    ReviewModel(
                        order_id=order_id,
                        user_id=user_id,
                        restaurant_id=order.restaurant_id,
                        rating=rating,
                        comment=(comment or "").strip() or None,
                    )
                )
            except IntegrityError:
                # unique order_id, lost a race with a concurrent submit
                repo.rollback()
                raise AlreadyReviewed()

        logger.info(f"Review {created.id} for order {order_id}: {rating}/5")
        return Review.model_validate(created)
