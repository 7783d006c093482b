from sqlalchemy.orm import Session

from storefront.data.models.review import ReviewModel


class ReviewRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_review(self, review: ReviewModel) -> ReviewModel:
        self.db.add(review)
        self.db.commit()
        self.db.refresh(review)
        return review

    def get_by_order(self, order_id: int) -> ReviewModel | None:
        return self.db.query(ReviewModel).filter(ReviewModel.order_id == order_id).first()

    def rollback(self):
        self.db.rollback()
