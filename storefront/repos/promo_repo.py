# storefront/repos/promo_repo.py
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from storefront.data.models.promo_code import PromoCodeModel


class PromoRepo:
    def __init__(self, db: Session):
        self.db = db

    def find_active_promo(self, code: str) -> PromoCodeModel | None:
        return self.db.execute(
            select(PromoCodeModel).where(
                PromoCodeModel.code == code,
                PromoCodeModel.is_active.is_(True),
            )
        ).scalar_one_or_none()

    def increment_uses(self, promo_id: int) -> int:
        result = self.db.execute(
            update(PromoCodeModel)
            .where(PromoCodeModel.id == promo_id)
            .values(current_uses=PromoCodeModel.current_uses + 1)
        )
        self.db.commit()
        return result.rowcount
