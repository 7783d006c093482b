# storefront/repos/address_repo.py
from typing import List
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from storefront.data.models.address import AddressModel


class AddressRepo:
    def __init__(self, db: Session):
        self.db = db

    def list_addresses(self, user_id: int) -> List[AddressModel]:
        # default first, then in creation order
        return list(
            self.db.execute(
                select(AddressModel)
                .where(AddressModel.user_id == user_id)
                .order_by(AddressModel.is_default.desc(), AddressModel.id)
            ).scalars()
        )

    def get_address(self, address_id: int) -> AddressModel | None:
        return self.db.get(AddressModel, address_id)

    def add_address(self, address: AddressModel) -> AddressModel:
        self.db.add(address)
        return address

    def clear_default(self, user_id: int):
        self.db.execute(
            update(AddressModel)
            .where(AddressModel.user_id == user_id, AddressModel.is_default.is_(True))
            .values(is_default=False)
        )

    def commit(self):
        self.db.commit()

    def refresh(self, address: AddressModel):
        self.db.refresh(address)
