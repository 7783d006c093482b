# storefront/services/address_service.py
from typing import List

from storefront.data.models.address import AddressModel
from storefront.domain.errors import AddressNotFound, IncompleteAddress
from storefront.domain.schemas import Address, AddressIn
from storefront.repos.address_repo import AddressRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

REQUIRED_FIELDS = ("street_address", "city", "state", "zip_code")


def validate_address(data: AddressIn):
    """Presence check only; street, city, state and zip must be non-blank."""
    missing = [f for f in REQUIRED_FIELDS if not (getattr(data, f) or "").strip()]
    if missing:
        raise IncompleteAddress(f"Please fill in all required fields: {', '.join(missing)}")


class AddressBook:
    """
    Saved delivery addresses of a user.
    At most one default per user: setting a new default clears the old one in the same commit.
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def list_addresses(self, user_id: int) -> List[Address]:
        with self.session_factory() as db:
            return [Address.model_validate(a) for a in AddressRepo(db).list_addresses(user_id)]

    def get_address(self, user_id: int, address_id: int) -> Address:
        with self.session_factory() as db:
            model = AddressRepo(db).get_address(address_id)
            if not model:
                raise AddressNotFound(address_id)
            if model.user_id != user_id:
                raise PermissionError("No access to this address")
            return Address.model_validate(model)

    def create_address(self, user_id: int, data: AddressIn) -> Address:
        validate_address(data)

        with self.session_factory() as db:
            repo = AddressRepo(db)
            # first address of a user becomes the default
            make_default = data.is_default
            if make_default is None:
                make_default = not repo.list_addresses(user_id)

            if make_default:
                repo.clear_default(user_id)

            model = repo.add_address(
                AddressModel(
                    user_id=user_id,
                    label=(data.label or "Home").strip(),
                    street_address=data.street_address.strip(),
                    apartment=(data.apartment or "").strip() or None,
                    city=data.city.strip(),
                    state=data.state.strip(),
                    zip_code=data.zip_code.strip(),
                    is_default=make_default,
                )
            )
            repo.commit()
            repo.refresh(model)

            logger.info(f"Address {model.id} saved for user {user_id} (default={make_default})")
            return Address.model_validate(model)

    def set_default(self, user_id: int, address_id: int) -> Address:
        with self.session_factory() as db:
            repo = AddressRepo(db)
            model = repo.get_address(address_id)
            if not model:
                raise AddressNotFound(address_id)
            if model.user_id != user_id:
                raise PermissionError("No access to this address")

            repo.clear_default(user_id)
            model.is_default = True
            repo.commit()
            repo.refresh(model)
            return Address.model_validate(model)
