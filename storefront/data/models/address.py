from sqlalchemy import Column, Integer, String, Boolean

from storefront.data.database import Base


class AddressModel(Base):
    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=False, index=True)

    label = Column(String, nullable=False, default="Home")
    street_address = Column(String, nullable=False)
    apartment = Column(String, nullable=True)
    city = Column(String, nullable=False)
    state = Column(String, nullable=False)
    zip_code = Column(String, nullable=False)
    is_default = Column(Boolean, nullable=False, default=False)
