# storefront/main.py
import uvicorn

from storefront.api import create_app
from storefront.data.database import Base, engine
from storefront.data.seed import seed
from storefront.services.lock_service import LockService
from storefront.utils.settings import USE_DRIVER_LOCK
from storefront.utils.logging import get_logger

# import all models before create_all
from storefront.data.models import OrderModel, PromoCodeModel, AddressModel, ReviewModel  # noqa: F401

logger = get_logger(__name__)

logger.info(f"Initializing database, tables: {list(Base.metadata.tables.keys())}")

try:
    Base.metadata.create_all(bind=engine)
    seed()
    logger.info("Database tables created")
except Exception as e:
    logger.error(f"Failed to create tables: {e}")
    raise


# redis lease keeps one driver per order across uvicorn workers
app = create_app(lock_service=LockService() if USE_DRIVER_LOCK else None)

if __name__ == "__main__":
    uvicorn.run("storefront.main:app", host="0.0.0.0", port=8000, reload=False)
