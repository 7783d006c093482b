# storefront/utils/settings.py
import os
from decimal import Decimal
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///storefront.db")
REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379/0")
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://redis:6379/1")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://redis:6379/2")
CATALOG_SERVICE_URL = os.getenv("CATALOG_SERVICE_URL", "http://catalog-service:8000")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# in-memory carts expire after 15 min without activity
CART_TTL_SECONDS = int(os.getenv("CART_TTL_SECONDS", 15*60))

DELIVERY_FEE = Decimal(os.getenv("DELIVERY_FEE", "2.99"))
ETA_MINUTES = int(os.getenv("ETA_MINUTES", 35))

# dwell per stage, seconds
DWELL_TIMES = {
    "confirmed": float(os.getenv("DWELL_CONFIRMED_SECONDS", 5)),
    "preparing": float(os.getenv("DWELL_PREPARING_SECONDS", 8)),
    "picked_up": float(os.getenv("DWELL_PICKED_UP_SECONDS", 6)),
    "on_the_way": float(os.getenv("DWELL_ON_THE_WAY_SECONDS", 10)),
}
DRIVER_RETRY_SECONDS = float(os.getenv("DRIVER_RETRY_SECONDS", 5))
DRIVER_LEASE_SECONDS = int(os.getenv("DRIVER_LEASE_SECONDS", 5*60))
DRIVER_NAME = os.getenv("DRIVER_NAME", "John D.")
USE_DRIVER_LOCK = os.getenv("USE_DRIVER_LOCK", "false").lower() in ("1", "true", "yes")

SUBSCRIBER_BUFFER_SIZE = int(os.getenv("SUBSCRIBER_BUFFER_SIZE", 32))
