# storefront/services/catalog_client.py
from typing import List
import requests

from storefront.domain.schemas import MenuItem, Restaurant
from storefront.utils.retry import http_retry
from storefront.utils.settings import CATALOG_SERVICE_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CatalogClient:
    """Read-only client of the restaurant catalog service."""

    def __init__(self, base_url: str | None = None, timeout: int = 2):
        self.base_url = (base_url or CATALOG_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def get_restaurant(self, restaurant_id: str) -> Restaurant | None:
        url = f"{self.base_url}/restaurants/{restaurant_id}"
        logger.info(f"CatalogClient GET {url}")

        resp = requests.get(url, timeout=self.timeout)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return Restaurant.model_validate(resp.json())

    @http_retry()
    def list_restaurants(self, cuisine: str | None = None, search: str | None = None) -> List[Restaurant]:
        url = f"{self.base_url}/restaurants"
        params = {k: v for k, v in {"cuisine": cuisine, "search": search}.items() if v}
        logger.info(f"CatalogClient GET {url} {params}")

        resp = requests.get(url, params=params, timeout=self.timeout)
        resp.raise_for_status()
        return [Restaurant.model_validate(r) for r in resp.json()]

    @staticmethod
    def find_menu_item(restaurant: Restaurant, item_id: str) -> MenuItem | None:
        return next((item for item in restaurant.menu if item.id == item_id), None)
