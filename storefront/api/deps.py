# storefront/api/deps.py
from fastapi import Request

from storefront.api.container import Container


def get_container(request: Request) -> Container:
    return request.app.state.container
