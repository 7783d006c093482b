# storefront/api/__init__.py
from contextlib import asynccontextmanager

from fastapi import FastAPI

from storefront.api.container import Container
from storefront.api.routers import addresses, carts, health, orders, restaurants


def create_app(session_factory=None, **collaborators) -> FastAPI:
    """
    Build the storefront API.
    collaborators (catalog, notifier, clock, lock_service, dwell_times) are
    forwarded to the Container; tests pass fakes here.
    """
    if session_factory is None:
        from storefront.data.database import SessionLocal
        session_factory = SessionLocal

    container = Container(session_factory, **collaborators)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # progression drivers are daemon threads, stop them with the app
        container.lifecycle.shutdown()

    app = FastAPI(title="Storefront Service", version="1.0.0", lifespan=lifespan)
    app.state.container = container

    # Include routers
    app.include_router(health.router)
    app.include_router(restaurants.router)
    app.include_router(carts.router)
    app.include_router(addresses.router)
    app.include_router(orders.router)

    return app
