"""
FastAPI Application Factory

Builds the application around a RedirectStore:
- the store is created (and its file loaded) before the app exists, so a
  broken redirect file aborts startup instead of serving a partial service
- the store and its RequestRouter live on app.state; nothing is global
- interactive docs are disabled because every path is a potential short name

Run with:
    uvicorn --factory shorty.main:create_app
or through the ``shorty`` console script (see shorty.cli).
"""

from typing import Optional

from fastapi import FastAPI

from shorty import __version__
from shorty.api import endpoints
from shorty.api.request_router import RequestRouter
from shorty.core.setting import Settings, settings
from shorty.middleware.logging import add_access_log_middleware
from shorty.services.redirect_store import RedirectStore


def create_app(app_settings: Settings = settings, store: Optional[RedirectStore] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        app_settings: Configuration; REDIRECT_FILE is used when no store is given
        store: Pre-built store, mainly for tests

    Returns:
        Configured FastAPI instance

    Raises:
        PersistenceError: If the redirect file exists but cannot be loaded
    """
    if store is None:
        store = RedirectStore(app_settings.REDIRECT_FILE)

    app = FastAPI(
        title="shorty",
        description="A minimal URL-shortening redirect service",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    app.state.settings = app_settings
    app.state.store = store
    app.state.request_router = RequestRouter(store)

    add_access_log_middleware(app)

    app.include_router(endpoints.router, tags=["Redirects"])

    return app
