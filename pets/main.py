"""FastAPI application for the pets HTTP API."""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .breeds import load_breed_catalog
from .config import Settings, get_settings
from .errors import CatalogBuildFailed, PetServiceError
from .handlers import PetIdGenerator, router
from .store import PetStore, SqlPetStore

logger = logging.getLogger(__name__)


async def render_service_error(request: Request, exc: PetServiceError) -> JSONResponse:
    """Render a domain error as ``{"detail": ...}`` with its status code."""

    if exc.status_code >= 500:
        logger.error("Request %s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


async def render_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report undecodable or incomplete request bodies as 400."""

    return JSONResponse(
        status_code=400,
        content={"detail": "malformed request", "errors": jsonable_encoder(exc.errors())},
    )


def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[PetStore] = None,
    http_client: Optional[httpx.Client] = None,
) -> FastAPI:
    """Build the application, loading the breed catalog up front.

    Breed loading failures propagate to the caller; no application is
    returned without a catalog.

    :raises SourceUnavailable: if the breed payload cannot be read.
    :raises CatalogBuildFailed: if the payload cannot be parsed, or the
        catalog is empty and ``settings.allow_empty_catalog`` is false.
    """

    settings = settings or get_settings()
    catalog = load_breed_catalog(settings.breed_source, http_client)
    if not len(catalog) and not settings.allow_empty_catalog:
        logger.error("Refusing to start with an empty breed catalog")
        raise CatalogBuildFailed("breed catalog is empty")

    app = FastAPI(title="Pets API", version="1.0.0")
    app.state.breed_catalog = catalog
    app.state.pet_store = store if store is not None else SqlPetStore(settings.database_url)
    app.state.pet_ids = PetIdGenerator()

    app.add_exception_handler(PetServiceError, render_service_error)
    app.add_exception_handler(RequestValidationError, render_validation_error)
    app.include_router(router)
    return app
