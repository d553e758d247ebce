"""Entrypoint for the pets HTTP API package.

The package exposes a FastAPI application factory. The breed catalog is
loaded while the application is built, so a failing breed source stops the
server before it accepts requests. Run it with Uvicorn:

>>> uvicorn pets.main:create_app --factory

or with ``python -m pets``, which reads the same environment settings.
"""

from .main import create_app  # noqa: F401
