"""Error taxonomy shared by the breed loader, the store and the HTTP layer."""

from __future__ import annotations


class PetServiceError(Exception):
    """Base class for errors raised by the pets service.

    ``status_code`` is the HTTP status used when the error reaches the
    request boundary.
    """

    status_code: int = 500


class ConfigurationError(PetServiceError):
    """Settings could not be resolved from the environment."""


class SourceUnavailable(PetServiceError):
    """The breed payload could not be fetched or read."""

    status_code = 503


class CatalogBuildFailed(PetServiceError):
    """The breed payload was fetched but could not be turned into a catalog."""

    status_code = 503


class BadRequest(PetServiceError):
    status_code = 400


class NotFound(PetServiceError):
    status_code = 404


class PetStoreError(PetServiceError):
    """The persistence backend rejected an operation."""
