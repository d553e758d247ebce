"""Breed catalog bootstrap.

The catalog is fetched once, either from the remote breed API or from a local
fixture file, and frozen for the lifetime of the process. Request handlers
only ever read from it, so it is shared between worker threads without
locking.
"""

from __future__ import annotations

import logging
import time
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from .config import BreedSourceConfig, FixtureBreedSource, RemoteBreedSource
from .errors import CatalogBuildFailed, SourceUnavailable
from .models import Breed

logger = logging.getLogger(__name__)

MAX_PAYLOAD_BYTES = 1024 * 1000

_BREED_LIST = TypeAdapter(List[Breed])


def _read_capped(
    chunks: Iterable[bytes],
    limit: int = MAX_PAYLOAD_BYTES,
    deadline: Optional[float] = None,
) -> bytes:
    """Join ``chunks``, refusing payloads larger than ``limit`` bytes.

    ``deadline`` is a :func:`time.monotonic` value; reading stops with
    :class:`SourceUnavailable` once it has passed.
    """

    buffer = bytearray()
    for chunk in chunks:
        buffer.extend(chunk)
        if len(buffer) > limit:
            raise SourceUnavailable(f"breed payload exceeds {limit} bytes")
        if deadline is not None and time.monotonic() > deadline:
            raise SourceUnavailable("breed payload not received before the deadline")
    return bytes(buffer)


def _read_fixture(source: FixtureBreedSource) -> bytes:
    if source.path is None or not str(source.path).strip():
        logger.error("Breed fixture mode selected without a fixture path")
        raise SourceUnavailable("fixture path is not configured")

    logger.debug("Loading breed data from fixture %s", source.path)
    try:
        with open(source.path, "rb") as fp:
            # One byte past the cap is enough to detect oversized files.
            return _read_capped([fp.read(MAX_PAYLOAD_BYTES + 1)])
    except SourceUnavailable as exc:
        logger.error("Unable to load breed fixture %s: %s", source.path, exc)
        raise
    except OSError as exc:
        logger.error("Unable to read breed fixture %s: %s", source.path, exc)
        raise SourceUnavailable(f"unable to read fixture {source.path}: {exc}") from exc


def _fetch_remote(source: RemoteBreedSource, client: httpx.Client) -> bytes:
    # httpx timeouts bound each network operation; the deadline bounds the
    # whole exchange, including a body that trickles in.
    deadline = time.monotonic() + source.timeout
    logger.debug("Requesting breed data from %s", source.url)
    try:
        with client.stream("GET", source.url) as response:
            response.raise_for_status()
            return _read_capped(response.iter_bytes(), deadline=deadline)
    except SourceUnavailable as exc:
        logger.error("Unable to retrieve pet breeds from %s: %s", source.url, exc)
        raise
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.error("Unable to retrieve pet breeds from %s: %s", source.url, exc)
        raise SourceUnavailable(f"unable to retrieve breeds from {source.url}: {exc}") from exc


def fetch_breed_payload(source: BreedSourceConfig, client: Optional[httpx.Client] = None) -> bytes:
    """Return the raw breed payload for ``source``.

    Remote fetches use ``client`` when given; otherwise a client bounded by
    ``source.timeout`` is created for the single request. In both cases the
    whole exchange must finish within ``source.timeout`` seconds. Nothing is
    retried.

    :raises SourceUnavailable: if the payload cannot be read in full.
    """

    if isinstance(source, FixtureBreedSource):
        return _read_fixture(source)
    if client is not None:
        return _fetch_remote(source, client)
    with httpx.Client(timeout=httpx.Timeout(source.timeout)) as owned_client:
        return _fetch_remote(source, owned_client)


class BreedCatalog:
    """Read-only index of breeds keyed by identifier."""

    def __init__(self, breeds: Iterable[Breed]) -> None:
        index: Dict[str, Breed] = {}
        for breed in breeds:
            if breed.id in index:
                raise CatalogBuildFailed(f"duplicate breed id: {breed.id}")
            index[breed.id] = breed
        self._breeds: Mapping[str, Breed] = MappingProxyType(index)

    @classmethod
    def from_payload(cls, payload: bytes) -> "BreedCatalog":
        """Parse a JSON array of breed objects into a catalog."""

        try:
            breeds = _BREED_LIST.validate_json(payload)
        except ValidationError as exc:
            logger.error("Cannot parse breed payload: %s", exc)
            raise CatalogBuildFailed(f"malformed breed payload: {exc.error_count()} error(s)") from exc
        return cls(breeds)

    @property
    def breeds(self) -> Mapping[str, Breed]:
        return self._breeds

    def get(self, breed_id: str) -> Optional[Breed]:
        return self._breeds.get(breed_id)

    def __contains__(self, breed_id: object) -> bool:
        return breed_id in self._breeds

    def __iter__(self) -> Iterator[str]:
        return iter(self._breeds)

    def __len__(self) -> int:
        return len(self._breeds)


def load_breed_catalog(source: BreedSourceConfig, client: Optional[httpx.Client] = None) -> BreedCatalog:
    """Fetch the breed payload and build the catalog from it."""

    catalog = BreedCatalog.from_payload(fetch_breed_payload(source, client))
    logger.info("Loaded %d breeds from %s source", len(catalog), _describe(source))
    return catalog


def _describe(source: BreedSourceConfig) -> str:
    if isinstance(source, FixtureBreedSource):
        return f"fixture {source.path}"
    return f"remote {source.url}"
