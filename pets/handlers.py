"""HTTP handlers for the ``/pets`` resource."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Optional, Tuple
from urllib.parse import quote

from fastapi import APIRouter, Depends, Request, Response, status

from .breeds import BreedCatalog
from .errors import BadRequest, NotFound
from .models import CreatePetRequest, ErrorResponse, Pet
from .store import PetStore

logger = logging.getLogger(__name__)


class PetIdGenerator:
    """Issue ``<breed_id><epoch millis>`` identifiers.

    The millisecond component never repeats within a process: when the clock
    has not moved past the last issued value, the next millisecond is used.
    The returned creation time is the issued millisecond, so it can run
    slightly ahead of the wall clock under bursts.
    """

    def __init__(self) -> None:
        self._last_millis = 0
        self._lock = threading.Lock()

    def next_id(self, breed_id: str, now: Optional[datetime] = None) -> Tuple[str, datetime]:
        """Return a new pet id and the creation time it was derived from."""

        now = now or datetime.now(timezone.utc)
        millis = int(now.timestamp() * 1000)
        with self._lock:
            if millis <= self._last_millis:
                millis = self._last_millis + 1
            self._last_millis = millis
        created = datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
        return f"{breed_id}{millis}", created


def get_catalog(request: Request) -> BreedCatalog:
    return request.app.state.breed_catalog


def get_store(request: Request) -> PetStore:
    return request.app.state.pet_store


def get_id_generator(request: Request) -> PetIdGenerator:
    return request.app.state.pet_ids


def pet_location(pet_id: str) -> str:
    """Return the URL path of a pet, with the id percent-encoded."""

    return f"/pets/{quote(pet_id, safe='')}"


def find_pet(store: PetStore, pet_id: Optional[str]) -> Pet:
    """Return the stored pet or raise :class:`BadRequest` / :class:`NotFound`."""

    if not pet_id or not pet_id.strip():
        raise BadRequest("id missing")
    pet = store.select(pet_id)
    if pet is None:
        raise NotFound(f"id not found: {pet_id}")
    return pet


def register_pet(
    catalog: BreedCatalog,
    store: PetStore,
    ids: PetIdGenerator,
    payload: CreatePetRequest,
) -> Pet:
    """Validate the breed reference, build the pet and persist it.

    Nothing is written when the breed is unknown.
    """

    breed = catalog.get(payload.breed_id)
    if breed is None:
        raise NotFound(f"breed id not found: {payload.breed_id}")

    pet_id, created = ids.next_id(payload.breed_id)
    pet = Pet(
        id=pet_id,
        name=payload.name,
        photo=payload.photo,
        breed_details=breed.model_copy(deep=True),
        create_time=created,
    )
    store.insert(pet.id, pet)
    logger.info("Created pet %s with breed %s", pet.id, breed.id)
    return pet


router = APIRouter(tags=["pets"])

_ERRORS = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
}


@router.get("/pets", include_in_schema=False)
@router.get("/pets/", include_in_schema=False)
def get_pet_without_id() -> Pet:
    """Reject lookups that do not name a pet."""

    raise BadRequest("id missing")


@router.get("/pets/{pet_id:path}", response_model=Pet, responses=_ERRORS)
def get_pet(pet_id: str, store: PetStore = Depends(get_store)) -> Pet:
    """Return a single pet."""

    return find_pet(store, pet_id)


@router.post("/pets", response_model=Pet, status_code=status.HTTP_201_CREATED, responses=_ERRORS)
def create_pet(
    payload: CreatePetRequest,
    response: Response,
    catalog: BreedCatalog = Depends(get_catalog),
    store: PetStore = Depends(get_store),
    ids: PetIdGenerator = Depends(get_id_generator),
) -> Pet:
    """Create a pet for a breed known to the catalog."""

    pet = register_pet(catalog, store, ids, payload)
    response.headers["Location"] = pet_location(pet.id)
    return pet
