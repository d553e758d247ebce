from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import pytest

from conftest import CountingPetStore
from pets.breeds import BreedCatalog
from pets.errors import BadRequest, NotFound
from pets.handlers import PetIdGenerator, find_pet, register_pet
from pets.models import CreatePetRequest

CATALOG = BreedCatalog.from_payload(b'[{"id": "b1", "name": "Labrador", "coat": "short"}]')


def test_id_is_breed_id_followed_by_millis() -> None:
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    pet_id, created = PetIdGenerator().next_id("b1", now)
    assert pet_id == f"b1{int(now.timestamp() * 1000)}"
    assert created == now


def test_ids_stay_unique_when_clock_stalls() -> None:
    ids = PetIdGenerator()
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    millis = int(now.timestamp() * 1000)
    issued = [ids.next_id("b1", now)[0] for _ in range(3)]
    assert issued == [f"b1{millis}", f"b1{millis + 1}", f"b1{millis + 2}"]
    _, created = ids.next_id("b1", now)
    assert int(created.timestamp() * 1000) == millis + 3


def test_ids_follow_clock_when_it_advances() -> None:
    ids = PetIdGenerator()
    first = datetime(2024, 1, 1, tzinfo=timezone.utc)
    later = datetime(2024, 1, 1, 0, 0, 5, tzinfo=timezone.utc)
    ids.next_id("b1", first)
    assert ids.next_id("b1", later)[0] == f"b1{int(later.timestamp() * 1000)}"


def test_register_pet_copies_breed_snapshot(counting_store: CountingPetStore) -> None:
    request = CreatePetRequest(name="Rex", photo="r.png", breed_id="b1")
    pet = register_pet(CATALOG, counting_store, PetIdGenerator(), request)
    assert counting_store.inserts == 1
    assert counting_store.select(pet.id) == pet
    assert pet.breed_details == CATALOG.get("b1")
    assert pet.breed_details is not CATALOG.get("b1")
    assert pet.create_time.tzinfo is not None


def test_register_pet_unknown_breed(counting_store: CountingPetStore) -> None:
    request = CreatePetRequest(name="Rex", photo="r.png", breed_id="b9")
    with pytest.raises(NotFound, match="breed id not found: b9"):
        register_pet(CATALOG, counting_store, PetIdGenerator(), request)
    assert counting_store.inserts == 0


@pytest.mark.parametrize("pet_id", [None, "", "   "])
def test_find_pet_requires_id(pet_id, counting_store: CountingPetStore) -> None:
    with pytest.raises(BadRequest):
        find_pet(counting_store, pet_id)


def test_find_pet_unknown(counting_store: CountingPetStore) -> None:
    with pytest.raises(NotFound):
        find_pet(counting_store, "b1123")


def test_concurrent_creates_get_distinct_ids(counting_store: CountingPetStore, monkeypatch) -> None:
    ids = PetIdGenerator()
    stalled = datetime(2024, 1, 1, tzinfo=timezone.utc)
    original = ids.next_id
    monkeypatch.setattr(ids, "next_id", lambda breed_id, now=None: original(breed_id, stalled))
    request = CreatePetRequest(name="Rex", photo="r.png", breed_id="b1")

    with ThreadPoolExecutor(max_workers=8) as pool:
        pets = list(pool.map(lambda _: register_pet(CATALOG, counting_store, ids, request), range(50)))

    assert len({pet.id for pet in pets}) == 50
    assert counting_store.inserts == 50
    assert len(counting_store) == 50
