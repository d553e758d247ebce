from __future__ import annotations

from pathlib import Path

import pytest

from pets.config import FixtureBreedSource, Settings
from pets.store import InMemoryPetStore

FIXTURES = Path(__file__).resolve().parent / "fixtures"


class CountingPetStore(InMemoryPetStore):
    """In-memory store that records how many inserts it received."""

    def __init__(self) -> None:
        super().__init__()
        self.inserts = 0

    def insert(self, pet_id, pet) -> None:
        self.inserts += 1
        super().insert(pet_id, pet)


@pytest.fixture
def fixture_settings() -> Settings:
    return Settings(breed_source=FixtureBreedSource(path=FIXTURES / "breeds.json"))


@pytest.fixture
def counting_store() -> CountingPetStore:
    return CountingPetStore()
