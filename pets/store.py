"""Pet persistence backends."""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Dict, Optional, Protocol

from sqlalchemy import JSON, DateTime, String, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from .errors import PetStoreError
from .models import Breed, Pet


class PetStore(Protocol):
    """Capability the request handlers need from a persistence backend.

    Implementations must be safe to call from several worker threads.
    """

    def insert(self, pet_id: str, pet: Pet) -> None:
        ...

    def select(self, pet_id: str) -> Optional[Pet]:
        ...


class InMemoryPetStore:
    """Dict-backed store, used by tests and throwaway runs."""

    def __init__(self) -> None:
        self._pets: Dict[str, Pet] = {}
        self._lock = threading.Lock()

    def insert(self, pet_id: str, pet: Pet) -> None:
        with self._lock:
            if pet_id in self._pets:
                raise PetStoreError(f"pet id already exists: {pet_id}")
            self._pets[pet_id] = pet

    def select(self, pet_id: str) -> Optional[Pet]:
        with self._lock:
            return self._pets.get(pet_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._pets)


class Base(DeclarativeBase):
    """Declarative base for ORM models."""


class PetRecord(Base):
    """ORM model for ``pets``."""

    __tablename__ = "pets"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    photo: Mapped[str] = mapped_column(String, nullable=False)
    breed_details_json: Mapped[dict] = mapped_column(JSON, nullable=False)
    create_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back; everything is written in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SqlPetStore:
    """SQLAlchemy-backed store.

    One session is opened per call, so a single instance can be shared by all
    request handling threads.
    """

    def __init__(self, database_url: str) -> None:
        connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
        self._engine = create_engine(database_url, future=True, pool_pre_ping=True, connect_args=connect_args)
        self._session_factory: sessionmaker[Session] = sessionmaker(
            bind=self._engine, autoflush=False, autocommit=False, expire_on_commit=False
        )
        Base.metadata.create_all(self._engine)

    def insert(self, pet_id: str, pet: Pet) -> None:
        """Persist ``pet`` under ``pet_id``."""

        record = PetRecord(
            id=pet_id,
            name=pet.name,
            photo=pet.photo,
            breed_details_json=pet.breed_details.model_dump(mode="json"),
            create_time=_as_utc(pet.create_time),
        )
        with self._session_factory() as session:
            session.add(record)
            try:
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                raise PetStoreError(f"unable to store pet {pet_id}: {exc}") from exc

    def select(self, pet_id: str) -> Optional[Pet]:
        """Retrieve a pet by identifier."""

        with self._session_factory() as session:
            record = session.get(PetRecord, pet_id)
            if record is None:
                return None
            return Pet(
                id=record.id,
                name=record.name,
                photo=record.photo,
                breed_details=Breed.model_validate(record.breed_details_json),
                create_time=_as_utc(record.create_time),
            )

    def dispose(self) -> None:
        """Release pooled connections."""

        self._engine.dispose()
