"""Pydantic models for the pets HTTP API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Breed(BaseModel):
    """A breed catalog entry.

    Only ``id`` is interpreted; every other attribute in the source payload
    is kept as-is and rendered back unchanged.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    id: str = Field(..., min_length=1, description="Identifier unique within the catalog")
    name: Optional[str] = Field(None, description="Display name of the breed")


class CreatePetRequest(BaseModel):
    """Request model for creating a pet."""

    name: str = Field(..., description="Name of the pet")
    photo: str = Field(..., description="Reference or URL of the pet's photo")
    breed_id: str = Field(..., description="Identifier of a breed in the catalog")


class Pet(BaseModel):
    """A stored pet with a snapshot of its breed taken at creation time."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    photo: str
    breed_details: Breed
    create_time: datetime


class ErrorResponse(BaseModel):
    """Body rendered for every failed request."""

    detail: str
    errors: Optional[List[Any]] = None
