from pydantic import Field, field_validator

from app.core.types import Base
from app.features.places.entities import Place


class UpdatePlaceRequest(Base):
    title: str = Field(min_length=1)
    description: str = Field(min_length=5)

    @field_validator("title", "description")
    @classmethod
    def validate_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Must not be empty")
        return value


class PlaceResponse(Base):
    place: Place


class PlacesResponse(Base):
    places: list[Place]


class DeletePlaceResponse(Base):
    message: str
