from functools import cached_property

from pydantic import AliasChoices, Field, computed_field, field_validator

from app.core.types import Base, PlaceId, UserId


class Location(Base):
    latitude: float
    longitude: float

    @field_validator("latitude")
    @classmethod
    def validate_latitude(cls, latitude):
        if latitude < -90 or latitude > 90:
            raise ValueError("Invalid latitude")
        return latitude

    @field_validator("longitude")
    @classmethod
    def validate_longitude(cls, longitude):
        if longitude < -180 or longitude > 180:
            raise ValueError("Invalid longitude")
        return longitude


class Place(Base):
    id: PlaceId
    title: str
    description: str
    address: str
    latitude: float
    longitude: float
    image: str
    creator_id: UserId = Field(validation_alias=AliasChoices("creator_id", "creator"), serialization_alias="creator")

    @computed_field
    @cached_property
    def location(self) -> Location:
        return Location(latitude=self.latitude, longitude=self.longitude)
