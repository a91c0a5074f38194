from datetime import datetime
from typing import Optional

from pydantic import Field

from app.core.types import Base, InternalBase, PlaceId, UserId


class PublicUser(Base):
    id: UserId
    name: str
    image: Optional[str]
    places: list[PlaceId]


class InternalUser(InternalBase):
    id: UserId
    uid: str
    name: str
    email: str
    image: Optional[str]
    created_at: datetime
    # Ids of the places this user created, kept in sync with Place.creator_id by the place service
    places: list[PlaceId] = Field(default_factory=list)

    def to_public(self) -> PublicUser:
        return PublicUser(id=self.id, name=self.name, image=self.image, places=self.places)
