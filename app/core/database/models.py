from typing import Any

from sqlalchemy import (
    DateTime,
    Float,
    ForeignKey,
    Index,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import declarative_base, mapped_column, relationship, Mapped

from app.core.database.defaults import gen_ulid


Base: Any = declarative_base()


# region Users
class UserRow(Base):
    __tablename__ = "user"

    id = mapped_column(Uuid, primary_key=True, default=gen_ulid)
    uid = mapped_column(Text, unique=True, nullable=False)  # Firebase id, maps to Firebase users
    name = mapped_column(Text, nullable=False)
    email = mapped_column(Text, unique=True, nullable=False)
    image = mapped_column(Text, nullable=True)
    created_at = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class UserPlaceRow(Base):
    """
    The places a user owns, one row per place id.

    This is the user's side of the place <-> creator relationship. It is only written together with the matching
    place row (same transaction), so it always agrees with PlaceRow.creator_id.
    """

    __tablename__ = "user_place"

    id = mapped_column(Uuid, primary_key=True, default=gen_ulid)
    user_id = mapped_column(Uuid, ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    place_id = mapped_column(Uuid, ForeignKey("place.id", ondelete="CASCADE"), nullable=False)
    created_at = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint(user_id, place_id, name="_user_place_user_place_uc"),
        Index("idx_user_place_place_id", place_id),
    )


# endregion Users

# region Places
class PlaceRow(Base):
    __tablename__ = "place"

    id = mapped_column(Uuid, primary_key=True, default=gen_ulid)
    title = mapped_column(Text, nullable=False)
    description = mapped_column(Text, nullable=False)
    address = mapped_column(Text, nullable=False)

    # Always the geocoded address, never taken from the request
    latitude = mapped_column(Float, nullable=False)
    longitude = mapped_column(Float, nullable=False)

    # Reference returned by the image store (file path or storage blob name)
    image = mapped_column(Text, nullable=False)

    creator_id = mapped_column(Uuid, ForeignKey("user.id", ondelete="CASCADE"), nullable=False)

    created_at = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    creator: Mapped[UserRow] = relationship("UserRow", primaryjoin="PlaceRow.creator_id == UserRow.id")

    __table_args__ = (Index("idx_place_creator_id", creator_id),)


# endregion Places
