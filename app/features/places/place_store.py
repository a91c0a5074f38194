from typing import Optional

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.defaults import gen_ulid
from app.core.database.models import PlaceRow, UserRow
from app.core.database.transaction import TransactionScope
from app.core.types import PlaceId, UserId
from app.features.places.entities import Location, Place
from app.features.users.entities import InternalUser


class PlaceStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_place(self, place_id: PlaceId) -> Optional[Place]:
        query = sa.select(PlaceRow).where(PlaceRow.id == place_id).execution_options(populate_existing=True)
        result = await self.db.execute(query)
        place_row = result.scalars().first()
        return Place.model_validate(place_row) if place_row else None

    async def get_places_by_owner(self, user_id: UserId) -> list[Place]:
        query = (
            sa.select(PlaceRow)
            .where(PlaceRow.creator_id == user_id)
            .order_by(PlaceRow.id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return [Place.model_validate(place_row) for place_row in result.scalars().all()]

    async def get_place_with_owner(self, place_id: PlaceId) -> Optional[tuple[Place, InternalUser]]:
        """
        Load the place and the user it belongs to in one query so the owner can't change in between.

        The owner's places are not loaded.
        """
        query = (
            sa.select(PlaceRow, UserRow)
            .join(UserRow, UserRow.id == PlaceRow.creator_id)
            .where(PlaceRow.id == place_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        row = result.first()
        if row is None:
            return None
        place_row, user_row = row
        return Place.model_validate(place_row), InternalUser.model_validate(user_row)

    # Operations
    async def create_place(
        self,
        title: str,
        description: str,
        address: str,
        location: Location,
        image: str,
        creator_id: UserId,
        scope: TransactionScope,
    ) -> Place:
        """Insert a place as part of the given scope. Nothing is visible until the scope commits."""
        place = PlaceRow(
            id=gen_ulid(),
            title=title,
            description=description,
            address=address,
            latitude=location.latitude,
            longitude=location.longitude,
            image=image,
            creator_id=creator_id,
        )
        scope.db.add(place)
        await scope.db.flush()
        return Place.model_validate(place)

    async def update_place(self, place: Place, scope: TransactionScope) -> Optional[Place]:
        """Persist the mutable fields (title and description) of the given place."""
        query = (
            sa.update(PlaceRow)
            .where(PlaceRow.id == place.id)
            .values(title=place.title, description=place.description)
        )
        result = await scope.db.execute(query)
        if result.rowcount == 0:  # type: ignore
            return None
        return place

    async def delete_place(self, place_id: PlaceId, scope: TransactionScope) -> bool:
        """Delete the place as part of the given scope, returning whether it existed."""
        result = await scope.db.execute(sa.delete(PlaceRow).where(PlaceRow.id == place_id))
        return result.rowcount > 0  # type: ignore
