from collections import defaultdict
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.models import UserPlaceRow, UserRow
from app.core.database.transaction import TransactionScope
from app.core.types import PlaceId, UserId
from app.features.users.entities import InternalUser


class UserStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, user_id: Optional[UserId] = None, uid: Optional[str] = None) -> Optional[InternalUser]:
        query = sa.select(UserRow).execution_options(populate_existing=True)
        if user_id:
            query = query.where(UserRow.id == user_id)
        if uid:
            query = query.where(UserRow.uid == uid)
        result = await self.db.execute(query)
        user: Optional[UserRow] = result.scalars().first()
        if user is None:
            return None
        internal_user = InternalUser.model_validate(user)
        internal_user.places = await self.get_place_ids(user.id)
        return internal_user

    async def get_users(self) -> list[InternalUser]:
        query = sa.select(UserRow).execution_options(populate_existing=True).order_by(UserRow.id)
        users = (await self.db.execute(query)).scalars().all()
        if not users:
            return []
        links = await self.db.execute(
            sa.select(UserPlaceRow.user_id, UserPlaceRow.place_id)
            .where(UserPlaceRow.user_id.in_([user.id for user in users]))
            .order_by(UserPlaceRow.id)
        )
        places_by_user: dict[UserId, list[PlaceId]] = defaultdict(list)
        for user_id, place_id in links.all():
            places_by_user[user_id].append(place_id)
        internal_users = []
        for user in users:
            internal_user = InternalUser.model_validate(user)
            internal_user.places = places_by_user[user.id]
            internal_users.append(internal_user)
        return internal_users

    async def get_place_ids(self, user_id: UserId) -> list[PlaceId]:
        """Return the ids in the user's places collection, oldest first."""
        query = sa.select(UserPlaceRow.place_id).where(UserPlaceRow.user_id == user_id).order_by(UserPlaceRow.id)
        result = await self.db.execute(query)
        place_ids: list[PlaceId] = result.scalars().all()  # type: ignore
        return place_ids

    # Operations
    async def add_place(self, user_id: UserId, place_id: PlaceId, scope: TransactionScope) -> None:
        """Append the place to the user's places collection as part of the given scope."""
        scope.db.add(UserPlaceRow(user_id=user_id, place_id=place_id))
        await scope.db.flush()

    async def remove_place(self, user_id: UserId, place_id: PlaceId, scope: TransactionScope) -> bool:
        """Remove the place from the user's places collection, returning whether it was there."""
        query = sa.delete(UserPlaceRow).where(UserPlaceRow.user_id == user_id, UserPlaceRow.place_id == place_id)
        result = await scope.db.execute(query)
        return result.rowcount > 0  # type: ignore
