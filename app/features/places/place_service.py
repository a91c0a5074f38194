from typing import Callable

from fastapi import BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import config
from app.core.database.engine import SessionLocal
from app.core.database.transaction import storage_errors, transaction_scope
from app.core.errors import AuthorizationError, NotFoundError, SideEffectWarning
from app.core.types import PlaceId, UserId
from app.features.geocoding.geocoding_client import GeocodingClient
from app.features.images.image_store import ImageStore
from app.features.places.entities import Place
from app.features.places.place_store import PlaceStore
from app.features.users.user_store import UserStore
from app.utils import get_logger

log = get_logger(__name__)


class PlaceService:
    """
    Creates, reads, updates and deletes places.

    A place's creator and its owner's places collection are only ever written together inside one transaction scope,
    so a place exists if and only if its id is in its creator's collection. Image cleanup happens after the commit
    and is best effort: an orphaned image is acceptable, a half deleted place is not.
    """

    def __init__(
        self,
        place_store: PlaceStore,
        user_store: UserStore,
        geocoding_client: GeocodingClient,
        image_store: ImageStore,
        session_factory: Callable[[], AsyncSession] = SessionLocal,
        empty_places_is_error: bool = config.EMPTY_OWNER_PLACES_IS_ERROR,
    ):
        self.place_store = place_store
        self.user_store = user_store
        self.geocoding_client = geocoding_client
        self.image_store = image_store
        self._session_factory = session_factory
        self._empty_places_is_error = empty_places_is_error

    async def get_place_by_id(self, place_id: PlaceId) -> Place:
        with storage_errors():
            place = await self.place_store.get_place(place_id)
        if place is None:
            raise NotFoundError("Could not find a place for the provided id.")
        return place

    async def get_places_by_owner(self, user_id: UserId) -> list[Place]:
        with storage_errors():
            places = await self.place_store.get_places_by_owner(user_id)
        if not places and self._empty_places_is_error:
            raise NotFoundError("Could not find places for the provided user id.")
        return places

    async def create_place(
        self,
        title: str,
        description: str,
        address: str,
        image: str,
        caller_id: UserId,
    ) -> Place:
        # Nothing has been written yet if either of these fail
        location = await self.geocoding_client.resolve(address)
        with storage_errors():
            user = await self.user_store.get_user(user_id=caller_id)
        if user is None:
            raise NotFoundError("Could not find user for the provided id.")

        async with transaction_scope(self._session_factory) as scope:
            place = await self.place_store.create_place(
                title=title,
                description=description,
                address=address,
                location=location,
                image=image,
                creator_id=user.id,
                scope=scope,
            )
            await self.user_store.add_place(user.id, place.id, scope)
        log.info("User %s created place %s", user.id, place.id)
        return place

    async def update_place(self, place_id: PlaceId, title: str, description: str, caller_id: UserId) -> Place:
        with storage_errors():
            place = await self.place_store.get_place(place_id)
        if place is None:
            raise NotFoundError("Could not find a place for the provided id.")
        if place.creator_id != caller_id:
            raise AuthorizationError("You are not allowed to edit this place.")

        updated_place = place.model_copy(update=dict(title=title, description=description))
        async with transaction_scope(self._session_factory) as scope:
            if await self.place_store.update_place(updated_place, scope) is None:
                raise NotFoundError("Could not find a place for the provided id.")
        return updated_place

    async def delete_place(self, place_id: PlaceId, caller_id: UserId, background_tasks: BackgroundTasks) -> Place:
        """Delete the place and unlink it from its owner, then schedule the image deletion for after the response."""
        with storage_errors():
            place_with_owner = await self.place_store.get_place_with_owner(place_id)
        if place_with_owner is None:
            raise NotFoundError("Could not find a place for the provided id.")
        place, owner = place_with_owner
        if owner.id != caller_id:
            raise AuthorizationError("You are not allowed to delete this place.")

        async with transaction_scope(self._session_factory) as scope:
            if not await self.user_store.remove_place(owner.id, place.id, scope):
                log.warning("Place %s was missing from the places of user %s", place.id, owner.id)
            if not await self.place_store.delete_place(place.id, scope):
                # Deleted by a concurrent request, the scope is rolled back so the unlink above is undone
                raise NotFoundError("Could not find a place for the provided id.")
        log.info("User %s deleted place %s", owner.id, place.id)

        background_tasks.add_task(self.delete_image, place.image)
        return place

    async def delete_image(self, reference: str) -> None:
        """Best effort image cleanup. Never raises, a failure only leaves an orphaned image behind."""
        try:
            deleted = await self.image_store.delete(reference)
        except Exception:  # noqa
            log.exception("Unexpected exception deleting image %s", reference)
            deleted = False
        if not deleted:
            log.warning("%s", SideEffectWarning(f"Could not delete image {reference}, it is now orphaned"))
