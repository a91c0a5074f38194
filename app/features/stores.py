from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import config
from app.core.database.engine import get_db
from app.core.firebase import get_firebase_admin
from app.features.geocoding.geocoding_client import GeocodingClient, GoogleGeocodingClient
from app.features.images.image_store import FirebaseImageStore, ImageStore, LocalImageStore
from app.features.places.place_service import PlaceService
from app.features.places.place_store import PlaceStore
from app.features.users.user_store import UserStore


def get_place_store(db: AsyncSession = Depends(get_db)):
    return PlaceStore(db=db)


def get_user_store(db: AsyncSession = Depends(get_db)):
    return UserStore(db=db)


def get_geocoding_client() -> GeocodingClient:
    return GoogleGeocodingClient()


def get_image_store() -> ImageStore:
    if config.IMAGE_STORE_BACKEND == "firebase":
        return FirebaseImageStore(get_firebase_admin())
    return LocalImageStore()


def get_place_service(
    place_store: PlaceStore = Depends(get_place_store),
    user_store: UserStore = Depends(get_user_store),
    geocoding_client: GeocodingClient = Depends(get_geocoding_client),
    image_store: ImageStore = Depends(get_image_store),
) -> PlaceService:
    return PlaceService(
        place_store=place_store,
        user_store=user_store,
        geocoding_client=geocoding_client,
        image_store=image_store,
    )
