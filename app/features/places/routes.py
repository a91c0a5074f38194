from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile

from app.core.errors import ValidationError
from app.core.types import PlaceId, UserId
from app.features.images import image_utils
from app.features.places.place_service import PlaceService
from app.features.places.types import DeletePlaceResponse, PlaceResponse, PlacesResponse, UpdatePlaceRequest
from app.features.stores import get_place_service
from app.features.users.dependencies import get_caller_user
from app.features.users.entities import InternalUser

router = APIRouter(tags=["places"])


def _require_text(value: str, field: str, min_length: int = 1) -> str:
    value = value.strip()
    if len(value) < min_length:
        raise ValidationError(f"Invalid {field}, please check your data.")
    return value


@router.get("/user/{user_id}", response_model=PlacesResponse)
async def get_places_by_user_id(user_id: UserId, place_service: PlaceService = Depends(get_place_service)):
    """Get the places created by the given user."""
    places = await place_service.get_places_by_owner(user_id)
    return PlacesResponse(places=places)


@router.get("/{place_id}", response_model=PlaceResponse)
async def get_place(place_id: PlaceId, place_service: PlaceService = Depends(get_place_service)):
    """Get the given place."""
    place = await place_service.get_place_by_id(place_id)
    return PlaceResponse(place=place)


@router.post("", response_model=PlaceResponse, status_code=201)
async def create_place(
    title: str = Form(...),
    description: str = Form(...),
    address: str = Form(...),
    image: UploadFile = File(...),
    place_service: PlaceService = Depends(get_place_service),
    user: InternalUser = Depends(get_caller_user),
):
    """Create a new place at the given address, owned by the caller."""
    title = _require_text(title, "title")
    description = _require_text(description, "description", min_length=5)
    address = _require_text(address, "address")
    data = await image_utils.read_valid_image(image)
    image_reference = await place_service.image_store.store(data, image.content_type or "")
    try:
        place = await place_service.create_place(
            title=title,
            description=description,
            address=address,
            image=image_reference,
            caller_id=user.id,
        )
    except BaseException:
        # Background tasks don't run for error responses, so clean up before returning
        await place_service.delete_image(image_reference)
        raise
    return PlaceResponse(place=place)


@router.patch("/{place_id}", response_model=PlaceResponse)
async def update_place(
    place_id: PlaceId,
    request: UpdatePlaceRequest,
    place_service: PlaceService = Depends(get_place_service),
    user: InternalUser = Depends(get_caller_user),
):
    """Update the title and description of the given place."""
    place = await place_service.update_place(place_id, request.title, request.description, caller_id=user.id)
    return PlaceResponse(place=place)


@router.delete("/{place_id}", response_model=DeletePlaceResponse)
async def delete_place(
    place_id: PlaceId,
    background_tasks: BackgroundTasks,
    place_service: PlaceService = Depends(get_place_service),
    user: InternalUser = Depends(get_caller_user),
):
    """Delete the given place. The image is deleted after the response is sent."""
    await place_service.delete_place(place_id, caller_id=user.id, background_tasks=background_tasks)
    return DeletePlaceResponse(message="Deleted place.")
