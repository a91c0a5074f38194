from fastapi import APIRouter, Depends

from app.core.database.transaction import storage_errors
from app.features.stores import get_user_store
from app.features.users.types import UsersResponse
from app.features.users.user_store import UserStore

router = APIRouter(tags=["users"])


@router.get("", response_model=UsersResponse)
async def get_users(user_store: UserStore = Depends(get_user_store)):
    """Get all users along with the ids of the places they created."""
    with storage_errors():
        users = await user_store.get_users()
    return UsersResponse(users=[user.to_public() for user in users])
