from typing import Optional

from fastapi import Depends, HTTPException

from app.core.database.transaction import storage_errors
from app.core.firebase import FirebaseUser, get_firebase_user
from app.features.stores import get_user_store
from app.features.users.entities import InternalUser
from app.features.users.user_store import UserStore


async def get_caller_user(
    firebase_user: FirebaseUser = Depends(get_firebase_user),
    user_store: UserStore = Depends(get_user_store),
) -> InternalUser:
    with storage_errors():
        user: Optional[InternalUser] = await user_store.get_user(uid=firebase_user.uid)
    if user is None:
        raise HTTPException(403)
    return user
