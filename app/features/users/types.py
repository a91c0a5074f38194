from app.core.types import Base
from app.features.users.entities import PublicUser


class UsersResponse(Base):
    users: list[PublicUser]
