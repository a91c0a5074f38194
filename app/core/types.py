from uuid import UUID

from pydantic import BaseModel


def to_camel_case(snake_case: str) -> str:
    if not snake_case:
        return snake_case
    parts = snake_case.split("_")
    return parts[0] + "".join(part.title() for part in parts[1:])


class InternalBase(BaseModel):
    model_config = {
        "from_attributes": True,
        "populate_by_name": True,
    }


class Base(BaseModel):
    model_config = {
        "from_attributes": True,
        "populate_by_name": True,
        "alias_generator": to_camel_case,
        "validate_default": True,
    }


class SimpleResponse(Base):
    success: bool


UserId = UUID
PlaceId = UUID
