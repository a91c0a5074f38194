import uuid
from contextlib import contextmanager

import pytest
import pytest_asyncio
import sqlalchemy as sa
from fastapi import Depends
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.core.database.models import PlaceRow, UserPlaceRow, UserRow
from app.core.firebase import get_firebase_user, FirebaseUser
from app.features.stores import get_geocoding_client, get_image_store, get_user_store
from app.features.users.user_store import UserStore
from app.main import app as main_app
from tests.mock_firebase import MockFirebaseAdmin
from tests.mock_services import MockGeocodingClient, MockImageStore

pytestmark = pytest.mark.asyncio
USER_A_ID = uuid.uuid4()
USER_B_ID = uuid.uuid4()
PLACE_ID = uuid.uuid4()
PLACE_IMAGE = "uploads/images/empire.png"
PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


class LockedUserStore(UserStore):
    """Looking up the caller works, loading the creator inside the place service fails."""

    async def get_user(self, user_id=None, uid=None):
        if user_id is not None:
            raise OperationalError("SELECT", {}, Exception("database is locked"))
        return await super().get_user(uid=uid)


def get_locked_user_store(db: AsyncSession = Depends(get_db)):
    return LockedUserStore(db=db)


@pytest_asyncio.fixture(autouse=True, scope="function")
async def setup_fixture(session):
    user_a = UserRow(id=USER_A_ID, uid="a", name="a", email="a@example.com")
    user_b = UserRow(id=USER_B_ID, uid="b", name="b", email="b@example.com")
    session.add(user_a)
    session.add(user_b)
    await session.commit()

    place = PlaceRow(
        id=PLACE_ID,
        title="Empire State Building",
        description="One of the most famous sky scrapers in the world!",
        address="20 W 34th St, New York, NY 10001",
        latitude=40.7484474,
        longitude=-73.9871516,
        image=PLACE_IMAGE,
        creator_id=USER_A_ID,
    )
    session.add(place)
    session.add(UserPlaceRow(user_id=USER_A_ID, place_id=PLACE_ID))
    await session.commit()


@pytest.fixture(scope="function")
def geocoding_client():
    return MockGeocodingClient()


@pytest.fixture(scope="function")
def image_store():
    image_store = MockImageStore()
    image_store.images[PLACE_IMAGE] = b"image"
    return image_store


@pytest.fixture(scope="function")
def request_as(geocoding_client, image_store):
    @contextmanager
    def _request_as(uid: str):
        main_app.dependency_overrides[get_firebase_user] = lambda: FirebaseUser(MockFirebaseAdmin(), uid=uid)
        main_app.dependency_overrides[get_geocoding_client] = lambda: geocoding_client
        main_app.dependency_overrides[get_image_store] = lambda: image_store
        yield
        main_app.dependency_overrides = {}

    return _request_as


def create_place_form(**kwargs):
    data = dict(title="Library", description="A quiet place to read", address="1 Main St")
    data.update(kwargs)
    return dict(data=data, files={"image": ("library.png", PNG, "image/png")})


async def test_index(client):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json() == {"success": True}


async def test_get_place(client, request_as):
    with request_as(uid="b"):
        response = await client.get(f"/places/{PLACE_ID}")
    assert response.status_code == 200
    place = response.json()["place"]
    assert place["id"] == str(PLACE_ID)
    assert place["creator"] == str(USER_A_ID)
    assert place["location"] == {"latitude": 40.7484474, "longitude": -73.9871516}


async def test_get_place_not_found(client, request_as):
    with request_as(uid="b"):
        response = await client.get(f"/places/{uuid.uuid4()}")
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


async def test_get_places_by_user(client, request_as):
    with request_as(uid="b"):
        response = await client.get(f"/places/user/{USER_A_ID}")
        assert response.status_code == 200
        assert [place["id"] for place in response.json()["places"]] == [str(PLACE_ID)]

        response = await client.get(f"/places/user/{USER_B_ID}")
        assert response.status_code == 404


async def test_create_place(client, request_as, image_store, session):
    with request_as(uid="b"):
        response = await client.post("/places", **create_place_form())
    assert response.status_code == 201
    place = response.json()["place"]
    assert place["title"] == "Library"
    assert place["creator"] == str(USER_B_ID)
    assert place["location"] == {"latitude": 40.0, "longitude": -73.0}
    assert image_store.images[place["image"]] == PNG
    assert await UserStore(session).get_place_ids(USER_B_ID) == [uuid.UUID(place["id"])]


async def test_create_place_ignores_client_location(client, request_as):
    with request_as(uid="b"):
        response = await client.post("/places", **create_place_form(latitude="1", longitude="1"))
    assert response.status_code == 201
    assert response.json()["place"]["location"] == {"latitude": 40.0, "longitude": -73.0}


async def test_create_place_invalid_input(client, request_as, image_store):
    with request_as(uid="b"):
        response = await client.post("/places", **create_place_form(description="tiny"))
    assert response.status_code == 422
    assert response.json()["code"] == "invalid_input"
    assert list(image_store.images) == [PLACE_IMAGE]


async def test_create_place_invalid_image(client, request_as, image_store):
    with request_as(uid="b"):
        form = create_place_form()
        form["files"] = {"image": ("notes.txt", b"hello", "text/plain")}
        response = await client.post("/places", **form)
    assert response.status_code == 422
    assert list(image_store.images) == [PLACE_IMAGE]


async def test_create_place_geocoding_failure(client, request_as, geocoding_client, image_store, session):
    geocoding_client.fail = True
    with request_as(uid="b"):
        response = await client.post("/places", **create_place_form())
    assert response.status_code == 422
    assert response.json()["code"] == "geocoding_failed"
    # The uploaded image is removed again and nothing was written
    assert list(image_store.images) == [PLACE_IMAGE]
    assert len(image_store.deleted) == 1
    count = await session.execute(sa.select(sa.func.count()).select_from(PlaceRow))
    assert count.scalar() == 1


async def test_create_place_storage_failure_removes_image(client, request_as, image_store, session):
    with request_as(uid="b"):
        main_app.dependency_overrides[get_user_store] = get_locked_user_store
        response = await client.post("/places", **create_place_form())
    assert response.status_code == 500
    assert response.json()["code"] == "storage_failed"
    assert list(image_store.images) == [PLACE_IMAGE]
    assert len(image_store.deleted) == 1
    count = await session.execute(sa.select(sa.func.count()).select_from(PlaceRow))
    assert count.scalar() == 1


async def test_create_place_unexpected_failure_removes_image(client, request_as, geocoding_client, image_store):
    geocoding_client.error = RuntimeError("unexpected")
    with request_as(uid="b"):
        with pytest.raises(RuntimeError):
            await client.post("/places", **create_place_form())
    assert list(image_store.images) == [PLACE_IMAGE]
    assert len(image_store.deleted) == 1


async def test_create_place_unknown_user(client, request_as):
    with request_as(uid="unknown"):
        response = await client.post("/places", **create_place_form())
    assert response.status_code == 403


async def test_update_place(client, request_as):
    with request_as(uid="a"):
        response = await client.patch(
            f"/places/{PLACE_ID}", json=dict(title="Empire State", description="Still very tall")
        )
    assert response.status_code == 200
    place = response.json()["place"]
    assert place["title"] == "Empire State"
    assert place["description"] == "Still very tall"
    assert place["address"] == "20 W 34th St, New York, NY 10001"


async def test_update_place_not_owner(client, request_as):
    with request_as(uid="b"):
        response = await client.patch(f"/places/{PLACE_ID}", json=dict(title="Mine", description="Mine now, thanks"))
        assert response.status_code == 403
        assert response.json()["code"] == "not_authorized"
        response = await client.get(f"/places/{PLACE_ID}")
    assert response.json()["place"]["title"] == "Empire State Building"


async def test_update_place_invalid_input(client, request_as):
    with request_as(uid="a"):
        response = await client.patch(f"/places/{PLACE_ID}", json=dict(title=" ", description="Still very tall"))
    assert response.status_code == 422
    assert "title" in response.json()["errors"]


async def test_delete_place_not_owner(client, request_as, image_store, session):
    with request_as(uid="b"):
        response = await client.delete(f"/places/{PLACE_ID}")
    assert response.status_code == 403
    assert image_store.deleted == []
    assert await UserStore(session).get_place_ids(USER_A_ID) == [PLACE_ID]


async def test_delete_place(client, request_as, image_store, session):
    with request_as(uid="a"):
        response = await client.delete(f"/places/{PLACE_ID}")
        assert response.status_code == 200
        assert response.json() == {"message": "Deleted place."}
        assert (await client.get(f"/places/{PLACE_ID}")).status_code == 404
    assert await UserStore(session).get_place_ids(USER_A_ID) == []
    assert image_store.deleted == [PLACE_IMAGE]
    assert PLACE_IMAGE not in image_store.images


async def test_get_users(client, request_as):
    with request_as(uid="b"):
        response = await client.get("/users")
    assert response.status_code == 200
    users = {user["id"]: user for user in response.json()["users"]}
    assert users[str(USER_A_ID)]["places"] == [str(PLACE_ID)]
    assert users[str(USER_B_ID)]["places"] == []
    assert "email" not in users[str(USER_A_ID)]
