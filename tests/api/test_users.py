"""Tests for user CRUD endpoints."""
from unittest.mock import AsyncMock, patch

from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.base import MAX_ID
from models.bookmark import Bookmark
from models.user import User


async def test_create_user(client: AsyncClient, db_session: AsyncSession) -> None:
    """Test creating a user."""
    response = await client.post(
        "/api/users",
        json={"username": "ada", "email": "ada@example.com"},
    )
    assert response.status_code == 201

    data = response.json()
    assert data["username"] == "ada"
    assert data["email"] == "ada@example.com"
    assert "id" in data
    assert "created_at" in data

    result = await db_session.execute(select(User).where(User.username == "ada"))
    assert result.scalar_one().email == "ada@example.com"


async def test_create_user_strips_username(client: AsyncClient) -> None:
    """Surrounding whitespace is removed from usernames."""
    response = await client.post("/api/users", json={"username": "  grace  "})
    assert response.status_code == 201
    assert response.json()["username"] == "grace"


async def test_create_user_blank_username(client: AsyncClient) -> None:
    """Blank usernames are rejected."""
    response = await client.post("/api/users", json={"username": "   "})
    assert response.status_code == 422


async def test_create_user_form_encoded(client: AsyncClient) -> None:
    """Users can be created from a form-encoded body."""
    response = await client.post(
        "/api/users/",
        data={"username": "linus", "email": "linus@example.com"},
    )
    assert response.status_code == 201
    assert response.json()["username"] == "linus"


async def test_create_user_duplicate_username(client: AsyncClient) -> None:
    """A taken username is a 409 rendered as plain text."""
    await client.post("/api/users", json={"username": "ada"})

    response = await client.post("/api/users", json={"username": "ada"})
    assert response.status_code == 409
    assert response.text == "Username 'ada' is already taken"


async def test_list_users(client: AsyncClient) -> None:
    """Users are listed in ID order with the pagination envelope."""
    for name in ["first", "second", "third"]:
        await client.post("/api/users", json={"username": name})

    response = await client.get("/api/users", params={"limit": 2})
    assert response.status_code == 200

    data = response.json()
    assert [u["username"] for u in data["items"]] == ["first", "second"]
    assert data["total"] == 3
    assert data["has_more"] is True


async def test_get_user(client: AsyncClient) -> None:
    """Test getting a single user."""
    create_response = await client.post("/api/users", json={"username": "ada"})
    user_id = create_response.json()["id"]

    response = await client.get(f"/api/users/{user_id}")
    assert response.status_code == 200
    assert response.json()["username"] == "ada"


async def test_get_user_not_found(client: AsyncClient) -> None:
    """Test getting a non-existent user."""
    response = await client.get("/api/users/99999")
    assert response.status_code == 404
    assert response.text == "User 99999 not found"


async def test_get_user_invalid_id(client: AsyncClient) -> None:
    """Non-integer IDs fail path validation."""
    response = await client.get("/api/users/not-a-number")
    assert response.status_code == 422


async def test_update_user(client: AsyncClient) -> None:
    """PATCH changes only the fields that are sent."""
    create_response = await client.post(
        "/api/users", json={"username": "ada", "email": "ada@example.com"},
    )
    user_id = create_response.json()["id"]

    response = await client.patch(f"/api/users/{user_id}", json={"username": "lovelace"})
    assert response.status_code == 200
    assert response.json()["username"] == "lovelace"
    assert response.json()["email"] == "ada@example.com"


async def test_update_user_same_username(client: AsyncClient) -> None:
    """Re-sending the user's own username is not a conflict."""
    create_response = await client.post("/api/users", json={"username": "ada"})
    user_id = create_response.json()["id"]

    response = await client.put(f"/api/users/{user_id}", json={"username": "ada"})
    assert response.status_code == 200


async def test_update_user_username_conflict(client: AsyncClient) -> None:
    """Renaming onto another user's username is a 409."""
    await client.post("/api/users", json={"username": "ada"})
    create_response = await client.post("/api/users", json={"username": "grace"})
    user_id = create_response.json()["id"]

    response = await client.patch(f"/api/users/{user_id}", json={"username": "ada"})
    assert response.status_code == 409


async def test_update_user_rejects_null_username(client: AsyncClient) -> None:
    """Usernames can't be cleared."""
    create_response = await client.post("/api/users", json={"username": "ada"})
    user_id = create_response.json()["id"]

    response = await client.patch(f"/api/users/{user_id}", json={"username": None})
    assert response.status_code == 422


async def test_update_user_not_found(client: AsyncClient) -> None:
    """Test updating a non-existent user."""
    response = await client.patch("/api/users/99999", json={"email": "x@example.com"})
    assert response.status_code == 404


async def test_delete_user(client: AsyncClient) -> None:
    """Test deleting a user."""
    create_response = await client.post("/api/users", json={"username": "ada"})
    user_id = create_response.json()["id"]

    response = await client.delete(f"/api/users/{user_id}")
    assert response.status_code == 204

    response = await client.get(f"/api/users/{user_id}")
    assert response.status_code == 404


async def test_delete_user_keeps_bookmarks(
    client: AsyncClient, db_session: AsyncSession,
) -> None:
    """Deleting a user leaves their bookmarks in place without an owner."""
    create_response = await client.post("/api/users", json={"username": "ada"})
    user_id = create_response.json()["id"]
    bookmark_response = await client.post(
        "/api/bookmarks", json={"url": "https://kept.example.com", "user_id": user_id},
    )
    bookmark_id = bookmark_response.json()["id"]

    response = await client.delete(f"/api/users/{user_id}")
    assert response.status_code == 204

    response = await client.get(f"/api/bookmarks/{bookmark_id}")
    assert response.status_code == 200
    assert response.json()["user_id"] is None

    result = await db_session.execute(select(Bookmark).where(Bookmark.id == bookmark_id))
    assert result.scalar_one().user_id is None


async def test_delete_user_not_found(client: AsyncClient) -> None:
    """Test deleting a non-existent user."""
    response = await client.delete("/api/users/99999")
    assert response.status_code == 404


async def test_list_user_bookmarks(client: AsyncClient) -> None:
    """A user's bookmarks are listed under the user."""
    create_response = await client.post("/api/users", json={"username": "ada"})
    user_id = create_response.json()["id"]
    await client.post("/api/bookmarks", json={"url": "https://a.example.com", "user_id": user_id})
    await client.post("/api/bookmarks", json={"url": "https://b.example.com"})

    response = await client.get(f"/api/users/{user_id}/bookmarks")
    assert response.status_code == 200

    data = response.json()
    assert data["total"] == 1
    assert data["items"][0]["url"] == "https://a.example.com/"


async def test_list_user_bookmarks_unknown_user(client: AsyncClient) -> None:
    """Listing bookmarks for a missing user is a 404."""
    response = await client.get("/api/users/99999/bookmarks")
    assert response.status_code == 404


async def test_user_id_out_of_range(client: AsyncClient) -> None:
    """Oversized user ids are a validation error on every user route."""
    too_big = 10**20
    assert (await client.get(f"/api/users/{too_big}")).status_code == 422
    assert (await client.get(f"/api/users/{too_big}/bookmarks")).status_code == 422
    assert (await client.patch(f"/api/users/{too_big}", json={})).status_code == 422
    assert (await client.delete(f"/api/users/{too_big}")).status_code == 422
    assert (await client.get(f"/api/users/{MAX_ID}")).status_code == 404


async def test_create_user_duplicate_caught_by_unique_index(client: AsyncClient) -> None:
    """A duplicate that slips past the availability check still returns 409."""
    await client.post("/api/users", json={"username": "ada"})

    with patch("services.user_service._ensure_username_available", new=AsyncMock()):
        response = await client.post("/api/users", json={"username": "ada"})

    assert response.status_code == 409
    assert response.text == "Username 'ada' is already taken"

    list_response = await client.get("/api/users")
    assert list_response.json()["total"] == 1


async def test_update_user_duplicate_caught_by_unique_index(client: AsyncClient) -> None:
    """A rename racing another user's claim on the name returns 409."""
    await client.post("/api/users", json={"username": "ada"})
    create_response = await client.post("/api/users", json={"username": "grace"})
    user_id = create_response.json()["id"]

    with patch("services.user_service._ensure_username_available", new=AsyncMock()):
        response = await client.patch(f"/api/users/{user_id}", json={"username": "ada"})

    assert response.status_code == 409

    unchanged = await client.get(f"/api/users/{user_id}")
    assert unchanged.json()["username"] == "grace"
