from unittest.mock import patch

import pytest
from fastapi import status
from sqlalchemy.exc import OperationalError

from studyhub.model.users import User


def test_user_profile(client, test_user):
    response = client.get(f"/users/{test_user.user_id}")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["username"] == "alice"
    assert data["study_points"] == 0
    assert "email" not in data


def test_private_profile(client, db_session):
    user = User(username="bob", name="Bob", is_public=False)
    db_session.add(user)
    db_session.commit()

    response = client.get(f"/users/{user.user_id}")

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json() == {"error": "Profile is private"}


def test_missing_user(client):
    assert client.get("/users/1234").status_code == status.HTTP_404_NOT_FOUND


def test_invalid_user_id(client):
    assert client.get("/users/me").status_code == status.HTTP_400_BAD_REQUEST


def test_root(client):
    assert client.get("/").json()["docs"] == "/docs"


def test_store_error_renders_as_service_failure(client, test_user):
    with patch(
        "studyhub.router.api.users.get_user_details_logic",
        side_effect=OperationalError("SELECT users", {}, Exception("server closed the connection")),
    ):
        response = client.get(f"/users/{test_user.user_id}")

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["error"] == "Service failure"
    assert "server closed the connection" in response.json()["details"]


class TestCreateUser:
    def test_create(self, client):
        response = client.post("/users", json={"username": "carol", "name": "Carol", "email": "carol@example.com"})

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["username"] == "carol"
        assert data["email"] == "carol@example.com"
        assert data["study_points"] == 0
        assert data["is_public"] is True

    def test_missing_fields(self, client):
        response = client.post("/users", json={"username": "carol", "name": "Carol"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"error": "Username, name, and email are required"}

    @pytest.mark.parametrize("body", [
        {"username": "alice", "name": "Other Alice", "email": "other@example.com"},
        {"username": "alice2", "name": "Other Alice", "email": "alice@example.com"},
    ])
    def test_duplicate_username_or_email(self, client, test_user, db_session, body):
        response = client.post("/users", json=body)

        assert response.status_code == status.HTTP_409_CONFLICT
        assert db_session.query(User).count() == 1


class TestListUsers:
    def test_public_users_by_study_points(self, client, db_session):
        db_session.add_all([
            User(username="low", name="Low", study_points=5),
            User(username="high", name="High", study_points=40),
            User(username="hidden", name="Hidden", study_points=99, is_public=False),
        ])
        db_session.commit()

        response = client.get("/users")

        assert response.status_code == status.HTTP_200_OK
        assert [u["username"] for u in response.json()["users"]] == ["high", "low"]


class TestUpdateUser:
    def test_update_profile(self, client, test_user):
        response = client.put(f"/users/{test_user.user_id}", json={"bio": "Blue team", "is_public": False})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["bio"] == "Blue team"
        assert data["is_public"] is False
        assert data["name"] == "Alice Smith"
        assert client.get(f"/users/{test_user.user_id}").status_code == status.HTTP_403_FORBIDDEN

    def test_empty_name(self, client, test_user):
        response = client.put(f"/users/{test_user.user_id}", json={"name": "  "})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_missing_user(self, client):
        assert client.put("/users/77", json={"bio": "x"}).status_code == status.HTTP_404_NOT_FOUND
