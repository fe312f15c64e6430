from fastapi import status
from fastapi.testclient import TestClient

from main import app
from models.users import User
from security.helpers import verify_password
from services.events import UserCreatedEvent, get_event_publisher
from services.users import get_user_service

from conftest import PASSWORD


def registration(**overrides) -> dict:
    payload = {
        "username": "dave",
        "email": "dave@example.com",
        "password": "N3w!Password",
        "passwordConfirmation": "N3w!Password",
        "firstName": "Dave",
    }
    payload.update(overrides)
    return payload


class TestRegistration:
    def test_creates_user_with_default_role(self, client, user_store):
        response = client.post("/users", json=registration())

        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body["message"] == "User created successfully"
        assert body["username"] == "dave"
        assert body["email"] == "dave@example.com"
        assert len(body["userId"]) == 24

        stored = user_store.users["dave"]
        assert stored.roles == ["ROLE_USER"]
        assert stored.first_name == "Dave"
        assert verify_password("N3w!Password", stored.password_hash)

    def test_registered_user_can_log_in(self, client):
        client.post("/users", json=registration())

        response = client.post("/auth/mobile/login", json={"username": "dave", "password": "N3w!Password"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["username"] == "dave"

    def test_publishes_user_created_event(self, client):
        received = []
        get_event_publisher().subscribe(UserCreatedEvent, received.append)

        client.post("/users", json=registration())

        assert UserCreatedEvent(username="dave", email="dave@example.com") in received

    def test_duplicate_username(self, client):
        response = client.post("/users", json=registration(username="alice"))

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json() == {"detail": "A user with this username or email already exists"}

    def test_duplicate_email(self, client):
        response = client.post("/users", json=registration(email="bob@example.com"))

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_password_mismatch(self, client):
        response = client.post("/users", json=registration(passwordConfirmation="Other!Passw0rd"))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["errors"] == {"body": "Password and confirmation do not match"}

    def test_weak_password(self, client):
        response = client.post("/users", json=registration(password="password", passwordConfirmation="password"))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["errors"]["password"] == "Password must contain at least one uppercase letter"

    def test_invalid_email(self, client):
        response = client.post("/users", json=registration(email="not-an-email"))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "email" in response.json()["errors"]


class FailingUserService:
    async def register(self, payload):
        raise RuntimeError("connection string: mongodb://admin:hunter2@db")


def test_unexpected_error_is_hidden_from_client():
    app.dependency_overrides[get_user_service] = lambda: FailingUserService()
    try:
        client = TestClient(app, raise_server_exceptions=False)

        response = client.post("/users", json=registration())
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"detail": "An unexpected error occurred"}
    assert "hunter2" not in response.text


def test_seeded_password_is_usable(client):
    response = client.post("/auth/web/login", json={"username": "bob", "password": PASSWORD})

    assert response.status_code == status.HTTP_200_OK


def test_user_document_keeps_only_identity_fields():
    assert "email_verified" not in User.model_fields
    assert {"username", "email", "password", "roles", "enabled"} <= set(User.model_fields)
