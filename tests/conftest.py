import os

# Settings are read once per process, so the environment must be ready before the app is imported
os.environ["JWT_SECRET"] = "5367566B59703373367639792F423F4528482B4D6251655468576D5A71347437"
os.environ["ACCESS_TOKEN_EXPIRE_WEB_SECONDS"] = "900"
os.environ["ACCESS_TOKEN_EXPIRE_MOBILE_SECONDS"] = "1800"
os.environ["REFRESH_TOKEN_EXPIRE_WEB_SECONDS"] = "86400"
os.environ["REFRESH_TOKEN_EXPIRE_MOBILE_SECONDS"] = "2592000"
os.environ.pop("LOGFIRE_WRITE_TOKEN", None)

import uuid
import pytest

from http.cookies import Morsel, SimpleCookie
from typing import Dict, Optional

from fastapi.testclient import TestClient
from starlette.requests import Request

from main import app
from security.helpers import get_password_hash
from security.issuer import get_token_issuer
from security.tokens import get_token_codec
from services.user_store import UserRecord, get_user_store

PASSWORD = "Str0ng!Passw0rd"
PASSWORD_HASH = get_password_hash(PASSWORD)


class InMemoryUserStore:
    """User store keeping records in a dict, keyed by username."""

    def __init__(self, *records: UserRecord):
        self.users: Dict[str, UserRecord] = {record.username: record for record in records}

    async def find_by_login(self, login: str) -> Optional[UserRecord]:
        if login in self.users:
            return self.users[login]
        return next((user for user in self.users.values() if user.email == login), None)

    async def exists(self, username: str, email: str) -> bool:
        return username in self.users or any(user.email == email for user in self.users.values())

    async def add(self, record: UserRecord) -> UserRecord:
        saved = record.model_copy(update={"id": uuid.uuid4().hex[:24]})
        self.users[saved.username] = saved
        return saved

    async def update(self, record: UserRecord) -> Optional[UserRecord]:
        if record.username not in self.users:
            return None
        self.users[record.username] = record
        return record


def make_user(username: str, roles=("ROLE_USER",), enabled: bool = True) -> UserRecord:
    return UserRecord(
        id=uuid.uuid4().hex[:24],
        username=username,
        email=f"{username}@example.com",
        password_hash=PASSWORD_HASH,
        roles=list(roles),
        enabled=enabled,
    )


def make_request(headers: Optional[dict] = None, cookies: Optional[dict] = None) -> Request:
    """Builds a bare Starlette request with the given headers and cookies."""
    raw_headers = [
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in (headers or {}).items()
    ]
    if cookies:
        cookie_header = "; ".join(f"{name}={value}" for name, value in cookies.items())
        raw_headers.append((b"cookie", cookie_header.encode("latin-1")))

    return Request(
        {
            "type": "http",
            "method": "POST",
            "path": "/",
            "query_string": b"",
            "headers": raw_headers,
        }
    )


def parse_set_cookies(response) -> Dict[str, Morsel]:
    """Parses every Set-Cookie header of a response into morsels keyed by cookie name."""
    cookies: Dict[str, Morsel] = {}
    for header in response.headers.get_list("set-cookie"):
        jar = SimpleCookie()
        jar.load(header)
        cookies.update(jar)
    return cookies


@pytest.fixture
def user_store() -> InMemoryUserStore:
    return InMemoryUserStore(
        make_user("alice", roles=("ROLE_USER", "ROLE_ADMIN")),
        make_user("bob"),
        make_user("carol", enabled=False),
    )


@pytest.fixture
def client(user_store):
    app.dependency_overrides[get_user_store] = lambda: user_store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def codec():
    return get_token_codec()


@pytest.fixture
def issuer():
    return get_token_issuer()
