"""Pytest configuration and fixtures."""

import copy
import os
import sys
from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any

# Disable rate limiting in tests
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from httpx import ASGITransport, AsyncClient

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core.exceptions import ProfileStoreError
from domain.entities.profile import Profile
from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import TokenUser

TEST_USER_ID = "firebase-uid-0001"


class InMemoryProfileRepository:
    """Profile repository backed by a dict, with Firestore's update semantics.

    Set ``fail_with`` to make every call raise ``ProfileStoreError``.
    """

    def __init__(self) -> None:
        self.documents: dict[str, dict[str, Any]] = {}
        self.calls: list[str] = []
        self.fail_with: str | None = None

    def _record(self, operation: str) -> None:
        self.calls.append(operation)
        if self.fail_with is not None:
            raise ProfileStoreError(self.fail_with, operation=operation)

    async def get(self, id: str) -> dict[str, Any] | None:
        self._record("get")
        document = self.documents.get(id)
        return copy.deepcopy(document) if document is not None else None

    async def set(self, profile: Profile) -> None:
        self._record("set")
        self.documents[profile.id] = profile.to_document()

    async def update(self, id: str, fields: dict[str, Any]) -> None:
        self._record("update")
        if id not in self.documents:
            raise ProfileStoreError(f"404 No document to update: users/{id}", operation="update")
        self.documents[id].update(copy.deepcopy(fields))

    async def ping(self) -> None:
        self._record("ping")


@pytest.fixture
def test_user() -> TokenUser:
    """Create a test user with fixed ID."""
    return TokenUser(
        id=TEST_USER_ID,
        email="test@example.com",
    )


@pytest.fixture
def auth_provider() -> JWTAuthProvider:
    """Create auth provider for testing."""
    return JWTAuthProvider(
        secret_key="test-secret-key",
        algorithm="HS256",
        expire_minutes=30,
    )


@pytest.fixture
def auth_token(auth_provider: JWTAuthProvider, test_user: TokenUser) -> str:
    """Create auth token for test user."""
    return str(auth_provider.create_token(test_user))


@pytest.fixture
def auth_headers(auth_token: str) -> dict[str, str]:
    """Create authorization headers."""
    return {"Authorization": f"Bearer {auth_token}"}


@pytest.fixture
def profile_repository() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client (no auth, no store overrides)."""
    from main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def api_client(
    profile_repository: InMemoryProfileRepository,
    auth_provider: JWTAuthProvider,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client wired to the in-memory profile repository.

    Requests are only authenticated when they carry ``auth_headers``; the
    token is checked by the real auth dependency using the test provider.
    """
    from api.dependencies.auth import get_auth_provider
    from api.v1.dependencies import get_profile_service
    from domain.services.profile_service import ProfileService
    from main import create_app

    app = create_app()

    app.dependency_overrides[get_auth_provider] = lambda: auth_provider
    app.dependency_overrides[get_profile_service] = lambda: ProfileService(profile_repository)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
