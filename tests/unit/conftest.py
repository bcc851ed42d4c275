"""Shared fixtures for unit tests."""

from datetime import date
from unittest.mock import AsyncMock

import pytest

from domain.services.profile_service import ProfileService
from infrastructure.auth.provider import TokenUser


@pytest.fixture
def repository() -> AsyncMock:
    """A profile repository mock; ``get`` returns None unless told otherwise."""
    repo = AsyncMock()
    repo.get.return_value = None
    return repo


@pytest.fixture
def service(repository: AsyncMock) -> ProfileService:
    return ProfileService(repository)


@pytest.fixture
def user_id() -> str:
    return "uid-7f3a"


@pytest.fixture
def session(user_id: str) -> TokenUser:
    """The signed-in session."""
    return TokenUser(id=user_id, email="ada@example.com")


@pytest.fixture
def today() -> date:
    return date(2024, 5, 15)
