"""Dependency injection factories for API v1."""

from functools import lru_cache

from core.config import settings
from domain.services.profile_service import ProfileService
from infrastructure.firestore.client import get_firestore_client
from infrastructure.firestore.profile_repo import FirestoreProfileRepository


@lru_cache
def get_profile_repository() -> FirestoreProfileRepository:
    """Get the Firestore-backed profile repository."""
    return FirestoreProfileRepository(
        get_firestore_client(),
        collection=settings.profiles_collection,
    )


@lru_cache
def get_profile_service() -> ProfileService:
    """Get Profile service instance."""
    return ProfileService(get_profile_repository())
