"""Firestore client management."""

from functools import lru_cache

from google.cloud.firestore_v1.async_client import AsyncClient

from core.config import settings


@lru_cache
def get_firestore_client() -> AsyncClient:
    """Get the shared async Firestore client.

    Created on first use so importing the app never needs credentials.
    An empty project id lets the client pick up the ambient project
    (``GOOGLE_CLOUD_PROJECT`` or the emulator).
    """
    return AsyncClient(
        project=settings.firestore_project_id or None,
        database=settings.firestore_database,
    )
