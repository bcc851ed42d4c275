"""Firestore implementation of Profile repository."""

from collections.abc import Awaitable
from typing import Any, TypeVar

from google.api_core.exceptions import GoogleAPICallError, RetryError
from google.auth.exceptions import GoogleAuthError
from google.cloud.firestore_v1.async_client import AsyncClient
from google.cloud.firestore_v1.async_document import AsyncDocumentReference

from core.exceptions import ProfileStoreError
from domain.entities.profile import Profile

T = TypeVar("T")

# Transport, quota, permission and credential failures all end up here.
_STORE_ERRORS = (GoogleAPICallError, RetryError, GoogleAuthError)


class FirestoreProfileRepository:
    """Firestore implementation of IProfileRepository."""

    def __init__(self, client: AsyncClient, collection: str = "users") -> None:
        self._client = client
        self._collection = collection

    def _document(self, operation: str, id: str) -> AsyncDocumentReference:
        # A "/" would address another path (or raise ValueError) instead of users/<id>
        if not id or "/" in id:
            raise ProfileStoreError(f"Invalid profile id: {id!r}", operation=operation)
        return self._client.collection(self._collection).document(id)

    async def _call(self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await awaitable
        except _STORE_ERRORS as e:
            raise ProfileStoreError(str(e), operation=operation) from e

    async def get(self, id: str) -> dict[str, Any] | None:
        """Get the raw document for a user, or None if it does not exist."""
        snapshot = await self._call("get", self._document("get", id).get())
        if not snapshot.exists:
            return None
        return snapshot.to_dict() or {}

    async def set(self, profile: Profile) -> None:
        """Create or fully replace the document at ``profile.id``."""
        await self._call("set", self._document("set", profile.id).set(profile.to_document()))

    async def update(self, id: str, fields: dict[str, Any]) -> None:
        """Merge fields into the document; fails if the document is missing."""
        await self._call("update", self._document("update", id).update(fields))

    async def ping(self) -> None:
        """Read at most one document from the collection."""
        query = self._client.collection(self._collection).limit(1)
        await self._call("ping", query.get())
