"""Profile repository protocol."""

from typing import Any, Protocol

from domain.entities.profile import Profile


class IProfileRepository(Protocol):
    """Repository interface for Profile documents keyed by user id.

    Implementations raise ``ProfileStoreError`` when the store fails.
    """

    async def get(self, id: str) -> dict[str, Any] | None:
        """Get the raw document for a user, or None if it does not exist."""
        ...

    async def set(self, profile: Profile) -> None:
        """Create or fully replace the document at ``profile.id``."""
        ...

    async def update(self, id: str, fields: dict[str, Any]) -> None:
        """Merge the given fields into an existing document."""
        ...

    async def ping(self) -> None:
        """Round-trip to the store to check it is reachable."""
        ...
