"""Profile service layer: read, replace and merge-update profile documents."""

from typing import Any

import structlog

from domain.entities.profile import Profile, decode_profile
from domain.repositories.profile_repository import IProfileRepository

logger = structlog.get_logger()


def drop_blank_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Remove None values and blank strings from a partial update."""
    return {
        key: value
        for key, value in fields.items()
        if value is not None and not (isinstance(value, str) and not value.strip())
    }


class ProfileService:
    """Service layer for Profile storage.

    Store failures propagate as ``ProfileStoreError`` and are never retried.
    """

    def __init__(self, repository: IProfileRepository) -> None:
        self._repository = repository

    async def fetch(self, user_id: str) -> Profile | None:
        """Get a user's profile, or None if no document exists."""
        data = await self._repository.get(user_id)
        if data is None:
            logger.info("profile_not_found", user_id=user_id)
            return None

        logger.debug("profile_fetched", user_id=user_id)
        return decode_profile(data)

    async def upsert(self, profile: Profile) -> None:
        """Create or fully replace the profile document keyed by its id."""
        await self._repository.set(profile)
        logger.info("profile_upserted", user_id=profile.id)

    async def partial_update(self, user_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        """Merge the non-blank fields into the stored profile.

        Returns the fields actually sent. When every field is blank nothing is
        sent at all.
        """
        filtered = drop_blank_fields(fields)
        if not filtered:
            logger.info("profile_partial_update_skipped", user_id=user_id)
            return {}

        await self._repository.update(user_id, filtered)
        logger.info(
            "profile_partially_updated",
            user_id=user_id,
            fields=sorted(filtered),
        )
        return filtered

    async def check_store(self) -> None:
        """Raise ``ProfileStoreError`` if the store cannot be reached."""
        await self._repository.ping()
