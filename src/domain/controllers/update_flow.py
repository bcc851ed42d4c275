"""Secondary profile screen: edit a subset of fields with a merge update."""

from dataclasses import dataclass
from typing import Any

import structlog

from core.exceptions import ProfileStoreError
from domain.controllers.notice import NO_USER_DATA, NOT_LOGGED_IN, Notice, UpdateOutcome
from domain.entities.profile import Profile
from domain.services.profile_fields import (
    parse_address,
    parse_interests,
    render_address,
    render_interests,
)
from domain.services.profile_service import ProfileService
from infrastructure.auth.provider import TokenUser

logger = structlog.get_logger()

STAY_OPEN = UpdateOutcome(changed=False, closed=False)


@dataclass
class UpdateFormState:
    """Editable fields of the update screen."""

    name: str = ""
    email: str = ""
    phone_number: str = ""
    address: str = ""
    interests: str = ""
    profile_picture_url: str = ""


class UpdateFlowController:
    """Controller behind the update screen.

    Saving only sends non-blank fields, so an emptied input leaves the stored
    value as it was.
    """

    def __init__(
        self,
        service: ProfileService,
        session: TokenUser | None,
        state: UpdateFormState | None = None,
    ) -> None:
        self._service = service
        self._session = session
        self.state = state or UpdateFormState()

    async def on_enter(self) -> Notice | None:
        if self._session is None:
            return None

        try:
            profile = await self._service.fetch(self._session.id)
        except ProfileStoreError as e:
            logger.warning("update_form_load_failed", user_id=self._session.id, error=e.message)
            return Notice.error(f"Error loading user data: {e.message}")

        if profile is None:
            return Notice.info(NO_USER_DATA)

        self._populate(profile)
        return None

    def collect_fields(self) -> dict[str, Any]:
        """Map the form onto profile document fields."""
        return {
            "name": self.state.name,
            "email": self.state.email,
            "phoneNumber": self.state.phone_number,
            "address": parse_address(self.state.address),
            "interests": parse_interests(self.state.interests),
        }

    async def on_submit(self) -> tuple[UpdateOutcome, Notice]:
        """Send the edits; on failure the screen stays open for a retry."""
        if self._session is None:
            return STAY_OPEN, Notice.error(NOT_LOGGED_IN)

        try:
            await self._service.partial_update(self._session.id, self.collect_fields())
        except ProfileStoreError as e:
            logger.warning("update_form_save_failed", user_id=self._session.id, error=e.message)
            return STAY_OPEN, Notice.error(f"Failed to update data: {e.message}")

        return UpdateOutcome(changed=True, closed=True), Notice.success("Data updated successfully!")

    def on_cancel(self) -> UpdateOutcome:
        return UpdateOutcome(changed=False, closed=True)

    def _populate(self, profile: Profile) -> None:
        self.state.name = profile.name or ""
        self.state.email = profile.email
        self.state.phone_number = profile.phone_number
        self.state.address = render_address(profile.address)
        self.state.interests = render_interests(profile.interests)
        self.state.profile_picture_url = profile.profile_picture_url
