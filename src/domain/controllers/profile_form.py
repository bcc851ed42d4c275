"""Main profile screen: load, edit and fully save a user's profile."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date

import structlog

from core.exceptions import ProfileStoreError
from domain.controllers.notice import NO_USER_DATA, NOT_LOGGED_IN, Notice, UpdateOutcome
from domain.entities.profile import Profile
from domain.services.profile_fields import (
    calculate_age,
    format_date_of_birth,
    parse_address,
    parse_interests,
    render_address,
    render_interests,
)
from domain.services.profile_service import ProfileService
from infrastructure.auth.provider import TokenUser

logger = structlog.get_logger()


@dataclass
class ProfileFormState:
    """Editable fields of the main profile screen.

    ``selected_date_of_birth`` and ``selected_image_uri`` hold choices made on
    this screen that have not been saved yet; they win over stored values on
    submit.
    """

    phone_number: str = ""
    address: str = ""
    interests: str = ""
    date_of_birth: str = ""
    age: int | None = None
    profile_picture_url: str = ""
    selected_date_of_birth: str = ""
    selected_image_uri: str | None = None


class ProfileFormController:
    """Controller behind the main profile screen.

    One instance per screen visit; the UI shell calls ``on_enter`` first and
    then one action per user interaction.
    """

    def __init__(
        self,
        service: ProfileService,
        session: TokenUser | None,
        state: ProfileFormState | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._service = service
        self._session = session
        self._today = today
        self.state = state or ProfileFormState()

    async def on_enter(self) -> Notice | None:
        """Load the stored profile into the form, if there is a session."""
        if self._session is None:
            return None

        try:
            profile = await self._service.fetch(self._session.id)
        except ProfileStoreError as e:
            logger.warning("profile_form_load_failed", user_id=self._session.id, error=e.message)
            return Notice.error(f"Failed to load user data: {e.message}")

        if profile is None:
            return Notice.info(NO_USER_DATA)

        self._populate(profile)
        return None

    def select_date_of_birth(self, year: int, month: int, day: int) -> None:
        """Record a date picked on this screen and refresh the age."""
        self.state.selected_date_of_birth = format_date_of_birth(year, month, day)
        self._show_date_of_birth(self.state.selected_date_of_birth)

    def pick_image(self, uri: str) -> None:
        """Record a locally picked image; it is only stored on submit."""
        self.state.selected_image_uri = uri
        self.state.profile_picture_url = uri

    async def on_submit(self) -> Notice:
        """Replace the stored profile with the form contents.

        Fields this screen does not edit (name, and date of birth or picture
        when none was picked) are carried over from the stored profile.
        """
        if self._session is None:
            return Notice.error(NOT_LOGGED_IN)

        user_id = self._session.id
        address = parse_address(self.state.address)
        interests = parse_interests(self.state.interests)

        try:
            stored = await self._service.fetch(user_id) or Profile(id=user_id)
            profile = Profile(
                id=user_id,
                name=stored.name,
                email=self._session.email,
                phone_number=self.state.phone_number,
                date_of_birth=self.state.selected_date_of_birth or stored.date_of_birth,
                address=address,
                interests=interests,
                profile_picture_url=self.state.selected_image_uri or stored.profile_picture_url,
            )
            await self._service.upsert(profile)
        except ProfileStoreError as e:
            logger.warning("profile_form_save_failed", user_id=user_id, error=e.message)
            return Notice.error(f"Failed to save data: {e.message}")

        return Notice.success("Data saved successfully!")

    async def on_update_finished(self, outcome: UpdateOutcome) -> Notice | None:
        """Reload after the update screen closes, but only if it saved."""
        if not outcome.changed:
            return None
        return await self.on_enter()

    def _populate(self, profile: Profile) -> None:
        self.state.phone_number = profile.phone_number
        self.state.address = render_address(profile.address)
        self.state.interests = render_interests(profile.interests)
        self._show_date_of_birth(self.state.selected_date_of_birth or profile.date_of_birth)
        self.state.profile_picture_url = (
            self.state.selected_image_uri or profile.profile_picture_url
        )

    def _show_date_of_birth(self, value: str) -> None:
        self.state.date_of_birth = value
        self.state.age = calculate_age(value, self._today()) if value else None
