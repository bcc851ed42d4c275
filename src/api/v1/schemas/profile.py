"""Pydantic schemas for the profile screens API."""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, model_validator

from domain.controllers.notice import NoticeLevel


class NoticeResponse(BaseModel):
    """Message to show the user after an action."""

    model_config = ConfigDict(from_attributes=True)

    level: NoticeLevel
    message: str


class ProfileFormData(BaseModel):
    """Fields of the main profile screen, sent back and forth as-is."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "phone_number": "+44 20 7946 0000",
                "address": "London, 221B Baker Street, NW1 6XE",
                "interests": "climbing, chess",
                "date_of_birth": "1990-7-4",
                "age": 35,
                "profile_picture_url": "content://media/external/images/media/42",
                "selected_date_of_birth": "",
                "selected_image_uri": None,
            }
        },
    )

    phone_number: str = ""
    address: str = ""
    interests: str = ""
    date_of_birth: str = ""
    age: int | None = None
    profile_picture_url: str = ""
    selected_date_of_birth: str = ""
    selected_image_uri: str | None = None


class ProfileFormResponse(BaseModel):
    """Main screen after an action."""

    data: ProfileFormData
    notice: NoticeResponse | None = None


class DateOfBirthSelection(BaseModel):
    """A date picked on the main screen. Month is 1-based."""

    form: ProfileFormData = Field(default_factory=ProfileFormData)
    year: int = Field(..., ge=1)
    month: int = Field(..., ge=1, le=12)
    day: int = Field(..., ge=1, le=31)

    @model_validator(mode="after")
    def validate_date(self) -> "DateOfBirthSelection":
        try:
            picked = date(self.year, self.month, self.day)
        except ValueError as e:
            raise ValueError(f"Not a calendar date: {e}") from e
        if picked > date.today():
            raise ValueError("Date of birth cannot be in the future")
        return self


class ImageSelection(BaseModel):
    """An image reference returned by the client's picker."""

    form: ProfileFormData = Field(default_factory=ProfileFormData)
    uri: str = Field(..., min_length=1, max_length=2048)


class UpdateOutcomeData(BaseModel):
    """Result the update screen hands back to the main screen."""

    model_config = ConfigDict(from_attributes=True)

    changed: bool
    closed: bool = True


class FormRefreshRequest(BaseModel):
    """Main screen regaining focus after the update screen closed."""

    form: ProfileFormData = Field(default_factory=ProfileFormData)
    outcome: UpdateOutcomeData


class UpdateFormData(BaseModel):
    """Fields of the update screen."""

    model_config = ConfigDict(from_attributes=True)

    name: str = ""
    email: str = ""
    phone_number: str = ""
    address: str = ""
    interests: str = ""
    profile_picture_url: str = ""


class UpdateFormResponse(BaseModel):
    """Update screen after loading."""

    data: UpdateFormData
    notice: NoticeResponse | None = None


class UpdateSubmitResponse(BaseModel):
    """Update screen after saving or cancelling."""

    outcome: UpdateOutcomeData
    notice: NoticeResponse | None = None
