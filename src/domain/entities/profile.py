"""Profile domain entity and its document decoder."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

ADDRESS_FIELDS: tuple[str, ...] = ("city", "street", "postcode")


@dataclass
class Profile:
    """The per-user profile record stored in the ``users`` collection.

    ``id`` is the authentication subject id and doubles as the document key.
    """

    id: str = ""
    name: str | None = None
    email: str = ""
    phone_number: str = ""
    date_of_birth: str = ""
    address: dict[str, str] = field(default_factory=dict)
    interests: list[str] = field(default_factory=list)
    profile_picture_url: str = ""

    def to_document(self) -> dict[str, Any]:
        """Full document body written on upsert."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phoneNumber": self.phone_number,
            "dateOfBirth": self.date_of_birth,
            "address": dict(self.address),
            "interests": list(self.interests),
            "profilePictureUrl": self.profile_picture_url,
        }


def _str_or(data: Mapping[Any, Any], key: str, default: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else default


def _address(value: Any) -> dict[str, str]:
    if not isinstance(value, Mapping):
        return {}
    return {k: v for k, v in value.items() if isinstance(k, str) and isinstance(v, str)}


def _interests(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def decode_profile(data: Any) -> Profile:
    """Build a Profile from an untyped document.

    Never raises. Missing keys and values of the wrong type fall back to the
    field default; address entries and interest elements that are not
    strings are dropped individually.
    """
    if not isinstance(data, Mapping):
        return Profile()

    name = data.get("name")
    return Profile(
        id=_str_or(data, "id", ""),
        name=name if isinstance(name, str) else None,
        email=_str_or(data, "email", ""),
        phone_number=_str_or(data, "phoneNumber", ""),
        date_of_birth=_str_or(data, "dateOfBirth", ""),
        address=_address(data.get("address")),
        interests=_interests(data.get("interests")),
        profile_picture_url=_str_or(data, "profilePictureUrl", ""),
    )
