"""Conversions between free-text form fields and profile values.

Malformed input is never an error here: an address that does not split into
exactly three parts becomes an empty mapping and an unparseable date of birth
yields an age of 0.
"""

from datetime import date

from domain.entities.profile import ADDRESS_FIELDS


def parse_address(text: str) -> dict[str, str]:
    """Split ``"city, street, postcode"`` into the structured address."""
    parts = [part.strip() for part in text.split(",")]
    if len(parts) != len(ADDRESS_FIELDS):
        return {}
    return dict(zip(ADDRESS_FIELDS, parts))


def render_address(address: dict[str, str]) -> str:
    """Join address values in mapping order for display."""
    return ", ".join(address.values())


def parse_interests(text: str) -> list[str]:
    """Comma-split interests, trimmed. Empty and duplicate entries are kept."""
    return [part.strip() for part in text.split(",")]


def render_interests(interests: list[str]) -> str:
    return ", ".join(interests)


def format_date_of_birth(year: int, month: int, day: int) -> str:
    """Render a picked date as ``YYYY-M-D`` (no zero padding, month 1-12)."""
    return f"{year}-{month}-{day}"


def calculate_age(date_of_birth: str, today: date | None = None) -> int:
    """Whole years between ``date_of_birth`` and ``today``.

    The birthday counts as reached on the day itself.
    """
    parts = date_of_birth.split("-")
    if len(parts) != 3:
        return 0
    try:
        birth_year, birth_month, birth_day = (int(part) for part in parts)
    except ValueError:
        return 0

    today = today or date.today()
    age = today.year - birth_year
    if (today.month, today.day) < (birth_month, birth_day):
        age -= 1
    return age
