"""
Identifier helpers: listing slugs, usernames and custom field keys.
"""

import re
import secrets
import string
import time
import unicodedata
from typing import Iterable, Optional

BASE36_ALPHABET = string.digits + string.ascii_lowercase

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_NUMBER_SUFFIX = re.compile(r"-(\d+)$")


def to_base36(number: int) -> str:
    """
    Encode a non-negative integer in lowercase base 36.

    Args:
        number: Integer to encode

    Returns:
        Base 36 representation
    """
    if number < 0:
        raise ValueError("Cannot encode negative numbers")
    if number == 0:
        return "0"

    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def random_base36(length: int) -> str:
    return "".join(secrets.choice(BASE36_ALPHABET) for _ in range(length))


def now_millis() -> int:
    return int(time.time() * 1000)


def slugify(text: str) -> str:
    """
    Lowercase, strip accents and collapse non-alphanumeric runs into dashes.

    Args:
        text: Free text such as a listing title

    Returns:
        URL-safe slug without leading or trailing dashes
    """
    normalized = unicodedata.normalize("NFD", text.lower())
    without_accents = "".join(ch for ch in normalized if not unicodedata.combining(ch))
    return _NON_ALNUM.sub("-", without_accents).strip("-")


def listing_slug(title: str, millis: Optional[int] = None) -> str:
    """Slug for a new listing: slugified title plus a base 36 timestamp."""
    stamp = to_base36(millis if millis is not None else now_millis())
    base = slugify(title)
    return f"{base}-{stamp}" if base else stamp


def strip_number_suffix(slug: str) -> str:
    return _NUMBER_SUFFIX.sub("", slug)


def next_numbered_slug(base: str, existing: Iterable[str], always_number: bool = False) -> str:
    """
    Pick the next free "<base>-N" slug.

    Args:
        base: Slug without a numeric suffix
        existing: Slugs already taken that start with base
        always_number: Number the slug even when base itself is free

    Returns:
        base when free (and always_number is False), otherwise base-N with
        N one more than the highest existing suffix, starting at 2
    """
    taken = set(existing)
    if not always_number and base not in taken:
        return base

    pattern = re.compile(rf"^{re.escape(base)}-(\d+)$")
    numbers = [int(match.group(1)) for match in map(pattern.match, taken) if match]
    next_number = max(numbers) + 1 if numbers else 2
    return f"{base}-{next_number}"


def username_from_email(email: str) -> str:
    """Initial username: sanitized email local part plus 4 random base 36 chars."""
    local_part = email.split("@")[0].lower()
    return re.sub(r"[^a-z0-9]", "", local_part)[:26] + random_base36(4)


def custom_field_key() -> str:
    return f"cf_{now_millis()}_{random_base36(9)}"
