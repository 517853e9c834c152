"""
Slug normalisation.

Slugs are the join keys between attributes, user types and profiles, and
they become Mongo field paths (`attributes.<slug>`), so only lowercase
letters, digits, '-' and '_' are allowed.
"""

import re

from backoffice.core.errors import ValidationError

SLUG_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_-]*$")


def normalize_slug(value: str, field: str = "slug") -> str:
    """
    Lowercase, trim, and turn inner whitespace into '-'.

    >>> normalize_slug("  Instagram Handle ")
    'instagram-handle'
    """
    slug = re.sub(r"\s+", "-", (value or "").strip().lower())
    if not slug:
        raise ValidationError("Slug is required", field=field)
    if not SLUG_PATTERN.match(slug):
        raise ValidationError(
            f"Invalid slug '{value}'. Use letters, digits, '-' and '_' only", field=field
        )
    return slug


def is_safe_key(value: str) -> bool:
    """True when `value` can be used as a bag key in a Mongo query."""
    return bool(value) and "." not in value and not value.startswith("$")
