"""
Shared route helpers.
"""

from typing import Optional

from backoffice.core.errors import ValidationError


def parse_if_match(value: Optional[str]) -> Optional[int]:
    """Version number from an If-Match header ('3', '"3"' or 'W/"3"')."""
    if value is None or not value.strip():
        return None
    text = value.strip()
    if text.startswith("W/"):
        text = text[2:]
    text = text.strip('"')
    if not text.isdigit():
        raise ValidationError("If-Match must be a version number", field="If-Match")
    return int(text)
