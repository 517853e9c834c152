"""
Option Input Utility - parse and check attribute defaultOptions.

Operators edit options either as a simple comma separated list
("Red, Green, Blue") or, for records with labels, as JSON
('[{"value": "xl", "label": "XL"}]'). Both end up as a list that is
shape-checked here before the registry stores it, so the Option Resolver
never sees a malformed entry.

Accepted entries:
- plain values: str, int, float, bool
- records: {"value": <plain value>, "label": <str, optional>, ...extra keys}
- a single sentinel naming a global list: ["GLOBAL_COUNTRIES"]
"""

import json
from typing import Any, Iterable, List

from backoffice.core.errors import ValidationError
from backoffice.services.field_types import FieldType, behavior_for
from backoffice.services.option_resolver import SENTINEL_PREFIX, is_sentinel, sentinel_key

FIELD = "defaultOptions"


def parse_options_text(text: str) -> List[Any]:
    """
    Turn the free-text option editor content into a list.

    JSON mode when the text starts with '[', comma separated otherwise.
    """
    text = text.strip()
    if not text:
        return []

    if text.startswith("["):
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid JSON format in options ({e.msg})", field=FIELD)
        if not isinstance(data, list):
            raise ValidationError("JSON options must be a list", field=FIELD)
        return data

    return [part.strip() for part in text.split(",") if part.strip()]


def _is_plain(value: Any) -> bool:
    return isinstance(value, (str, int, float, bool))


def validate_options(options: Any, field_type: FieldType, known_lists: Iterable[str]) -> List[Any]:
    """
    Check options against the field type and the record shape.

    Returns the options as a new list. Raises ValidationError on the first
    problem found.
    """
    if options is None:
        return []
    if isinstance(options, str):
        options = parse_options_text(options)
    if not isinstance(options, list):
        raise ValidationError("Options must be a list", field=FIELD)

    if options and not behavior_for(field_type).accepts_options:
        raise ValidationError(f"'{field_type.value}' attributes cannot have options", field=FIELD)

    if any(is_sentinel(entry) for entry in options):
        if len(options) != 1:
            raise ValidationError("A global list reference must be the only option", field=FIELD)
        known = sorted(known_lists)
        if sentinel_key(options) not in known:
            names = ", ".join(f"{SENTINEL_PREFIX}{key.upper()}" for key in known)
            raise ValidationError(f"Unknown global list '{options[0]}'. Known lists: {names}", field=FIELD)
        return list(options)

    for position, entry in enumerate(options, start=1):
        if isinstance(entry, dict):
            if "value" not in entry:
                raise ValidationError(f"Option {position} is missing 'value'", field=FIELD)
            if not _is_plain(entry["value"]):
                raise ValidationError(f"Option {position} has a non-scalar value", field=FIELD)
            label = entry.get("label")
            if label is not None and not isinstance(label, str):
                raise ValidationError(f"Option {position} label must be text", field=FIELD)
        elif not _is_plain(entry):
            raise ValidationError(f"Option {position} must be a value or a {{value, label}} record", field=FIELD)

    return list(options)
