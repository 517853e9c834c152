"""
Field Types - one behaviour per attribute fieldType.

Every downstream component (registry checks, form rendering, validation,
initial values) branches on the attribute's fieldType. Instead of if-chains
keyed by strings, each FieldType member owns exactly one FieldTypeBehavior,
and FIELD_TYPES is checked against the enum when this module is imported,
so adding a member without a behaviour fails at startup instead of silently
falling through to a default branch.

Validation rule derivation:
    base kind   text|url|select -> string, array|image_array -> sequence,
                number -> numeric, date -> date, anything else -> mixed
    required    string/numeric/date: non-empty, sequence: at least one item,
                mixed: not null
    refinement  url: absolute URL, number: finite, "" means absent,
                date: absent is fine when optional
"""

import math
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AnyUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError


class FieldType(str, Enum):
    text = "text"
    number = "number"
    date = "date"
    boolean = "boolean"
    array = "array"
    select = "select"
    url = "url"
    mixed = "mixed"
    image_array = "image_array"


class BaseKind(str, Enum):
    string = "string"
    sequence = "sequence"
    numeric = "numeric"
    date = "date"
    mixed = "mixed"


class FieldRuleError(ValueError):
    """Raised by a behaviour when a value breaks its rule."""


_url_adapter = TypeAdapter(AnyUrl)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


# ============================================================
# BASE BEHAVIOUR
# ============================================================

class FieldTypeBehavior:
    """
    Validation and rendering for one fieldType.

    Subclasses set the class attributes and override `refine` for
    type-specific checks. `check` is what the validation ruleset calls.
    """

    field_type: FieldType
    base: BaseKind
    widget: str
    accepts_options: bool = True
    editable_after_create: bool = True

    def default_value(self) -> Any:
        return ""

    def check(self, value: Any, required: bool, label: str) -> Any:
        """Validate and normalise one value. Raises FieldRuleError."""
        value = self.coerce(value)
        if required and self.is_missing(value):
            raise FieldRuleError(f"{label} is required")
        if self.is_missing(value):
            return value
        return self.refine(value)

    def coerce(self, value: Any) -> Any:
        return value

    def is_missing(self, value: Any) -> bool:
        return value is None

    def refine(self, value: Any) -> Any:
        return value

    def describe(self, required: bool) -> Dict[str, Any]:
        """Client-side rule description (JSON-serialisable)."""
        return {
            "type": self.base.value,
            "required": required,
            "nullable": not required,
        }


class StringBehavior(FieldTypeBehavior):
    base = BaseKind.string

    def coerce(self, value: Any) -> Any:
        # surrounding whitespace is dropped, so "   " counts as empty
        if value is None:
            return value
        if isinstance(value, str):
            return value.strip()
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        raise FieldRuleError("Must be a string")

    def is_missing(self, value: Any) -> bool:
        return _is_blank(value)


class SequenceBehavior(FieldTypeBehavior):
    base = BaseKind.sequence

    def default_value(self) -> Any:
        return []

    def coerce(self, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, (list, tuple)):
            return list(value)
        raise FieldRuleError("Must be a list")

    def is_missing(self, value: Any) -> bool:
        # "required" on a multi-select means at least one selection
        return value is None or len(value) == 0

    def describe(self, required: bool) -> Dict[str, Any]:
        rule = super().describe(required)
        rule["minItems"] = 1 if required else 0
        return rule


# ============================================================
# ONE BEHAVIOUR PER FIELD TYPE
# ============================================================

class TextBehavior(StringBehavior):
    field_type = FieldType.text
    widget = "text"


class SelectBehavior(StringBehavior):
    field_type = FieldType.select
    widget = "select"


class UrlBehavior(StringBehavior):
    field_type = FieldType.url
    widget = "url"

    def refine(self, value: Any) -> Any:
        try:
            parsed = _url_adapter.validate_python(value)
        except PydanticValidationError:
            raise FieldRuleError("Must be a valid URL")
        if not parsed.scheme or not parsed.host:
            raise FieldRuleError("Must be a valid URL")
        # keep what the operator typed, pydantic normalises trailing slashes
        return value

    def describe(self, required: bool) -> Dict[str, Any]:
        rule = super().describe(required)
        rule["format"] = "url"
        return rule


class NumberBehavior(FieldTypeBehavior):
    field_type = FieldType.number
    base = BaseKind.numeric
    widget = "number"

    def coerce(self, value: Any) -> Any:
        # empty input is "absent", never zero
        if _is_blank(value):
            return None
        if isinstance(value, bool):
            raise FieldRuleError("Must be a number")
        if isinstance(value, (int, float)):
            number = value
        elif isinstance(value, str):
            text = value.strip()
            try:
                number = int(text)
            except ValueError:
                try:
                    number = float(text)
                except ValueError:
                    raise FieldRuleError("Must be a number")
        else:
            raise FieldRuleError("Must be a number")
        if isinstance(number, float) and not math.isfinite(number):
            raise FieldRuleError("Must be a number")
        return number

    def describe(self, required: bool) -> Dict[str, Any]:
        rule = super().describe(required)
        rule["emptyAsAbsent"] = True
        return rule


class DateBehavior(FieldTypeBehavior):
    field_type = FieldType.date
    base = BaseKind.date
    widget = "date"

    def coerce(self, value: Any) -> Any:
        # an empty date field is not an invalid date
        if _is_blank(value):
            return None
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, date):
            return value.isoformat()
        if isinstance(value, str):
            text = value.strip()
            try:
                return date.fromisoformat(text).isoformat()
            except ValueError:
                pass
            try:
                return datetime.fromisoformat(text.replace("Z", "+00:00")).isoformat()
            except ValueError:
                pass
        raise FieldRuleError("Date must be a valid date.")


class BooleanBehavior(FieldTypeBehavior):
    field_type = FieldType.boolean
    base = BaseKind.mixed
    widget = "checkbox"

    def default_value(self) -> Any:
        return False


class MixedBehavior(FieldTypeBehavior):
    field_type = FieldType.mixed
    base = BaseKind.mixed
    widget = "text"


class ArrayBehavior(SequenceBehavior):
    field_type = FieldType.array
    widget = "multiselect"


class ImageArrayBehavior(SequenceBehavior):
    """
    Files attached through the external file manager.

    Values are `{path, name}` records. Not editable through the profile form
    once the profile exists; see EntityService.set_file_array.
    """

    field_type = FieldType.image_array
    widget = "hidden"
    accepts_options = False
    editable_after_create = False

    def refine(self, value: Any) -> Any:
        for item in value:
            if not isinstance(item, dict) or not isinstance(item.get("path"), str) \
                    or not isinstance(item.get("name"), str):
                raise FieldRuleError("Each file must be a {path, name} record")
        return value


FIELD_TYPES: Dict[FieldType, FieldTypeBehavior] = {
    FieldType.text: TextBehavior(),
    FieldType.number: NumberBehavior(),
    FieldType.date: DateBehavior(),
    FieldType.boolean: BooleanBehavior(),
    FieldType.array: ArrayBehavior(),
    FieldType.select: SelectBehavior(),
    FieldType.url: UrlBehavior(),
    FieldType.mixed: MixedBehavior(),
    FieldType.image_array: ImageArrayBehavior(),
}

_unhandled = [t.value for t in FieldType if t not in FIELD_TYPES]
if _unhandled:
    raise RuntimeError(f"Field types without a behaviour: {', '.join(_unhandled)}")


def behavior_for(field_type) -> FieldTypeBehavior:
    """Look up the behaviour for a FieldType or its string tag."""
    return FIELD_TYPES[FieldType(field_type)]


def field_type_names() -> List[str]:
    return [t.value for t in FieldType]


def parse_field_type(value: Any) -> Optional[FieldType]:
    """FieldType for a tag, or None when the tag is outside the closed set."""
    try:
        return FieldType(value)
    except ValueError:
        return None
