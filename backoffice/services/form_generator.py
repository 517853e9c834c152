"""
Dynamic Form & Validation Generator

generate(user_type, attributes, mode, current) -> GeneratedForm with
    sections        render descriptors grouped by section, in binding order
    ruleset         a pydantic model built with create_model, one field per
                    rule, used by EntityService to validate every write
    initial_values  what the form starts with

Core identity fields (email, names, phone, address...) always get their own
fixed rules; a binding whose slug collides with a core field is ignored here
so the core rule is the only one that applies.

Files (image_array) are validated on create. In edit mode they are left out
of the descriptors and the ruleset because they change only through the file
endpoint.
"""

from dataclasses import dataclass, field
from functools import cached_property
from typing import Annotated, Any, Dict, List, Optional

from loguru import logger
from pydantic import BeforeValidator, ConfigDict, EmailStr, Field, TypeAdapter, create_model
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticCustomError

from backoffice.core.config import get_settings
from backoffice.core.errors import StructuralError, ValidationError
from backoffice.core.logging_config import log_structural
from backoffice.models.profile import CORE_FIELDS, PASSWORD_FIELD
from backoffice.schemas.schemas import FormMode
from backoffice.services.field_types import FieldRuleError, FieldTypeBehavior, behavior_for, parse_field_type
from backoffice.services.option_dictionary import OptionDictionary, get_option_dictionary
from backoffice.services.option_resolver import resolve

DEFAULT_SECTION = "Other Details"

_email_adapter = TypeAdapter(EmailStr)


# ============================================================
# RULES
# ============================================================

class Rule:
    """One key of the validation ruleset."""

    def __init__(self, slug: str, label: str, required: bool):
        self.slug = slug
        self.label = label
        self.required = required

    def validate(self, value: Any) -> Any:
        """Normalised value, or FieldRuleError."""
        raise NotImplementedError

    def check(self, value: Any) -> Any:
        # pydantic only reports ValueError/AssertionError/PydanticCustomError
        try:
            return self.validate(value)
        except FieldRuleError as e:
            raise PydanticCustomError("field_rule", str(e))

    def describe(self) -> Dict[str, Any]:
        return {"type": "string", "required": self.required, "nullable": not self.required}


class AttributeRule(Rule):
    """Rule derived from a bound attribute's fieldType."""

    def __init__(self, slug: str, label: str, required: bool, behavior: FieldTypeBehavior):
        super().__init__(slug, label, required)
        self.behavior = behavior

    def validate(self, value: Any) -> Any:
        return self.behavior.check(value, self.required, self.label)

    def describe(self) -> Dict[str, Any]:
        return self.behavior.describe(self.required)


class TextRule(Rule):
    def validate(self, value: Any) -> Any:
        if value is None or value == "":
            if self.required:
                raise FieldRuleError(f"{self.label} is required")
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if not isinstance(value, str):
            raise FieldRuleError(f"{self.label} must be text")
        value = value.strip()
        if self.required and not value:
            raise FieldRuleError(f"{self.label} is required")
        return value


class EmailRule(Rule):
    def validate(self, value: Any) -> Any:
        if value is None or value == "":
            raise FieldRuleError("Email is required")
        try:
            return _email_adapter.validate_python(value).lower()
        except PydanticValidationError:
            raise FieldRuleError("Invalid email")

    def describe(self) -> Dict[str, Any]:
        rule = super().describe()
        rule["format"] = "email"
        return rule


class PasswordRule(Rule):
    """Required with a minimum length on create, optional on edit."""

    def __init__(self, required: bool, min_length: int):
        super().__init__(PASSWORD_FIELD, "Password", required)
        self.min_length = min_length

    def validate(self, value: Any) -> Any:
        if value is None or value == "":
            if self.required:
                raise FieldRuleError("Password is required")
            return None
        if not isinstance(value, str):
            raise FieldRuleError("Password must be text")
        if len(value) < self.min_length:
            raise FieldRuleError(f"Password must be at least {self.min_length} characters")
        return value

    def describe(self) -> Dict[str, Any]:
        rule = super().describe()
        rule["minLength"] = self.min_length
        return rule


def core_rules(mode: FormMode, password_min_length: int) -> List[Rule]:
    """Fixed rules for the identity fields every profile has."""
    return [
        EmailRule("email", "Email", True),
        PasswordRule(mode == FormMode.create, password_min_length),
        TextRule("first_name", "First name", True),
        TextRule("last_name", "Last name", True),
        TextRule("name", "Name", False),
        TextRule("phone", "Phone", False),
        TextRule("city", "City", False),
        TextRule("country", "Country", True),
        TextRule("address", "Address", False),
        TextRule("zipCode", "Zip code", False),
        TextRule("profile_picture", "Profile picture", False),
    ]


# ============================================================
# RULESET
# ============================================================

class ValidationRuleset:
    """
    Validates a whole profile payload against an ordered list of rules.

    Unknown keys are rejected. Only the first failure is reported, named by
    the offending key.
    """

    def __init__(self, name: str, rules: List[Rule]):
        self.name = name
        self.rules = rules

    def keys(self) -> List[str]:
        return [rule.slug for rule in self.rules]

    @cached_property
    def slugs_by_name(self) -> Dict[str, str]:
        # slugs may contain '-' or clash with BaseModel attributes, so the
        # python names are positional and the slug is the alias; slugs are
        # lowercase, so a name never collides with a sent key
        return {f"Rule{position}": rule.slug for position, rule in enumerate(self.rules)}

    @cached_property
    def model(self):
        fields = {
            name: (
                Annotated[Any, BeforeValidator(rule.check)],
                Field(default=None, alias=rule.slug, validate_default=True),
            )
            for name, rule in zip(self.slugs_by_name, self.rules)
        }
        return create_model(
            self.name,
            __config__=ConfigDict(extra="forbid"),
            **fields
        )

    def validate(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Normalised values for the keys present in `payload`.

        Raises:
            ValidationError: first failing key, message prefixed with the key
        """
        try:
            instance = self.model.model_validate(payload)
        except PydanticValidationError as e:
            error = e.errors()[0]
            key = None
            if error["loc"]:
                key = str(error["loc"][0])
            if error["type"] == "extra_forbidden":
                raise ValidationError("Unknown field for this user type", field=key)
            # a missing key is reported under the python name, a sent one under the alias
            key = self.slugs_by_name.get(key, key)
            raise ValidationError(error["msg"], field=key)
        return instance.model_dump(by_alias=True, exclude_unset=True)

    def describe(self) -> Dict[str, Dict[str, Any]]:
        return {rule.slug: rule.describe() for rule in self.rules}


# ============================================================
# GENERATOR
# ============================================================

@dataclass
class GeneratedForm:
    user_type: dict
    mode: FormMode
    sections: List[Dict[str, Any]]
    ruleset: ValidationRuleset
    initial_values: Dict[str, Any]
    file_fields: List[str] = field(default_factory=list)

    def descriptor(self) -> Dict[str, Any]:
        """Payload for GET .../form (FormDescriptor)."""
        return {
            "user_type": self.user_type["slug"],
            "parent_type": self.user_type["parentType"],
            "mode": self.mode,
            "sections": self.sections,
            "rules": self.ruleset.describe(),
            "initial_values": self.initial_values,
        }


class FormGenerator:
    """
    Builds render descriptors, validation rules and initial values for one
    user type.

    Args:
        option_dictionary: global lists for sentinel options
        password_min_length: defaults to the configured value
    """

    def __init__(self, option_dictionary: Optional[OptionDictionary] = None,
                 password_min_length: Optional[int] = None):
        self.option_dictionary = option_dictionary or get_option_dictionary()
        self.password_min_length = password_min_length or get_settings().password_min_length

    def generate(self, user_type: dict, attributes: Dict[str, dict], mode: FormMode,
                 current: Optional[Dict[str, Any]] = None) -> GeneratedForm:
        """
        Args:
            user_type: stored user type document (normalised bindings)
            attributes: live attributes by slug
            mode: create or edit
            current: merged view of the profile being edited

        Raises:
            StructuralError: a binding points at a missing attribute or an
                attribute carries an unknown fieldType
        """
        mode = FormMode(mode)
        current = current or {}
        rules: List[Rule] = core_rules(mode, self.password_min_length)
        sections: Dict[str, List[Dict[str, Any]]] = {}
        initial_values: Dict[str, Any] = {
            name: ("" if mode == FormMode.create else current.get(name) or "") for name in CORE_FIELDS
        }
        initial_values[PASSWORD_FIELD] = ""
        file_fields = []

        for binding in user_type.get("fields", []):
            slug = binding["attributeSlug"]
            if slug in CORE_FIELDS or slug == PASSWORD_FIELD:
                continue

            attribute = attributes.get(slug)
            if attribute is None:
                message = f"User type '{user_type['slug']}' binds missing attribute '{slug}'"
                log_structural(message)
                raise StructuralError(message)

            field_type = parse_field_type(attribute.get("fieldType"))
            if field_type is None:
                message = f"Attribute '{slug}' has unknown field type '{attribute.get('fieldType')}'"
                log_structural(message)
                raise StructuralError(message)
            behavior = behavior_for(field_type)

            if not behavior.editable_after_create:
                file_fields.append(slug)
                if mode == FormMode.edit:
                    continue

            label = binding.get("label") or attribute.get("name") or slug
            required = bool(binding.get("required"))
            rules.append(AttributeRule(slug, label, required, behavior))

            options = None
            if behavior.accepts_options and attribute.get("defaultOptions"):
                options = resolve(attribute["defaultOptions"], self.option_dictionary.lists)

            section = binding.get("section") or DEFAULT_SECTION
            sections.setdefault(section, []).append({
                "slug": slug,
                "label": label,
                "field_type": field_type,
                "widget": behavior.widget,
                "required": required,
                "editable": behavior.editable_after_create,
                "options": options,
                "description": attribute.get("description"),
            })

            if mode == FormMode.edit and current.get(slug) is not None:
                initial_values[slug] = current[slug]
            else:
                initial_values[slug] = behavior.default_value()

        ruleset = ValidationRuleset(f"{_model_name(user_type['slug'])}{mode.value.title()}Payload", rules)
        logger.debug(f"Form generated for {user_type['slug']} ({mode.value}, {len(rules)} rules)")
        return GeneratedForm(
            user_type=user_type,
            mode=mode,
            sections=[{"name": name, "fields": items} for name, items in sections.items()],
            ruleset=ruleset,
            initial_values=initial_values,
            file_fields=file_fields,
        )


def _model_name(slug: str) -> str:
    return "".join(part.title() for part in slug.replace("_", "-").split("-") if part) or "UserType"
