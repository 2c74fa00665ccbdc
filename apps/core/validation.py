"""
Form validation

Composable per-field rule engine built on the sanitizers. A validator
accumulates checks across ``validate_field`` calls and hands out
independent snapshots through ``get_result``:

    result = (
        create_validator()
        .validate_field("first_name", raw, FieldRules(required=True, max_length=50))
        .validate_field("email", raw_email, FieldRules(required=True, type="email"))
        .get_result()
    )
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional

from apps.core.security import (
    sanitize_email,
    sanitize_phone,
    sanitize_text,
    validate_email,
    validate_password,
    validate_required,
)

FIELD_TYPES = ("email", "phone", "password", "text")

_SANITIZERS = {
    "email": sanitize_email,
    "phone": sanitize_phone,
}


@dataclass(frozen=True)
class FieldRules:
    required: bool = False
    type: str = "text"
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    custom: Optional[Callable[[Any], Optional[str]]] = None

    def __post_init__(self):
        if self.type not in FIELD_TYPES:
            raise ValueError(f"Unsupported field type: {self.type}")


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: Dict[str, str] = field(default_factory=dict)
    sanitized_data: Dict[str, Any] = field(default_factory=dict)

    def first_error(self) -> Optional[tuple[str, str]]:
        """(field, message) of the first field that failed, in check order."""
        for name, message in self.errors.items():
            return name, message
        return None


def _is_empty(value) -> bool:
    return value is None or value == ""


class FormValidator:
    """Stateful validator; snapshots returned by get_result are never mutated."""

    def __init__(self):
        self._errors: Dict[str, str] = {}
        self._sanitized: Dict[str, Any] = {}

    def validate_field(self, name: str, value: Any, rules: FieldRules | Mapping[str, Any] | None = None) -> "FormValidator":
        if rules is None:
            rules = FieldRules()
        elif not isinstance(rules, FieldRules):
            rules = FieldRules(**rules)

        sanitized = value
        if isinstance(value, str):
            sanitized = _SANITIZERS.get(rules.type, sanitize_text)(value)

        self._sanitized[name] = sanitized

        if rules.required:
            error = validate_required(sanitized, name)
            if error:
                self._errors[name] = error
                return self

        if _is_empty(sanitized):
            return self

        if rules.type == "email":
            error = validate_email(sanitized)
            if error:
                self._errors[name] = error
        elif rules.type == "password":
            error = validate_password(sanitized)
            if error:
                self._errors[name] = error

        if isinstance(sanitized, str):
            if rules.min_length is not None and len(sanitized) < rules.min_length:
                self._errors[name] = f"{name} must be at least {rules.min_length} characters"
            if rules.max_length is not None and len(sanitized) > rules.max_length:
                self._errors[name] = f"{name} must not exceed {rules.max_length} characters"

        if rules.custom is not None:
            error = rules.custom(sanitized)
            if error:
                self._errors[name] = error

        return self

    def get_result(self) -> ValidationResult:
        return ValidationResult(
            is_valid=not self._errors,
            errors=dict(self._errors),
            sanitized_data=dict(self._sanitized),
        )

    def reset(self) -> "FormValidator":
        self._errors = {}
        self._sanitized = {}
        return self


def create_validator() -> FormValidator:
    return FormValidator()
