"""Field validation — declarative rule tables, accumulated errors.

Usage::

    from llama.validation import validate

    result = validate(
        form,
        fields={"title": "Title", "age": "Age"},
        presence_of=["title"],
        numericality_of={"age": {"only_integer": True}},
    )
    if not result:
        # result.errors == {"title": ["Title is required"]}
        ...
"""

from collections.abc import Mapping
from typing import Any

from llama.validation.result import ValidationResult
from llama.validation.rules import (
    FormatOf,
    InclusionOf,
    LengthOf,
    NumericalityOf,
    PresenceOf,
    RuleOptions,
    normalize_rules,
)
from llama.validation.validator import Mode, Validator

__all__ = [
    "FormatOf",
    "InclusionOf",
    "LengthOf",
    "Mode",
    "NumericalityOf",
    "PresenceOf",
    "RuleOptions",
    "ValidationResult",
    "Validator",
    "normalize_rules",
    "validate",
]


def validate(
    data: Mapping[str, Any],
    fields: Mapping[str, str],
    *,
    mode: Mode = "create",
    format_of: Any = None,
    inclusion_of: Any = None,
    length_of: Any = None,
    numericality_of: Any = None,
    presence_of: Any = None,
) -> ValidationResult:
    """Build a one-off ``Validator`` and run it over *data*."""
    validator = Validator(fields)
    validator.set_format_of(format_of)
    validator.set_inclusion_of(inclusion_of)
    validator.set_length_of(length_of)
    validator.set_numericality_of(numericality_of)
    validator.set_presence_of(presence_of)
    if mode == "update":
        validator.set_update_mode()
    else:
        validator.set_create_mode()
    return validator.execute(data)
