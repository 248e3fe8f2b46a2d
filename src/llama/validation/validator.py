"""Validator — runs the five rule tables over submitted data.

Usage::

    validator = Validator({"title": "Title", "age": "Age"})
    validator.set_presence_of(["title"])
    validator.set_numericality_of({"age": {"greater_than": 0, "allow_nil": True}})
    validator.set_create_mode()

    result = validator.execute(form)
    if not result:
        errors = result.errors   # {"title": ["Title is required"]}

Field failures are collected, never raised. The only exception is
``ModeNotSet`` when ``execute()`` runs before a mode was chosen.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar, Literal

from llama.errors import ModeNotSet
from llama.validation.result import ValidationResult
from llama.validation.rules import (
    FormatOf,
    InclusionOf,
    LengthOf,
    NumericalityOf,
    PresenceOf,
    Rule,
    RuleType,
    normalize_rules,
)

type Mode = Literal["create", "update"]


def evaluate(rules: Mapping[str, Rule], validator: Validator) -> None:
    """Apply one rule table, appending each failure to *validator*.

    For every field: absent values are skipped under ``allow_nil`` (when the
    rule honors it) and otherwise treated as ``""``; empty strings are
    skipped under ``allow_blank`` (when honored); then the ``if``/``unless``
    /``on`` guards decide whether the check runs at all.
    """
    data = validator.data
    for name, rule in rules.items():
        options = rule.options
        value = data.get(name)
        if value is None:
            if rule.honors_nil and options.allow_nil:
                continue
            value = ""

        if rule.honors_blank and options.allow_blank and value == "":
            continue
        if options.skips(validator.mode, data):
            continue

        for message in rule.check(value, validator.label(name)):
            validator.add_error(name, message)


class Validator:
    """Field validation over five independent rule tables.

    Tables run in a fixed order: format, inclusion, length, numericality,
    presence. Each is configured through its setter with a mapping or a
    list of field names (see ``normalize_rules``).
    """

    __slots__ = ("_data", "_errors", "_fields", "_mode", "_tables")

    # Subclasses may declare labels and rule tables at class level.
    field_labels: ClassVar[Mapping[str, str]] = {}
    format_of: ClassVar[Any] = None
    inclusion_of: ClassVar[Any] = None
    length_of: ClassVar[Any] = None
    numericality_of: ClassVar[Any] = None
    presence_of: ClassVar[Any] = None

    def __init__(self, fields: Mapping[str, str] | None = None) -> None:
        self._fields: dict[str, str] = dict(fields or self.field_labels)
        self._data: dict[str, Any] = {}
        self._errors: dict[str, list[str]] = {}
        self._mode: Mode | None = None
        self._tables: dict[RuleType, dict[str, Rule]] = {
            FormatOf: {},
            InclusionOf: {},
            LengthOf: {},
            NumericalityOf: {},
            PresenceOf: {},
        }
        self.set_format_of(self.format_of)
        self.set_inclusion_of(self.inclusion_of)
        self.set_length_of(self.length_of)
        self.set_numericality_of(self.numericality_of)
        self.set_presence_of(self.presence_of)

    # -- Mode --

    @property
    def mode(self) -> Mode | None:
        return self._mode

    def set_create_mode(self) -> None:
        self._mode = "create"

    def set_update_mode(self) -> None:
        self._mode = "update"

    # -- Fields and data --

    @property
    def fields(self) -> dict[str, str]:
        """Field name to human label, e.g. ``{"first_name": "First Name"}``."""
        return self._fields

    def set_fields(self, fields: Mapping[str, str]) -> None:
        self._fields = dict(fields)

    def label(self, name: str) -> str:
        """Human label for *name*, falling back to the name itself."""
        return self._fields.get(name, name)

    @property
    def data(self) -> dict[str, Any]:
        return self._data

    def set_data(self, data: Mapping[str, Any]) -> None:
        """Store *data* narrowed to the known fields."""
        self._data = {name: value for name, value in data.items() if name in self._fields}

    # -- Rule tables --

    def rules(self, kind: RuleType) -> dict[str, Rule]:
        """The normalized table for one rule kind."""
        return self._tables[kind]

    def set_format_of(self, table: Any) -> None:
        self._tables[FormatOf] = normalize_rules(FormatOf, table)

    def set_inclusion_of(self, table: Any) -> None:
        self._tables[InclusionOf] = normalize_rules(InclusionOf, table)

    def set_length_of(self, table: Any) -> None:
        self._tables[LengthOf] = normalize_rules(LengthOf, table)

    def set_numericality_of(self, table: Any) -> None:
        self._tables[NumericalityOf] = normalize_rules(NumericalityOf, table)

    def set_presence_of(self, table: Any) -> None:
        self._tables[PresenceOf] = normalize_rules(PresenceOf, table)

    # -- Errors --

    @property
    def errors(self) -> dict[str, list[str]]:
        return self._errors

    def add_error(self, name: str, message: str) -> None:
        self._errors.setdefault(name, []).append(message)

    def has_errors(self) -> bool:
        return bool(self._errors)

    @property
    def result(self) -> ValidationResult:
        return ValidationResult(data=dict(self._data), errors=dict(self._errors))

    # -- Execution --

    def execute(self, data: Mapping[str, Any] | None = None) -> ValidationResult:
        """Run every non-empty rule table over *data* (or the stored data).

        Errors from a previous run are discarded first.
        Raises ``ModeNotSet`` if neither mode setter was called.
        """
        if self._mode is None:
            raise ModeNotSet()

        if data is not None:
            self.set_data(data)

        self._errors = {}
        for rules in self._tables.values():
            if rules:
                evaluate(rules, self)
        return self.result
