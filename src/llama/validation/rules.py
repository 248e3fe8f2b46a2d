"""Rule configuration records and their checks.

Each rule kind is a frozen dataclass holding its own bounds plus a shared
``RuleOptions`` record (guards, mode restriction, message override)::

    LengthOf(maximum=200)
    NumericalityOf(greater_than=0, options=RuleOptions(allow_nil=True))
    PresenceOf(options=RuleOptions(on="create", message="%s can't be blank"))

Rule tables may also be written as static configuration and normalized
with ``normalize_rules()``::

    normalize_rules(LengthOf, {"title": {"maximum": 200, "allow_blank": True}})
    normalize_rules(PresenceOf, ["title", "body"])

Messages are ``%``-templates. The field's human label is the first
substitution; rule-specific values follow. Templates may use fewer
placeholders than values, extra values are dropped.
"""

import dataclasses
import re
from collections.abc import Callable, Collection, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar, Protocol

from llama.errors import ConfigurationError

# Option keys shared by every rule kind, mapped to RuleOptions fields.
_OPTION_KEYS: dict[str, str] = {
    "if": "if_",
    "unless": "unless",
    "on": "on",
    "allow_nil": "allow_nil",
    "allow_blank": "allow_blank",
    "message": "message",
}

# Rule keys that collide with Python keywords.
_RULE_KEYS: dict[str, str] = {"in": "in_"}

# Every printf conversion; ``%%`` is matched so its second ``%`` is not counted.
_PLACEHOLDER_RE = re.compile(r"%(%|[-#0 +]*(?:\*|\d+)?(?:\.(?:\*|\d+))?[diouxXeEfFgGcrsa])")
_NUMBER_RE = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?\s*$")
_INTEGER_RE = re.compile(r"^\s*[+-]?\d+\s*$")
_DELIMITED_RE = re.compile(r"^/(?P<body>.*)/(?P<flags>[imsx]*)$", re.DOTALL)
_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL, "x": re.VERBOSE}


def format_message(template: str, *values: Any) -> str:
    """``%``-format *template* with as many of *values* as it has placeholders."""
    wanted = sum(
        1 + spec.count("*") for spec in _PLACEHOLDER_RE.findall(template) if spec != "%"
    )
    return template % values[:wanted]



def compile_regex(pattern: str | re.Pattern[str]) -> re.Pattern[str]:
    """Compile a raw pattern or a ``/pattern/flags`` delimited one."""
    if isinstance(pattern, re.Pattern):
        return pattern
    m = _DELIMITED_RE.match(pattern)
    if m is None:
        return re.compile(pattern)
    flags = 0
    for char in m.group("flags"):
        flags |= _FLAGS[char]
    return re.compile(m.group("body"), flags)


def to_number(value: Any) -> int | float | None:
    """Return *value* as a number, or ``None`` if it is not numeric."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str) and _NUMBER_RE.match(value):
        return int(value) if _INTEGER_RE.match(value) else float(value)
    return None


def is_integer(value: Any) -> bool:
    """True for ``int`` values and integer strings (``"42"``), not ``bool``."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, str) and _INTEGER_RE.match(value) is not None


@dataclass(frozen=True, slots=True)
class RuleOptions:
    """Guards and message override shared by every rule kind.

    ``if_`` and ``unless`` may be plain values or callables taking the
    submitted data. ``on`` is ``"save"`` (always) or a validator mode.
    """

    if_: Any = True
    unless: Any = False
    on: str = "save"
    allow_nil: bool = False
    allow_blank: bool = False
    message: str | None = None

    def skips(self, mode: str | None, data: Mapping[str, Any]) -> bool:
        """True when the guards say this rule must not run."""
        condition = self.if_(data) if callable(self.if_) else self.if_
        if not condition:
            return True
        exclusion = self.unless(data) if callable(self.unless) else self.unless
        if exclusion:
            return True
        return self.on != "save" and self.on != mode


class Rule(Protocol):
    """What the evaluator needs from a rule record."""

    options: RuleOptions
    honors_nil: ClassVar[bool]
    honors_blank: ClassVar[bool]

    def check(self, value: Any, label: str) -> list[str]: ...


# ---------------------------------------------------------------------------
# Format
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FormatOf:
    """Value must match ``regex`` (searched, not anchored)."""

    regex: str | re.Pattern[str] | None = None
    options: RuleOptions = field(default_factory=RuleOptions)

    honors_nil: ClassVar[bool] = True
    honors_blank: ClassVar[bool] = True
    default_message: ClassVar[str] = "%s is invalid"

    def check(self, value: Any, label: str) -> list[str]:
        if self.regex is None:
            msg = f"FormatOf for {label!r} has no regex configured"
            raise ConfigurationError(msg)
        if compile_regex(self.regex).search(str(value)):
            return []
        return [format_message(self.options.message or self.default_message, label)]


# ---------------------------------------------------------------------------
# Inclusion
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class InclusionOf:
    """Value must be a member of ``in_``.

    Membership is loose: ``"1"`` is included in ``(1, 2, 3)``.
    """

    in_: Collection[Any] = ()
    options: RuleOptions = field(default_factory=RuleOptions)

    honors_nil: ClassVar[bool] = True
    honors_blank: ClassVar[bool] = True
    default_message: ClassVar[str] = "%s is not included in the list"

    def check(self, value: Any, label: str) -> list[str]:
        if value in self.in_ or str(value) in {str(item) for item in self.in_}:
            return []
        return [format_message(self.options.message or self.default_message, label)]


# ---------------------------------------------------------------------------
# Length
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LengthOf:
    """Length in characters, or in whitespace-separated words with ``word_count``.

    ``minimum`` and ``maximum`` are inclusive bounds. When both are set a
    violation of either produces the single "between" message.
    """

    is_equal_to: int | None = None
    minimum: int | None = None
    maximum: int | None = None
    word_count: bool = False
    wrong_length_message: str = "%s is the wrong length (should be %s %s)"
    too_short_message: str = "%s must be more than %s %s"
    too_long_message: str = "%s must be less than %s %s"
    between_message: str = "%s must be between %s and %s %s"
    options: RuleOptions = field(default_factory=RuleOptions)

    honors_nil: ClassVar[bool] = True
    honors_blank: ClassVar[bool] = True

    def _unit(self, bound: int) -> str:
        unit = "word" if self.word_count else "character"
        return unit if bound == 1 else f"{unit}s"

    def _template(self, template: str) -> str:
        return self.options.message or template

    def check(self, value: Any, label: str) -> list[str]:
        text = "" if value is None else str(value)
        length = len(text.split()) if self.word_count else len(text)
        errors: list[str] = []

        if self.is_equal_to is not None and length != self.is_equal_to:
            errors.append(
                format_message(
                    self._template(self.wrong_length_message),
                    label,
                    self.is_equal_to,
                    self._unit(self.is_equal_to),
                )
            )

        if self.minimum is not None and self.maximum is not None:
            if not self.minimum <= length <= self.maximum:
                errors.append(
                    format_message(
                        self._template(self.between_message),
                        label,
                        self.minimum,
                        self.maximum,
                        self._unit(self.maximum),
                    )
                )
        elif self.minimum is not None and length < self.minimum:
            errors.append(
                format_message(
                    self._template(self.too_short_message),
                    label,
                    self.minimum,
                    self._unit(self.minimum),
                )
            )
        elif self.maximum is not None and length > self.maximum:
            errors.append(
                format_message(
                    self._template(self.too_long_message),
                    label,
                    self.maximum,
                    self._unit(self.maximum),
                )
            )
        return errors


# ---------------------------------------------------------------------------
# Numericality
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NumericalityOf:
    """Value must be numeric; each configured comparison is checked independently.

    A non-numeric value reports only "is not a number" and skips the rest.
    ``allow_blank`` is not honored: an empty string is not a number.
    """

    only_integer: bool = False
    greater_than: int | float | None = None
    greater_than_or_equal_to: int | float | None = None
    equal_to: int | float | None = None
    less_than: int | float | None = None
    less_than_or_equal_to: int | float | None = None
    integer_message: str = "%s is not an integer"
    greater_than_message: str = "%s is not greater than %s"
    greater_than_or_equal_to_message: str = "%s is not greater than or equal to %s"
    equal_to_message: str = "%s is not equal to %s"
    less_than_message: str = "%s is not less than %s"
    less_than_or_equal_to_message: str = "%s is not less than or equal to %s"
    options: RuleOptions = field(default_factory=RuleOptions)

    honors_nil: ClassVar[bool] = True
    honors_blank: ClassVar[bool] = False
    default_message: ClassVar[str] = "%s is not a number"

    # (bound field, message field, fails-when)
    _COMPARISONS: ClassVar[tuple[tuple[str, str, Callable[[float, float], bool]], ...]] = (
        ("greater_than", "greater_than_message", lambda v, b: v <= b),
        ("greater_than_or_equal_to", "greater_than_or_equal_to_message", lambda v, b: v < b),
        ("equal_to", "equal_to_message", lambda v, b: v != b),
        ("less_than", "less_than_message", lambda v, b: v >= b),
        ("less_than_or_equal_to", "less_than_or_equal_to_message", lambda v, b: v > b),
    )

    def check(self, value: Any, label: str) -> list[str]:
        number = to_number(value)
        if number is None:
            return [format_message(self.options.message or self.default_message, label)]

        errors: list[str] = []
        if self.only_integer and not is_integer(value):
            errors.append(format_message(self.integer_message, label))

        for bound_name, message_name, fails in self._COMPARISONS:
            bound = getattr(self, bound_name)
            if bound is not None and fails(number, bound):
                errors.append(format_message(getattr(self, message_name), label, bound))
        return errors


# ---------------------------------------------------------------------------
# Presence
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PresenceOf:
    """Field must be present and not the empty string.

    Guards apply, but ``allow_nil`` and ``allow_blank`` are ignored.
    """

    options: RuleOptions = field(default_factory=RuleOptions)

    honors_nil: ClassVar[bool] = False
    honors_blank: ClassVar[bool] = False
    default_message: ClassVar[str] = "%s is required"

    def check(self, value: Any, label: str) -> list[str]:
        if value is None or value == "":
            return [format_message(self.options.message or self.default_message, label)]
        return []


type RuleType = type[FormatOf] | type[InclusionOf] | type[LengthOf] | type[NumericalityOf] | type[PresenceOf]

# Evaluation order used by Validator.execute().
RULE_KINDS: tuple[RuleType, ...] = (FormatOf, InclusionOf, LengthOf, NumericalityOf, PresenceOf)


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def build_rule(kind: RuleType, raw: Any) -> Rule:
    """Turn one table entry into a rule record of *kind*.

    *raw* is ``None`` (defaults), an instance of *kind* (kept), or a
    mapping of option and rule keys merged over the defaults.
    """
    if raw is None:
        return kind()
    if isinstance(raw, kind):
        return raw
    if not isinstance(raw, Mapping):
        msg = f"{kind.__name__} config must be a mapping, got {type(raw).__name__}"
        raise ConfigurationError(msg)

    rule_fields = {f.name for f in dataclasses.fields(kind)} - {"options"}
    options: dict[str, Any] = {}
    values: dict[str, Any] = {}
    for key, value in raw.items():
        if key in _OPTION_KEYS:
            options[_OPTION_KEYS[key]] = value
        elif _RULE_KEYS.get(key, key) in rule_fields:
            values[_RULE_KEYS.get(key, key)] = value
        else:
            known = sorted([*_OPTION_KEYS, *(k for k in rule_fields)])
            msg = f"Unknown {kind.__name__} option {key!r}. Known options: {', '.join(known)}"
            raise ConfigurationError(msg)
    return kind(**values, options=RuleOptions(**options))


def normalize_rules(kind: RuleType, table: Any) -> dict[str, Rule]:
    """Normalize a rule table into ``{field: rule}``.

    Accepts a mapping of field to config, or an iterable whose items are
    bare field names or ``(field, config)`` pairs.
    """
    if not table:
        return {}

    if isinstance(table, Mapping):
        entries: Iterable[tuple[str, Any]] = table.items()
    else:
        entries = (
            (item, None) if isinstance(item, str) else (item[0], item[1])
            for item in table
        )
    return {name: build_rule(kind, raw) for name, raw in entries}
