"""A single URI-matching rule with named parameters.

Rules are plain paths with ``:name`` placeholders::

    Route("/user/:id", {"controller": "user", "action": "view"}, {"id": r"\d+"})

``:controller`` and ``:action`` are ordinary placeholders whose captured
values become the Route's controller and action; every other placeholder
lands in ``params``. Any rule may omit either.
"""

import itertools
import re
from collections.abc import Mapping
from typing import Any
from urllib.parse import unquote_plus

from llama.errors import EmptyRule

DEFAULT_CONSTRAINT = r"[a-zA-Z0-9_+\-%]+"

_TOKEN_RE = re.compile(r":(\w+)")


class Route:
    """A URI-matching rule.

    ``match()`` mutates the Route: on success ``controller``, ``action`` and
    ``params`` hold the values captured from the URI. Copy them out before
    matching the same Route against another URI.
    """

    __slots__ = ("_constraints", "_pattern", "_rule", "action", "controller", "params")

    def __init__(
        self,
        rule: str,
        target: Mapping[str, Any] | None = None,
        constraints: Mapping[str, str] | None = None,
    ) -> None:
        if not rule:
            raise EmptyRule()

        target = target or {}
        self._rule = rule
        self._constraints: dict[str, str] = dict(constraints or {})
        self._pattern: re.Pattern[str] | None = None
        self.controller: str | None = target.get("controller") or None
        self.action: str | None = target.get("action") or None
        self.params: dict[str, str] = dict(target.get("params") or {})

    @property
    def rule(self) -> str:
        """The rule string. Immutable after construction."""
        return self._rule

    @property
    def tokens(self) -> list[str]:
        """Placeholder names in the order they appear in the rule."""
        return _TOKEN_RE.findall(self._rule)

    @property
    def pattern(self) -> re.Pattern[str]:
        """The compiled, fully anchored regex for this rule."""
        if self._pattern is None:
            counter = itertools.count()
            body = _TOKEN_RE.sub(
                lambda m: f"(?P<_{next(counter)}>{self.get_constraint(m.group(0))})",
                self._rule,
            )
            self._pattern = re.compile(f"^{body}/?$")
        return self._pattern

    def get_constraint(self, token: str) -> str:
        """Return the regex fragment for a ``:name`` token (or bare name)."""
        key = token[1:] if token.startswith(":") else token
        return self._constraints.get(key, DEFAULT_CONSTRAINT)

    def match(self, uri: str) -> bool:
        """Match *uri* against the rule, binding captured values on success."""
        m = self.pattern.match(uri)
        if m is None:
            return False

        for index, name in enumerate(self.tokens):
            decoded = unquote_plus(m.group(f"_{index}"))
            if name == "controller":
                self.controller = decoded
            elif name == "action":
                self.action = decoded
            else:
                self.params[name] = decoded
        return True

    def __repr__(self) -> str:
        return f"Route({self._rule!r}, controller={self.controller!r}, action={self.action!r})"
