"""Validation result — immutable container for validated data and errors."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """The outcome of running a Validator over submitted data.

    ``is_valid`` is True when there are no errors.
    The result is falsy when invalid, so you can write::

        result = validator.execute(form)
        if not result:
            return self.render("form.html", form=form, errors=result.errors)

    ``data`` holds the submitted values narrowed to the known fields.

    ``errors`` maps field names to lists of messages::

        {"title": ["Title is required"],
         "age": ["Age is not a number"]}
    """

    data: dict[str, Any]
    errors: dict[str, list[str]]

    @property
    def is_valid(self) -> bool:
        """True if validation passed with no errors."""
        return not self.errors

    def __bool__(self) -> bool:
        """Falsy when invalid, enabling the ``if not result:`` pattern."""
        return self.is_valid
