"""Llama exception hierarchy.

Shared across Router, Application, Validator and the data layer so every
module raises and catches the same types.
"""


class LlamaError(Exception):
    """Base for all llama-specific errors."""


class ConfigurationError(LlamaError):
    """Raised when configuration is unreadable, unparsable or incomplete.

    Typically raised while the Application loads its INI file.
    """


class ApplicationError(LlamaError):
    """Raised when the application cannot discover or boot a module."""


class ControllerError(ApplicationError):
    """Raised when a controller or action cannot be resolved."""


class ResourceError(LlamaError):
    """Raised when a file needed for diagnostics is missing or unreadable."""


# -- Routing --


class RoutingError(LlamaError):
    """Base for router and route failures."""


class EmptyRule(RoutingError):  # noqa: N818
    """A Route was constructed without a rule."""

    def __init__(self, detail: str = "Rule is empty") -> None:
        super().__init__(detail)


class DuplicateRoute(RoutingError):  # noqa: N818
    """A Route with an identical rule string is already registered."""

    def __init__(self, rule: str) -> None:
        self.rule = rule
        super().__init__(f"Duplicate route detected: {rule!r}")


class NoUriSet(RoutingError):  # noqa: N818
    """``Router.initialise()`` was called before a URI was set."""

    def __init__(self, detail: str = "No URI has been set") -> None:
        super().__init__(detail)


class NoRoutes(RoutingError):  # noqa: N818
    """``Router.initialise()`` was called with an empty route set."""

    def __init__(self, detail: str = "No routes added") -> None:
        super().__init__(detail)


class RouteNotFound(RoutingError):  # noqa: N818
    """No registered Route matched the URI."""

    def __init__(self, uri: str) -> None:
        self.uri = uri
        super().__init__(f"No route matches {uri!r}")


# -- Validation --


class ModeNotSet(LlamaError):  # noqa: N818
    """``Validator.execute()`` was called before a mode was chosen."""

    def __init__(self, detail: str = "Validation mode has not been set") -> None:
        super().__init__(detail)
