"""Llama — a small MVC web application framework.

An INI-configured application resolves one URI through an ordered route
table, then dispatches to a controller action in the configured module.

Basic usage::

    from llama import Application

    app = Application("development", "config/app.ini")
    body = app.run("/post/view/3")

Data access::

    from llama.data import Database
    db = Database("sqlite:///app.db")
    posts = db.select("posts", {"author": "ann"}, order_by="id DESC")

Validation::

    from llama import Validator
    validator = Validator({"title": "Title"})
    validator.set_presence_of(["title"])
    validator.set_create_mode()
    result = validator.execute(form)
"""

__version__ = "0.1.0"
__all__ = [
    "AppConfig",
    "Application",
    "Bootstrap",
    "Collection",
    "Configuration",
    "ConfigurationError",
    "Controller",
    "Database",
    "ErrorHandler",
    "LlamaError",
    "Locale",
    "Mapper",
    "Model",
    "Route",
    "Router",
    "RoutingError",
    "Session",
    "Timestamp",
    "Validator",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the public API."""
    if name in ("Application", "Bootstrap"):
        from llama import app as _app

        return getattr(_app, name)

    if name == "AppConfig":
        from llama.config import AppConfig

        return AppConfig

    if name == "Controller":
        from llama.controller import Controller

        return Controller

    if name == "Configuration":
        from llama.configuration import Configuration

        return Configuration

    if name in ("Route", "Router"):
        from llama import routing as _routing

        return getattr(_routing, name)

    if name == "Validator":
        from llama.validation import Validator

        return Validator

    if name == "Database":
        from llama.data import Database

        return Database

    if name in ("Collection", "Mapper", "Model"):
        from llama import model as _model

        return getattr(_model, name)

    if name == "ErrorHandler":
        from llama.error_handler import ErrorHandler

        return ErrorHandler

    if name == "Locale":
        from llama.i18n import Locale

        return Locale

    if name == "Session":
        from llama.session import Session

        return Session

    if name == "Timestamp":
        from llama.timestamp import Timestamp

        return Timestamp

    if name in ("ConfigurationError", "LlamaError", "RoutingError"):
        from llama import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
