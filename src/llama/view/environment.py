"""Kida environment setup.

Creates a kida Environment from ``AppConfig``, registers the form helpers
as globals and ``timestamp`` as a filter. Controllers render through the
environment their bootstrap creates.
"""

from collections.abc import Callable
from typing import Any

from kida import ChoiceLoader, Environment, FileSystemLoader

from llama.config import AppConfig
from llama.i18n import Locale
from llama.timestamp import DEFAULT_FORMAT, Timestamp
from llama.view.helpers import HELPERS


def timestamp(value: Any, fmt: str = DEFAULT_FORMAT) -> str:
    """Format epoch seconds, an ISO string or a datetime.

    Example:
        {{ post.created | timestamp("%d/%m/%Y") }}
    """
    return str(Timestamp(value, fmt))


BUILTIN_FILTERS: dict[str, Callable[..., Any]] = {
    "timestamp": timestamp,
}


def create_environment(
    config: AppConfig,
    filters: dict[str, Callable[..., Any]] | None = None,
    globals_: dict[str, Any] | None = None,
    *,
    loader: Any = None,
    locale: Locale | None = None,
) -> Environment:
    """Create a kida Environment for one application.

    *loader* replaces the default ``FileSystemLoader`` over
    ``config.template_dir``. With a *locale*, templates can call
    ``translate(domain, message, *args)``.
    """
    if loader is None:
        loader = ChoiceLoader([FileSystemLoader(str(config.template_dir))])

    env = Environment(
        loader=loader,
        autoescape=config.autoescape,
        trim_blocks=config.trim_blocks,
        lstrip_blocks=config.lstrip_blocks,
    )

    env.update_filters(BUILTIN_FILTERS)
    if filters:
        env.update_filters(filters)

    for name, value in HELPERS.items():
        env.add_global(name, value)
    if locale is not None:
        env.add_global("translate", locale.translate)
        env.add_global("locale", str(locale))
    for name, value in (globals_ or {}).items():
        env.add_global(name, value)

    return env
