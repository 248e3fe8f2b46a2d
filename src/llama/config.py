"""Application settings.

AppConfig is a frozen dataclass: immutable after creation, built from the
``settings`` node of the loaded configuration tree.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from llama.configuration.tree import Configuration
from llama.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Resolved application settings. Immutable after creation.

    Every field has a default. An INI ``settings`` section overrides them::

        [production]
        settings.log_level = warning
        settings.template_dir = app/templates
    """

    # Environment
    environment: str = "production"
    base_section: str = "production"
    locale: str | None = None

    # Logging
    log_level: str = "info"

    # Templates
    template_dir: str | Path = "templates"
    autoescape: bool = True
    trim_blocks: bool = True
    lstrip_blocks: bool = True

    # Sessions
    secret_key: str = ""
    session_name: str = "llama_session"
    session_max_age: int = 86400  # 24 hours

    # Locale files
    locale_path: str | Path = "locale"
    charset: str = "UTF-8"

    @classmethod
    def from_configuration(
        cls,
        settings: Configuration | None,
        **overrides: Any,
    ) -> AppConfig:
        """Build from a ``settings`` node; unknown keys raise ``ConfigurationError``."""
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for name in settings or ():
            if name not in known:
                msg = f"Unknown setting {name!r}. Known settings: {', '.join(sorted(known))}"
                raise ConfigurationError(msg)
            values[name] = settings[name]
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
