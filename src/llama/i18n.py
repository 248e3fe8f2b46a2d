"""Locale — message translation over stdlib ``gettext`` catalogs.

Catalogs live at ``<path>/<locale>/LC_MESSAGES/<domain>.mo``. Each domain is
bound once per locale; a domain without a catalog translates to itself.
"""

import gettext
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger("llama.i18n")


class Locale:
    __slots__ = ("_catalogs", "_charset", "_locale", "_path")

    def __init__(
        self,
        locale: str | None = None,
        path: str | Path = "locale",
        charset: str = "UTF-8",
    ) -> None:
        self._locale = locale
        self._path = Path(path)
        self._charset = charset
        self._catalogs: dict[str, gettext.NullTranslations] = {}

    @property
    def locale(self) -> str | None:
        return self._locale

    def set_locale(self, locale: str | None) -> None:
        """Switch locale; bound domains are re-bound on next use."""
        self._locale = locale
        self._catalogs = {}

    @property
    def path(self) -> Path:
        return self._path

    def set_path(self, path: str | Path) -> None:
        self._path = Path(path)
        self._catalogs = {}

    @property
    def charset(self) -> str:
        return self._charset

    def set_charset(self, charset: str) -> None:
        self._charset = charset

    @property
    def bound_domains(self) -> list[str]:
        return list(self._catalogs)

    def _catalog(self, domain: str) -> gettext.NullTranslations:
        catalog = self._catalogs.get(domain)
        if catalog is None:
            languages = [self._locale] if self._locale else None
            catalog = gettext.translation(
                domain, localedir=self._path, languages=languages, fallback=True
            )
            if type(catalog) is gettext.NullTranslations:
                logger.debug("No %s catalog for locale %s under %s", domain, self._locale, self._path)
            self._catalogs[domain] = catalog
        return catalog

    def translate(self, domain: str, message: str, *args: Any) -> str:
        """Translate *message* in *domain*, ``%``-formatting it with *args*."""
        text = self._catalog(domain).gettext(message)
        return text % args if args else text

    def __str__(self) -> str:
        return self._locale or ""

    def __repr__(self) -> str:
        return f"Locale({self._locale!r}, path={str(self._path)!r})"
