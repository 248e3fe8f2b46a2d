"""Ordered route table resolving one URI to a controller/action/params triple.

Routes are registered during bootstrap, matched once in insertion order by
``initialise()``, then discarded: once a request is resolved the candidate
set is no longer needed.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from llama.errors import DuplicateRoute, NoRoutes, NoUriSet
from llama.routing.route import Route

logger = logging.getLogger("llama.routing")


def default_uri(environ: Mapping[str, str] | None = None) -> str:
    """Return the incoming request path from the environment collaborator.

    Looks at ``REQUEST_URI`` first, then the WSGI-style ``PATH_INFO``.
    Falls back to ``os.environ`` when no mapping is supplied.
    """
    source = os.environ if environ is None else environ
    return source.get("REQUEST_URI") or source.get("PATH_INFO") or ""


class Router:
    """Ordered collection of Routes.

    Usage::

        router = Router("/user/1/")
        router.add_route(Route("/user/:id", {"controller": "user", "action": "view"}))
        router.initialise()
        router.controller, router.action, router.get_param("id")
        # ("user", "view", "1")
    """

    __slots__ = ("_matched", "_routes", "_uri", "action", "controller", "params")

    def __init__(self, uri: str = "", environ: Mapping[str, str] | None = None) -> None:
        self._uri = ""
        self._routes: dict[str, Route] = {}
        self._matched = False
        self.controller: str | None = None
        self.action: str | None = None
        self.params: dict[str, str] = {}
        self.set_uri(uri or default_uri(environ))

    @property
    def uri(self) -> str:
        return self._uri

    @property
    def routes(self) -> Mapping[str, Route]:
        """Read-only view of the registered routes, keyed by rule."""
        return MappingProxyType(self._routes)

    @property
    def is_matched(self) -> bool:
        """True once ``initialise()`` found a matching Route."""
        return self._matched

    def set_uri(self, uri: str = "") -> Router:
        """Set the URI to match. Empty strings leave the current URI untouched."""
        if uri:
            self._uri = uri
        return self

    def add_route(self, route: Route) -> None:
        """Register *route*. Raises ``DuplicateRoute`` for a repeated rule."""
        if route.rule in self._routes:
            raise DuplicateRoute(route.rule)
        self._routes[route.rule] = route

    def set_route(self, route: Route) -> None:
        """Copy the resolved state out of a matched Route."""
        self.controller = route.controller
        self.action = route.action
        self.params = dict(route.params)
        self._matched = True

    def initialise(self) -> None:
        """Match the URI against the routes in insertion order.

        Raises ``NoUriSet`` when there is no URI and ``NoRoutes`` when the
        route set is empty. The route set is cleared afterwards whether or
        not a Route matched, so a second call raises ``NoRoutes``.
        """
        if not self._uri:
            raise NoUriSet()
        if not self._routes:
            raise NoRoutes()

        try:
            for route in self._routes.values():
                if route.match(self._uri):
                    self.set_route(route)
                    logger.debug("%s matched %r", self._uri, route.rule)
                    break
            else:
                logger.debug("%s matched none of %d routes", self._uri, len(self._routes))
        finally:
            self._routes = {}

    def get_param(self, name: str, default: Any = None) -> Any:
        """Return a matched parameter, or *default* if it was not captured."""
        return self.params.get(name, default)
