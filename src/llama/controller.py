"""Controller base class.

A controller groups the actions for one routed controller name. Actions are
methods named ``<action>_action``; ``before_filter`` and ``after_filter``
run around every action::

    class PostController(Controller):
        def before_filter(self, action: str) -> None:
            self.posts = PostMapper(self.bootstrap.db)

        def view_action(self) -> str:
            post = self.posts.find_by_id(self.get_param("id"))
            return self.render("post/view.html", post=post)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from llama.app import Bootstrap
    from llama.i18n import Locale
    from llama.routing import Router


class Controller:
    def __init__(self, bootstrap: Bootstrap) -> None:
        self._bootstrap = bootstrap

    @property
    def bootstrap(self) -> Bootstrap:
        return self._bootstrap

    @property
    def router(self) -> Router:
        return self._bootstrap.router

    @property
    def locale(self) -> Locale:
        return self._bootstrap.locale

    @property
    def params(self) -> dict[str, str]:
        """Parameters captured from the URI by the matched route."""
        return self.router.params

    def get_param(self, name: str, default: Any = None) -> Any:
        return self.router.get_param(name, default)

    def translate(self, domain: str, message: str, *args: Any) -> str:
        return self.locale.translate(domain, message, *args)

    # -- Filters --

    def before_filter(self, action: str) -> None:
        """Called with the action method name before it runs."""

    def after_filter(self, action: str) -> None:
        """Called with the action method name after it returns."""

    # -- Rendering --

    def render(self, template: str, /, **context: Any) -> str:
        """Render *template* through the bootstrap's kida environment."""
        context.setdefault("params", self.params)
        tpl = self._bootstrap.environment.get_template(template)
        return tpl.render(context)
