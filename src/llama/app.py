"""Application and module bootstrap.

The Application loads the configuration for one environment, then hands
the request URI to the bootstrap of the first configured module::

    [production]
    resources.module_path = app
    resources.modules[] = blog

    app = Application("production", "config/app.ini")
    body = app.run("/post/view/3")

Modules are packages under ``module_path``. Each provides ``bootstrap.py``
defining a ``Bootstrap`` subclass, and controllers named
``<Name>Controller`` in its ``controllers`` module.
"""

from __future__ import annotations

import importlib
import importlib.machinery
import importlib.util
import logging
import sys
from collections.abc import Iterable, Mapping
from pathlib import Path
from types import ModuleType
from typing import Any, ClassVar

from kida import Environment, FileSystemLoader

from llama.config import AppConfig
from llama.configuration import Configuration, read_ini
from llama.controller import Controller
from llama.errors import ApplicationError, ConfigurationError, ControllerError, RouteNotFound
from llama.i18n import Locale
from llama.log import configure_logging
from llama.routing import Route, Router
from llama.view.environment import create_environment

logger = logging.getLogger("llama.app")


def format_module_name(name: str) -> str:
    """``"blog_admin"`` -> ``"BlogAdmin"``; also accepts dashes and spaces."""
    words = name.replace("-", " ").replace("_", " ").split()
    return "".join(word[:1].upper() + word[1:] for word in words)


def load_configuration(
    path: str | Path,
    environment: str,
    base_section: str = "production",
) -> Configuration:
    """Load *environment* from a configuration file chosen by extension."""
    path = Path(path)
    if path.suffix.lower() == ".ini":
        return read_ini(path, environment, base_section)
    msg = f"Unable to load configuration file {str(path)!r}: unsupported format"
    raise ConfigurationError(msg)


# Application modules are imported as submodules of this package, never at
# top level, so a module named like an installed package cannot shadow it.
MODULE_NAMESPACE = "llama_modules"


def _namespace() -> ModuleType:
    package = sys.modules.get(MODULE_NAMESPACE)
    if package is None:
        spec = importlib.machinery.ModuleSpec(MODULE_NAMESPACE, None, is_package=True)
        spec.submodule_search_locations = []
        package = importlib.util.module_from_spec(spec)
        sys.modules[MODULE_NAMESPACE] = package
    return package


def _forget(qualname: str) -> None:
    """Drop *qualname* and its submodules from ``sys.modules``."""
    stale = [m for m in sys.modules if m == qualname or m.startswith(f"{qualname}.")]
    for loaded in stale:
        del sys.modules[loaded]


def _load_package(name: str, directory: Path) -> ModuleType:
    """Import *directory* as ``llama_modules.<name>``, replacing any earlier load.

    Submodules cached from a previous load of the same name (possibly from
    another directory) are discarded first.
    """
    if not name.isidentifier():
        msg = f"Module name {name!r} is not a valid Python identifier"
        raise ApplicationError(msg)

    namespace = _namespace()
    qualname = f"{MODULE_NAMESPACE}.{name}"
    _forget(qualname)

    init = directory / "__init__.py"
    if init.is_file():
        spec = importlib.util.spec_from_file_location(
            qualname, init, submodule_search_locations=[str(directory)]
        )
    else:
        spec = importlib.machinery.ModuleSpec(qualname, None, is_package=True)
        spec.submodule_search_locations = [str(directory)]
    if spec is None:
        msg = f"Unable to load module {name!r} from {directory}"
        raise ApplicationError(msg)

    package = importlib.util.module_from_spec(spec)
    sys.modules[qualname] = package
    if spec.loader is not None:
        try:
            spec.loader.exec_module(package)
        except BaseException:
            sys.modules.pop(qualname, None)
            raise
    setattr(namespace, name, package)
    return package


class Application:
    """One configured application environment."""

    __slots__ = ("_bootstrap", "_config", "_configuration", "_environment", "_locale", "_router")

    def __init__(
        self,
        environment: str,
        config_file: str | Path,
        locale: str | None = None,
        *,
        base_section: str = "production",
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._environment = environment
        self._configuration = load_configuration(config_file, environment, base_section)
        self._config = AppConfig.from_configuration(
            self._configuration.get("settings"),
            environment=environment,
            base_section=base_section,
            locale=locale,
        )
        self._router = Router(environ=environ)
        self._locale = Locale(
            self._config.locale, path=self._config.locale_path, charset=self._config.charset
        )
        self._bootstrap: Bootstrap | None = None

    @property
    def environment(self) -> str:
        return self._environment

    @property
    def configuration(self) -> Configuration:
        return self._configuration

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def router(self) -> Router:
        return self._router

    @property
    def locale(self) -> Locale:
        return self._locale

    @property
    def bootstrap(self) -> Bootstrap | None:
        return self._bootstrap

    def run(self, uri: str = "") -> Any:
        """Dispatch *uri* (or the environment's request path); return the action's result."""
        configure_logging(self._config)
        self._bootstrap = self.load_bootstrap()
        return self._bootstrap.run(uri)

    def modules(self) -> tuple[Path, list[str]]:
        """The configured module directory and module names."""
        resources = self._configuration.get("resources")
        module_path = resources.get("module_path") if isinstance(resources, Configuration) else None
        if not module_path:
            msg = "No module path defined (resources.module_path)"
            raise ApplicationError(msg)

        modules = resources.get("modules")
        if isinstance(modules, str):
            modules = [modules]
        elif isinstance(modules, Configuration):
            modules = list(modules.values())
        if not modules:
            msg = "No modules found (resources.modules)"
            raise ApplicationError(msg)
        return Path(module_path), [str(m) for m in modules]

    def load_bootstrap(self) -> Bootstrap:
        """Import the first module and instantiate its ``Bootstrap``."""
        module_path, modules = self.modules()
        name = modules[0]
        directory = module_path / name
        if not (directory / "bootstrap.py").is_file():
            msg = f"No bootstrap file for module {name!r} in {directory}"
            raise ApplicationError(msg)

        package = _load_package(name, directory)
        module = importlib.import_module(f"{package.__name__}.bootstrap")
        cls = getattr(module, "Bootstrap", None)
        if not (isinstance(cls, type) and issubclass(cls, Bootstrap)):
            msg = f"{name}.bootstrap does not define a Bootstrap subclass"
            raise ApplicationError(msg)

        logger.info("Loaded module %s (%s) from %s", format_module_name(name), name, directory)
        return cls(self)


class Bootstrap:
    """Per-module dispatch: routes, controller lookup and action execution.

    Subclasses override ``routes()``::

        class Bootstrap(llama.Bootstrap):
            def routes(self):
                yield Route("/post/:action/:id", {"controller": "post"}, {"id": r"\\d+"})
                yield Route("/", {"controller": "index", "action": "index"})
    """

    # Dotted module holding the controllers; defaults to ``<package>.controllers``.
    controller_module: ClassVar[str] = ""
    default_controller: ClassVar[str] = "index"
    default_action: ClassVar[str] = "index"

    def __init__(self, application: Application) -> None:
        self._application = application
        self._controller: Controller | None = None
        self._environment: Environment | None = None
        # Resolved now: a later load of a same-named module replaces sys.modules entries.
        self._module_dir = Path(sys.modules[type(self).__module__].__file__ or ".").parent

    @property
    def application(self) -> Application:
        return self._application

    @property
    def router(self) -> Router:
        return self._application.router

    @property
    def locale(self) -> Locale:
        return self._application.locale

    @property
    def config(self) -> AppConfig:
        return self._application.config

    @property
    def package(self) -> str:
        return type(self).__module__.rpartition(".")[0]

    @property
    def module_dir(self) -> Path:
        return self._module_dir

    @property
    def environment(self) -> Environment:
        """Kida environment for this module, created on first use."""
        if self._environment is None:
            self._environment = create_environment(
                self.config, loader=self.template_loader(), locale=self.locale
            )
        return self._environment

    def template_loader(self) -> Any:
        """Loader over ``template_dir``, resolved against the module directory."""
        template_dir = Path(self.config.template_dir)
        if not template_dir.is_absolute():
            template_dir = self.module_dir / template_dir
        return FileSystemLoader(str(template_dir))

    def routes(self) -> Iterable[Route]:
        """Routes to register, in matching order."""
        return ()

    def run(self, uri: str = "") -> Any:
        router = self.router
        for route in self.routes():
            router.add_route(route)
        router.set_uri(uri)
        router.initialise()
        if not router.is_matched:
            raise RouteNotFound(router.uri)

        self.get_controller()
        return self.run_action()

    def get_controller(self) -> Controller:
        """Instantiate ``<Name>Controller`` for the routed controller name."""
        if self._controller is None:
            name = format_module_name(self.router.controller or self.default_controller)
            module_name = self.controller_module or f"{self.package}.controllers"
            try:
                module = importlib.import_module(module_name)
            except ModuleNotFoundError as exc:
                msg = f"Controller module {module_name!r} not found"
                raise ControllerError(msg) from exc

            cls = getattr(module, f"{name}Controller", None)
            if not (isinstance(cls, type) and issubclass(cls, Controller)):
                msg = f"No controller {name}Controller in {module_name}"
                raise ControllerError(msg)
            self._controller = cls(self)
        return self._controller

    def run_action(self, action: str | None = None) -> Any:
        """Run ``<action>_action`` between the controller's filters."""
        controller = self.get_controller()
        action = action or self.router.action or self.default_action
        method_name = f"{action.replace('-', '_')}_action"
        method = getattr(controller, method_name, None)
        if not callable(method):
            msg = f"{type(controller).__name__} has no action {method_name!r}"
            raise ControllerError(msg)

        controller.before_filter(method_name)
        result = method()
        controller.after_filter(method_name)
        return result
