"""Tests for llama.app — application loading, bootstrap and dispatch."""

import logging
import sys
import textwrap
from pathlib import Path

import pytest

from llama.app import Application, Bootstrap, format_module_name, load_configuration
from llama.controller import Controller
from llama.errors import ApplicationError, ConfigurationError, ControllerError, RouteNotFound

BOOTSTRAP = '''
from llama.app import Bootstrap as BaseBootstrap
from llama.routing import Route


class Bootstrap(BaseBootstrap):
    def routes(self):
        yield Route("/post/:action/:id", {"controller": "post"}, {"id": r"\\d+"})
        yield Route("/go/:controller")
        yield Route("/", {"controller": "index", "action": "index"})
'''

CONTROLLERS = '''
from llama.controller import Controller


class IndexController(Controller):
    def index_action(self):
        return "home"


class PostController(Controller):
    calls = []

    def before_filter(self, action):
        self.calls.append(("before", action))

    def after_filter(self, action):
        self.calls.append(("after", action))

    def view_action(self):
        self.calls.append(("view", self.get_param("id")))
        return self.render("post/view.html", title="Post " + self.get_param("id"))

    def show_all_action(self):
        return "all"
'''


def write_module(
    root: Path, name: str = "blog", bootstrap: str = BOOTSTRAP, controllers: str = CONTROLLERS
) -> Path:
    module = root / "modules" / name
    (module / "templates" / "post").mkdir(parents=True)
    (module / "bootstrap.py").write_text(textwrap.dedent(bootstrap))
    (module / "controllers.py").write_text(textwrap.dedent(controllers))
    (module / "templates" / "post" / "view.html").write_text("<h1>{{ title }}</h1>")
    return module


def write_config(root: Path, body: str) -> Path:
    path = root / "app.ini"
    path.write_text(textwrap.dedent(body))
    return path


@pytest.fixture(autouse=True)
def _restore_log_level():
    level = logging.getLogger("llama").level
    yield
    logging.getLogger("llama").setLevel(level)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    write_module(tmp_path)
    return write_config(
        tmp_path,
        f"""
        [production]
        resources.module_path = {tmp_path / "modules"}
        resources.modules[] = blog
        settings.log_level = warning

        [development : production]
        settings.log_level = debug
        settings.locale = en_AU
        """,
    )


# =============================================================================
# Helpers
# =============================================================================


class TestFormatModuleName:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("blog", "Blog"),
            ("blog_admin", "BlogAdmin"),
            ("blog-admin", "BlogAdmin"),
            ("user profile", "UserProfile"),
            ("", ""),
        ],
    )
    def test_format(self, name: str, expected: str) -> None:
        assert format_module_name(name) == expected


class TestLoadConfiguration:
    def test_unsupported_extension(self, tmp_path: Path) -> None:
        path = tmp_path / "app.json"
        path.write_text("{}")
        with pytest.raises(ConfigurationError, match="unsupported format"):
            load_configuration(path, "production")

    def test_ini(self, config_file: Path) -> None:
        configuration = load_configuration(config_file, "development")
        assert configuration.get_path("settings.log_level") == "debug"
        assert configuration.get_path("resources.modules") == ["blog"]


# =============================================================================
# Application
# =============================================================================


class TestApplication:
    def test_properties(self, config_file: Path) -> None:
        app = Application("production", config_file, environ={})
        assert app.environment == "production"
        assert app.config.log_level == "warning"
        assert app.config.environment == "production"
        assert app.bootstrap is None

    def test_environment_inheritance(self, config_file: Path) -> None:
        app = Application("development", config_file, environ={})
        assert app.config.log_level == "debug"
        assert app.locale.locale == "en_AU"

    def test_locale_argument_wins(self, config_file: Path) -> None:
        app = Application("development", config_file, "fr_FR", environ={})
        assert app.locale.locale == "fr_FR"

    def test_modules(self, config_file: Path, tmp_path: Path) -> None:
        app = Application("production", config_file, environ={})
        assert app.modules() == (tmp_path / "modules", ["blog"])

    def test_single_module_string(self, tmp_path: Path) -> None:
        write_module(tmp_path)
        config_file = write_config(
            tmp_path,
            f"""
            [production]
            resources.module_path = {tmp_path / "modules"}
            resources.modules = blog
            """,
        )
        app = Application("production", config_file, environ={})
        assert app.modules()[1] == ["blog"]

    def test_missing_module_path(self, tmp_path: Path) -> None:
        config_file = write_config(tmp_path, "[production]\nresources.modules[] = blog\n")
        app = Application("production", config_file, environ={})
        with pytest.raises(ApplicationError, match="module path"):
            app.run("/")

    def test_missing_modules(self, tmp_path: Path) -> None:
        config_file = write_config(tmp_path, f"[production]\nresources.module_path = {tmp_path}\n")
        app = Application("production", config_file, environ={})
        with pytest.raises(ApplicationError, match="No modules"):
            app.run("/")

    def test_missing_bootstrap_file(self, tmp_path: Path) -> None:
        (tmp_path / "modules" / "blog").mkdir(parents=True)
        config_file = write_config(
            tmp_path,
            f"[production]\nresources.module_path = {tmp_path / 'modules'}\n"
            "resources.modules[] = blog\n",
        )
        app = Application("production", config_file, environ={})
        with pytest.raises(ApplicationError, match="No bootstrap file"):
            app.run("/")

    def test_bootstrap_without_subclass(self, tmp_path: Path) -> None:
        write_module(tmp_path, bootstrap="Bootstrap = object\n")
        config_file = write_config(
            tmp_path,
            f"[production]\nresources.module_path = {tmp_path / 'modules'}\n"
            "resources.modules[] = blog\n",
        )
        app = Application("production", config_file, environ={})
        with pytest.raises(ApplicationError, match="does not define a Bootstrap"):
            app.run("/")

    def test_run_applies_log_level(self, config_file: Path) -> None:
        Application("production", config_file, environ={}).run("/")
        assert logging.getLogger("llama").level == logging.WARNING


# =============================================================================
# Dispatch
# =============================================================================


class TestDispatch:
    def test_index(self, config_file: Path) -> None:
        app = Application("production", config_file, environ={})
        assert app.run("/") == "home"
        assert isinstance(app.bootstrap, Bootstrap)
        assert app.bootstrap.package == "llama_modules.blog"

    def test_uri_from_environ(self, config_file: Path) -> None:
        app = Application("production", config_file, environ={"REQUEST_URI": "/"})
        assert app.run() == "home"

    def test_render_template(self, config_file: Path) -> None:
        app = Application("production", config_file, environ={})
        assert app.run("/post/view/3") == "<h1>Post 3</h1>"

    def test_filters_wrap_action(self, config_file: Path) -> None:
        app = Application("production", config_file, environ={})
        app.run("/post/view/3")
        controller = app.bootstrap.get_controller()
        assert controller.calls == [
            ("before", "view_action"),
            ("view", "3"),
            ("after", "view_action"),
        ]

    def test_dashed_action(self, config_file: Path) -> None:
        app = Application("production", config_file, environ={})
        assert app.run("/post/show-all/1") == "all"

    def test_controller_params(self, config_file: Path) -> None:
        app = Application("production", config_file, environ={})
        app.run("/post/show-all/9")
        controller = app.bootstrap.get_controller()
        assert isinstance(controller, Controller)
        assert controller.params == {"id": "9"}
        assert controller.get_param("missing", "x") == "x"

    def test_no_route(self, config_file: Path) -> None:
        app = Application("production", config_file, environ={})
        with pytest.raises(RouteNotFound):
            app.run("/post/view/abc")

    def test_unknown_action(self, config_file: Path) -> None:
        app = Application("production", config_file, environ={})
        with pytest.raises(ControllerError, match="no action 'missing_action'"):
            app.run("/post/missing/1")

    def test_unknown_controller(self, config_file: Path) -> None:
        app = Application("production", config_file, environ={})
        with pytest.raises(ControllerError, match="NothingController"):
            app.run("/go/nothing")

    def test_default_action(self, config_file: Path) -> None:
        app = Application("production", config_file, environ={})
        assert app.run("/go/index") == "home"

    def test_render_translate_global(self, config_file: Path) -> None:
        app = Application("production", config_file, environ={})
        app.run("/")
        tpl = app.bootstrap.environment.from_string("{{ translate('blog', 'Hi %s', 'Ann') }}")
        assert tpl.render() == "Hi Ann"


# =============================================================================
# Module isolation
# =============================================================================

SECOND_BOOTSTRAP = '''
from llama.app import Bootstrap as BaseBootstrap
from llama.routing import Route


class Bootstrap(BaseBootstrap):
    def routes(self):
        yield Route("/only-second", {"controller": "index", "action": "index"})
        yield Route("/", {"controller": "index", "action": "index"})
'''


def app_for(root: Path, name: str = "blog", **module: str) -> Application:
    write_module(root, name, **module)
    config_file = write_config(
        root,
        f"[production]\nresources.module_path = {root / 'modules'}\n"
        f"resources.modules[] = {name}\n",
    )
    return Application("production", config_file, environ={})


class TestModuleIsolation:
    def test_same_name_from_different_paths(self, tmp_path: Path) -> None:
        first = app_for(tmp_path / "first")
        second = app_for(
            tmp_path / "second",
            bootstrap=SECOND_BOOTSTRAP,
            controllers=CONTROLLERS.replace('"home"', '"second home"'),
        )

        assert first.run("/") == "home"
        assert second.run("/only-second") == "second home"
        assert first.bootstrap.module_dir == tmp_path / "first" / "modules" / "blog"
        assert second.bootstrap.module_dir == tmp_path / "second" / "modules" / "blog"

        again = app_for(tmp_path / "third")
        with pytest.raises(RouteNotFound):
            again.run("/only-second")

    def test_module_named_like_stdlib_package(self, tmp_path: Path) -> None:
        import calendar

        app = app_for(tmp_path, name="calendar")
        assert app.run("/") == "home"
        assert app.bootstrap.package == "llama_modules.calendar"
        assert sys.modules["calendar"] is calendar
        assert calendar.isleap(2024)

    def test_invalid_module_name(self, tmp_path: Path) -> None:
        app = app_for(tmp_path, name="blog-admin")
        with pytest.raises(ApplicationError, match="not a valid Python identifier"):
            app.run("/")
