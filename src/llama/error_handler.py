"""Scoped interception of warnings and uncaught exceptions.

Inside the guard, warnings are reported to a logger and execution
continues; an exception is reported at error level and handed to the
fatal callback instead of propagating::

    def halt(exc: BaseException) -> None:
        response.status = 500

    with ErrorHandler(logging.getLogger("llama.errors"), halt):
        bootstrap.run(uri)

Entering swaps ``warnings.showwarning`` and ``sys.excepthook``; leaving
restores both, however the block exits.
"""

from __future__ import annotations

import html
import linecache
import logging
import sys
import traceback
import types
import warnings
from collections.abc import Callable
from pathlib import Path
from typing import Any

from llama.errors import ResourceError

type FatalCallback = Callable[[BaseException], object]

NOTICE_CATEGORIES: tuple[type[Warning], ...] = (
    ResourceWarning,
    ImportWarning,
    PendingDeprecationWarning,
)

EXTRACT_LINES = 11

_BACKGROUND = {"notice": "#eee", "warning": "#ff7", "error": "#fdd"}
_LOG_METHODS = {"notice": "info", "warning": "warning", "error": "error"}


def _esc(text: Any) -> str:
    return html.escape(str(text), quote=True)


def code_extract(path: str | Path, line: int) -> str:
    """Numbered, HTML-escaped source lines around *line* of *path*.

    The window holds up to eleven lines starting five before *line* (or at
    the top of short files). The offending line is wrapped in a highlight
    span. Raises ``ResourceError`` if the file is missing or unreadable.
    """
    path = Path(path)
    if not path.is_file():
        msg = f"Error file does not exist: {path}"
        raise ResourceError(msg)
    try:
        lines = path.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError as exc:
        msg = f"Error file is not readable: {path}"
        raise ResourceError(msg) from exc

    start = line - 5
    if start < 1 or len(lines) < EXTRACT_LINES:
        start = 1
    numbered = list(enumerate(lines, start=1))[start - 1 : start - 1 + EXTRACT_LINES]
    if not numbered:
        return ""

    pad = len(str(numbered[-1][0])) + 2
    out = []
    for number, text in numbered:
        text = text.replace("\t", "    ").replace("\r", " ").rstrip()
        rendered = _esc(f"{number}:".ljust(pad) + text)
        if number == line:
            rendered = f'<span style="color: #C00; font-weight: bold;">{rendered}</span>'
        out.append(rendered)
    return "\n".join(out)


def render_report(
    severity: str,
    message: str,
    filename: str,
    lineno: int,
    extract: str,
    trace: str,
) -> str:
    """HTML report logged for one captured condition."""
    bg = _BACKGROUND.get(severity, _BACKGROUND["error"])
    cell = f'style="padding: 5px; background-color: {bg};"'
    head = f'style="padding: 5px; background-color: {bg}; font-weight: bold;"'
    return (
        '<div style="color: #362211; font-size: 14px; line-height: 1.4em;">'
        '<h3><a name="top">Summary</a></h3>'
        '<table style="border: 1px solid #999;">'
        f"<tr><td {head}>{_esc(severity.title())}:</td><td {cell}>{_esc(message)}</td></tr>"
        f"<tr><td {head}>File:</td><td {cell}>{_esc(filename)}</td></tr>"
        f"<tr><td {head}>Line:</td><td {cell}>{lineno}</td></tr>"
        "</table>"
        '<h3><a name="extract">Extract</a></h3>'
        f'<pre style="margin: 0px;">{extract}</pre>'
        '<h3><a name="trace">Trace</a></h3>'
        f'<pre style="margin: 0px;">{_esc(trace)}</pre>'
        '<p><a href="#top">Top</a></p>'
        "</div>"
    )


def _safe_extract(filename: str, lineno: int) -> str:
    try:
        return code_extract(filename, lineno)
    except ResourceError:
        # Frames from <string> or zip imports have no file on disk.
        source = linecache.getline(filename, lineno)
        return _esc(source.rstrip())


def _innermost(tb: types.TracebackType | None) -> tuple[str, int]:
    if tb is None:
        return "<unknown>", 0
    while tb.tb_next is not None:
        tb = tb.tb_next
    return tb.tb_frame.f_code.co_filename, tb.tb_lineno


class ErrorHandler:
    """Scoped guard routing warnings and exceptions to *logger*.

    Warnings in *notices* (by default resource, import and pending
    deprecation warnings) go to ``logger.info``; every other warning goes
    to ``logger.warning``. Exceptions go to ``logger.error`` and then to
    *on_fatal*, and are not re-raised.
    """

    __slots__ = (
        "_catch",
        "_logger",
        "_notices",
        "_on_fatal",
        "_previous_excepthook",
        "_previous_showwarning",
    )

    def __init__(
        self,
        logger: logging.Logger,
        on_fatal: FatalCallback,
        *,
        notices: tuple[type[Warning], ...] = NOTICE_CATEGORIES,
    ) -> None:
        self._logger = logger
        self._on_fatal = on_fatal
        self._notices = notices
        self._catch: warnings.catch_warnings | None = None
        self._previous_showwarning: Callable[..., Any] | None = None
        self._previous_excepthook: Callable[..., Any] | None = None

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    @property
    def on_fatal(self) -> FatalCallback:
        return self._on_fatal

    @property
    def active(self) -> bool:
        return self._catch is not None

    # -- Guard --

    def __enter__(self) -> ErrorHandler:
        self._catch = warnings.catch_warnings()
        self._catch.__enter__()
        warnings.simplefilter("always")
        self._previous_showwarning = warnings.showwarning
        self._previous_excepthook = sys.excepthook
        warnings.showwarning = self.capture_warning
        sys.excepthook = self._excepthook
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: types.TracebackType | None,
    ) -> bool:
        self.restore()
        if exc is None or not isinstance(exc, Exception):
            return False
        self.capture_exception(exc)
        return True

    def restore(self) -> None:
        """Put back the warning display and excepthook saved on entry."""
        if self._catch is None:
            return
        warnings.showwarning = self._previous_showwarning  # type: ignore[assignment]
        sys.excepthook = self._previous_excepthook  # type: ignore[assignment]
        self._catch.__exit__(None, None, None)
        self._catch = None

    # -- Capture --

    def severity(self, category: type[Warning]) -> str:
        """``notice`` or ``warning`` for a warning category."""
        return "notice" if issubclass(category, self._notices) else "warning"

    def capture_warning(
        self,
        message: Warning | str,
        category: type[Warning],
        filename: str,
        lineno: int,
        file: Any = None,
        line: str | None = None,
    ) -> None:
        """``warnings.showwarning`` replacement: log and carry on."""
        severity = self.severity(category)
        trace = "".join(traceback.format_stack()[:-1])
        report = render_report(
            severity,
            f"{category.__name__}: {message}",
            filename,
            lineno,
            _safe_extract(filename, lineno),
            trace,
        )
        getattr(self._logger, _LOG_METHODS[severity])(report)

    def capture_exception(self, exc: BaseException) -> None:
        """Log *exc* at error level, then call the fatal callback."""
        filename, lineno = _innermost(exc.__traceback__)
        report = render_report(
            "error",
            f"{type(exc).__name__}: {exc}",
            filename,
            lineno,
            _safe_extract(filename, lineno),
            "".join(traceback.format_exception(exc)),
        )
        self._logger.error(report)
        self._on_fatal(exc)

    def _excepthook(
        self,
        exc_type: type[BaseException],
        exc: BaseException,
        tb: types.TracebackType | None,
    ) -> None:
        if issubclass(exc_type, Exception):
            self.capture_exception(exc)
        elif self._previous_excepthook is not None:
            self._previous_excepthook(exc_type, exc, tb)
