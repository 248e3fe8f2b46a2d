"""INI configuration reader.

Sections are keyed by environment name. A section may name its parent
with ``[child : parent]``; otherwise every environment inherits from the
base section (``production`` by default). Dotted keys nest, and keys
ending in ``[]`` accumulate into a list::

    [production]
    resources.module_path = app
    resources.modules[] = blog
    settings.log_level = warning

    [development : production]
    settings.log_level = debug
"""

import configparser
import itertools
import logging
import re
from pathlib import Path
from typing import Any

from llama.configuration.tree import Configuration, array_merge_recursive
from llama.errors import ConfigurationError

logger = logging.getLogger("llama.configuration")

_LIST_KEY_RE = re.compile(r"^(?P<name>[^\[\]]+)\[(?P<index>\d*)\]$")
_INT_RE = re.compile(r"^-?\d+$")
_FLOAT_RE = re.compile(r"^-?\d+\.\d+$")
_TRUE = frozenset({"true", "on", "yes"})
_FALSE = frozenset({"false", "off", "no"})


class _Parser(configparser.ConfigParser):
    """ConfigParser that keeps key case and numbers repeated ``key[]`` entries."""

    def __init__(self) -> None:
        super().__init__(interpolation=None, strict=False)
        self._counter = itertools.count()

    def optionxform(self, optionstr: str) -> str:
        if optionstr.endswith("[]"):
            return f"{optionstr[:-2]}[{next(self._counter)}]"
        return optionstr


def parse_value(raw: str) -> Any:
    """Type an INI value: quoted strings stay strings, then int, float, bool."""
    value = raw.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    if _INT_RE.match(value):
        return int(value)
    if _FLOAT_RE.match(value):
        return float(value)
    lowered = value.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    return value


def expand_keys(items: list[tuple[str, str]]) -> dict[str, Any]:
    """Expand ``a.b.c = v`` pairs into nested dicts; ``k[n]`` entries into lists."""
    tree: dict[str, Any] = {}
    for key, raw in items:
        *parents, leaf = key.split(".")
        node = tree
        for part in parents:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child

        value = parse_value(raw)
        m = _LIST_KEY_RE.match(leaf)
        if m is None:
            node[leaf] = value
            continue
        bucket = node.get(m.group("name"))
        if not isinstance(bucket, list):
            bucket = node[m.group("name")] = []
        bucket.append(value)
    return tree


def _split_header(header: str) -> tuple[str, str | None]:
    if ":" in header:
        name, parent = header.split(":", 1)
        return name.strip(), parent.strip() or None
    return header.strip(), None


def read_ini(
    path: str | Path,
    environment: str,
    base_section: str = "production",
) -> Configuration:
    """Load *environment* from an INI file, overlaying its ancestry.

    Raises ``ConfigurationError`` if the file cannot be read or parsed, or
    if the environment (or the base section it inherits from) is missing.
    """
    parser = _Parser()
    try:
        with open(path, encoding="utf-8") as fh:
            parser.read_file(fh)
    except OSError as exc:
        msg = f"Unable to read configuration file {str(path)!r}: {exc.strerror}"
        raise ConfigurationError(msg) from exc
    except configparser.Error as exc:
        msg = f"Unable to parse configuration file {str(path)!r}: {exc}"
        raise ConfigurationError(msg) from exc

    sections: dict[str, tuple[str | None, dict[str, Any]]] = {}
    for header in parser.sections():
        name, parent = _split_header(header)
        sections[name] = (parent, expand_keys(parser.items(header, raw=True)))

    if base_section not in sections:
        msg = f"Configuration file {str(path)!r} has no [{base_section}] section"
        raise ConfigurationError(msg)
    if environment not in sections:
        msg = f"Configuration file {str(path)!r} has no [{environment}] section"
        raise ConfigurationError(msg)

    chain: list[str] = []
    current: str | None = environment
    while current is not None:
        if current in chain:
            msg = f"Circular section inheritance in {str(path)!r}: {' -> '.join([*chain, current])}"
            raise ConfigurationError(msg)
        if current not in sections:
            msg = f"Section [{chain[-1]}] extends unknown section [{current}]"
            raise ConfigurationError(msg)
        chain.append(current)
        parent = sections[current][0]
        if parent is None and current != base_section:
            parent = base_section
        current = parent

    data: dict[str, Any] = {}
    for name in reversed(chain):
        data = array_merge_recursive(data, sections[name][1])

    logger.debug("Loaded [%s] from %s via %s", environment, path, " <- ".join(chain))
    return Configuration(data)
