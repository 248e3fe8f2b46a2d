"""HTML form helpers, exposed to templates as kida globals.

Every helper escapes the values it interpolates and returns ``Markup`` so
templates can output it without double escaping::

    {{ form_dropdown(categories, "post.category_id", post.category_id,
                     initial_label="Choose one") }}
    {{ form_radio({1: "Yes", 0: "No"}, "post.published", selected=post.published) }}

An ``entity`` of ``"model.field"`` names the control ``model[field]`` and
gives it the id ``model_field``.
"""

import html
from collections.abc import Iterable, Mapping
from typing import Any

from kida.template import Markup


def _escape(value: Any) -> str:
    return html.escape(str(value), quote=True)


def attributes(attrs: Mapping[str, Any] | None) -> Markup:
    """Render ``name="value"`` pairs, each preceded by a space.

    ``None`` and ``False`` values are omitted; ``True`` renders the bare
    attribute name as its value (``selected="selected"``).
    """
    parts = []
    for name, value in (attrs or {}).items():
        if value is None or value is False:
            continue
        if value is True:
            value = name
        parts.append(f' {_escape(name)}="{_escape(value)}"')
    return Markup("".join(parts))


def entity_attributes(entity: str) -> dict[str, str]:
    """``name`` and ``id`` attributes for a ``model.field`` entity path."""
    if not entity:
        return {}
    model, _, field = entity.partition(".")
    if not field:
        return {"name": model, "id": model}
    return {"name": f"{model}[{field}]", "id": f"{model}_{field}"}


def _same(a: Any, b: Any) -> bool:
    # Submitted form values arrive as strings; compare loosely.
    return a is not None and b is not None and str(a) == str(b)


def _option_pairs(options: Any) -> Iterable[tuple[Any, Any]]:
    if options is None:
        return ()
    if isinstance(options, Mapping):
        return options.items()
    pairs = []
    for item in options:
        if isinstance(item, Mapping):
            pairs.append((item["id"], item["name"]))
        else:
            pairs.append((item.id, item.name))
    return pairs


def form_dropdown(
    options: Any = None,
    entity: str = "",
    default: Any = None,
    attrs: Mapping[str, Any] | None = None,
    initial_label: str | None = None,
) -> Markup:
    """Render a ``<select>``.

    *options* is a mapping of value to label, or an iterable of objects or
    mappings with ``id`` and ``name``. The option equal to *default* is
    selected; with no default, the *initial_label* option (value ``""``)
    is selected instead.
    """
    select_attrs = {**(attrs or {}), **entity_attributes(entity)}
    out = [f"<select{attributes(select_attrs)}>"]

    if initial_label is not None:
        option = {"value": "", "selected": default is None}
        out.append(f"<option{attributes(option)}>{_escape(initial_label)}</option>")

    for value, label in _option_pairs(options):
        option = {"value": value, "selected": _same(default, value)}
        out.append(f"<option{attributes(option)}>{_escape(label)}</option>")

    out.append("</select>")
    return Markup("".join(out))


def form_radio(
    items: Mapping[Any, Any],
    entity: str = "",
    attrs: Mapping[str, Any] | None = None,
    selected: Any = None,
) -> Markup:
    """Render one labelled radio input per ``value -> label`` item.

    *selected* is a single value or a list of values to check. Each input's
    id is the entity id suffixed with ``_<value>``.
    """
    base = {**(attrs or {}), "type": "radio", **entity_attributes(entity)}
    if selected is None:
        chosen: list[Any] = []
    elif isinstance(selected, (list, tuple, set, frozenset)):
        chosen = list(selected)
    else:
        chosen = [selected]

    base_id = base.get("id", "")
    out = []
    for value, label in items.items():
        input_attrs = {
            **base,
            "value": value,
            "id": f"{base_id}_{value}" if base_id else str(value),
        }
        if any(_same(value, c) for c in chosen):
            input_attrs["checked"] = "checked"
        out.append(
            f'<label class="radio">\n'
            f"    <input{attributes(input_attrs)}> {_escape(label)}\n"
            f"</label>\n"
        )
    return Markup("".join(out))


HELPERS: dict[str, Any] = {
    "attributes": attributes,
    "form_dropdown": form_dropdown,
    "form_radio": form_radio,
}
