"""Row-to-dataclass mapping with type coercion.

Converts dict rows into dataclass instances using field introspection.
SQLite hands back whatever affinity the column had, so fields annotated
``int``, ``float``, ``bool`` or ``str`` coerce the raw value to match.
"""

import dataclasses
import types
from typing import Any, get_args, get_origin, get_type_hints

_COERCIBLE: dict[type, Any] = {
    int: lambda v: int(v) if v != "" else 0,
    float: lambda v: float(v) if v != "" else 0.0,
    bool: lambda v: bool(int(v)) if isinstance(v, str) else bool(v),
    str: str,
}


def _coercion_map(cls: type) -> dict[str, type | None]:
    """Map each init field to its coercible target type, or ``None``."""
    try:
        hints = get_type_hints(cls)
    except (NameError, TypeError):
        hints = {}

    result: dict[str, type | None] = {}
    for f in dataclasses.fields(cls):
        if not f.init:
            continue
        annotation = hints.get(f.name, f.type)
        if get_origin(annotation) is types.UnionType:
            args = [a for a in get_args(annotation) if a is not type(None)]
            annotation = args[0] if len(args) == 1 else None
        result[f.name] = annotation if annotation in _COERCIBLE else None
    return result


def _coerce(value: Any, target: type | None) -> Any:
    if target is None or value is None or isinstance(value, target):
        return value
    return _COERCIBLE[target](value)


def _require_dataclass(cls: type) -> None:
    if not dataclasses.is_dataclass(cls):
        msg = f"{cls.__name__} is not a dataclass"
        raise TypeError(msg)


def map_row[T](cls: type[T], row: dict[str, Any]) -> T:
    """Map a dict row to an instance of dataclass *cls*.

    Columns without a matching field are ignored, so ``SELECT *`` is fine
    even when the dataclass declares fewer fields.

    Raises ``TypeError`` if a required field is missing from the row.
    """
    _require_dataclass(cls)
    coercion = _coercion_map(cls)
    return cls(**{k: _coerce(v, coercion[k]) for k, v in row.items() if k in coercion})


def map_rows[T](cls: type[T], rows: list[dict[str, Any]]) -> list[T]:
    """Map a list of dict rows to dataclass instances."""
    _require_dataclass(cls)
    coercion = _coercion_map(cls)
    return [
        cls(**{k: _coerce(v, coercion[k]) for k, v in row.items() if k in coercion})
        for row in rows
    ]
