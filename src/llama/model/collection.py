"""Collection — a lazy, index-addressable view over a record set.

Rows become models only when an offset is first read; the model is bound
to the collection's mapper and cached under that offset. ``len()`` always
reflects the record set, never the cache.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from llama.data._mapping import map_row
from llama.data.database import Limit, RecordSet
from llama.model.model import Model, Queryable


class CollectionCursor(Iterator[Model]):
    """Iterator over offsets ``0..len-1`` of a collection.

    The position is an explicit offset, so deleting cached models while
    iterating never moves it.
    """

    __slots__ = ("_collection", "_index")

    def __init__(self, collection: Collection) -> None:
        self._collection = collection
        self._index = 0

    @property
    def index(self) -> int:
        return self._index

    def __iter__(self) -> CollectionCursor:
        return self

    def __next__(self) -> Model:
        if self._index >= len(self._collection):
            raise StopIteration
        model = self._collection[self._index]
        self._index += 1
        return model


class Collection:
    """Array-like access to the models behind a query.

    Usage::

        posts = Collection(post_mapper, post_mapper.find({"author": "ann"}))
        len(posts)          # row count of the record set
        posts[0]            # fetched, instantiated and cached on first access
        posts.fetch_field("title")
    """

    __slots__ = ("_mapper", "_model", "_models", "_records")

    def __init__(
        self,
        mapper: Queryable,
        records: RecordSet | None = None,
        model: type[Model] | None = None,
    ) -> None:
        self._mapper = mapper
        self._records = records
        self._model = model if model is not None else mapper.model
        self._models: dict[int, Model] = {}

    @property
    def mapper(self) -> Queryable:
        return self._mapper

    @property
    def records(self) -> RecordSet | None:
        return self._records

    def find(
        self,
        criteria: Mapping[str, Any] | None = None,
        /,
        *,
        order_by: str | None = None,
        limit: Limit | None = None,
        operator: str = "AND",
        **fields: Any,
    ) -> Collection:
        """Replace the record set with a mapper query and drop cached models."""
        bind = {**(criteria or {}), **fields}
        self._records = self._mapper.find(bind or None, order_by, limit, operator)
        self._models = {}
        return self

    def _retrieve(self, offset: int) -> Model:
        model = self._models.get(offset)
        if model is None:
            row = self._records.fetch_row(offset) if self._records is not None else None
            if row is None:
                raise IndexError(offset)
            model = map_row(self._model, row).bind(self._mapper)
            self._models[offset] = model
        return model

    def get(self, offset: int) -> Model | None:
        """The model at *offset*, or ``None`` when out of range."""
        if not 0 <= offset < len(self):
            return None
        return self._retrieve(offset)

    def fetch_field(self, name: str) -> list[Any]:
        """Collect field *name* from every model, in order."""
        return [getattr(model, name) for model in self]

    # -- Sequence protocol --

    def __len__(self) -> int:
        return self._records.row_count() if self._records is not None else 0

    def __getitem__(self, offset: int) -> Model:
        if not isinstance(offset, int):
            msg = f"Collection offsets must be integers, not {type(offset).__name__}"
            raise TypeError(msg)
        if not 0 <= offset < len(self):
            raise IndexError(offset)
        return self._retrieve(offset)

    def __setitem__(self, offset: int, model: Model) -> None:
        self._models[offset] = model

    def __delitem__(self, offset: int) -> None:
        """Drop the cached model; the next access rebuilds it from its row."""
        self._models.pop(offset, None)

    def __contains__(self, offset: object) -> bool:
        return offset in self._models

    def __iter__(self) -> CollectionCursor:
        return CollectionCursor(self)

    def __str__(self) -> str:
        return ", ".join(str(model) for model in self)

    def __repr__(self) -> str:
        return f"Collection({self._model.__name__}, cached={len(self._models)})"
