"""Model base class and the query capability a mapper exposes to it.

Models are plain mutable dataclasses. A model fetched through a mapper is
bound to it so that fields left out of the original query can be loaded on
demand::

    @dataclass
    class Post(Model):
        id: int | None = None
        title: str = ""
        body: str | None = None

    post = posts.find_by_id(3)
    post.load("body")   # SELECT "body" FROM "posts" WHERE "id" = :id
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, Self, runtime_checkable

from llama.data.database import Limit, RecordSet
from llama.errors import ApplicationError


@runtime_checkable
class Queryable(Protocol):
    """What a collection and its models need from a mapper."""

    model: type[Model]

    def find(
        self,
        criteria: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        limit: Limit | None = None,
        operator: str = "AND",
    ) -> RecordSet: ...

    def load_field(self, model: Model, name: str) -> Any: ...


@dataclass
class Model:
    """Base for mapped models."""

    _mapper: Queryable | None = field(default=None, init=False, repr=False, compare=False)

    def bind(self, mapper: Queryable) -> Self:
        """Attach the mapper this model was fetched through."""
        self._mapper = mapper
        return self

    @property
    def mapper(self) -> Queryable:
        if self._mapper is None:
            msg = f"{type(self).__name__} is not bound to a mapper"
            raise ApplicationError(msg)
        return self._mapper

    def load(self, name: str) -> Any:
        """Fetch field *name* through the mapper and store it on the model."""
        value = self.mapper.load_field(self, name)
        setattr(self, name, value)
        return value

    def to_dict(self) -> dict[str, Any]:
        """Field values keyed by name, mapper reference excluded."""
        return {f.name: getattr(self, f.name) for f in dataclasses.fields(self) if f.init}

    def __str__(self) -> str:
        return repr(self)
