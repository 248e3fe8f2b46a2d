"""Mapper — table gateway that turns rows into bound models."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from llama.data._mapping import map_row
from llama.data.database import Database, Limit, RecordSet, quote_identifier
from llama.errors import ApplicationError
from llama.model.collection import Collection
from llama.model.model import Model


class Mapper:
    """Data access for one table and one model type.

    Subclasses name the table and model::

        class PostMapper(Mapper):
            table = "posts"
            model = Post

        posts = PostMapper(db)
        post = posts.find_by_id(1)
        recent = posts.collection(author="ann")
    """

    table: ClassVar[str] = ""
    model: ClassVar[type[Model]] = Model
    primary_key: ClassVar[str] = "id"

    __slots__ = ("_db",)

    def __init__(self, db: Database) -> None:
        if not self.table:
            msg = f"{type(self).__name__} does not name a table"
            raise ApplicationError(msg)
        self._db = db

    @property
    def db(self) -> Database:
        return self._db

    def create(self, row: Mapping[str, Any]) -> Model:
        """Instantiate the model from *row* and bind it to this mapper."""
        return map_row(self.model, dict(row)).bind(self)

    def extract(self, model: Model) -> dict[str, Any]:
        """Column values for *model*; an unset primary key is left out."""
        values = model.to_dict()
        if values.get(self.primary_key) is None:
            values.pop(self.primary_key, None)
        return values

    # -- Queries --

    def find(
        self,
        criteria: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        limit: Limit | None = None,
        operator: str = "AND",
    ) -> RecordSet:
        return self._db.select(self.table, criteria, order_by, limit, operator)

    def find_by_id(self, id: Any) -> Model | None:
        row = self.find({self.primary_key: id}, limit=1).fetch_row(0)
        return self.create(row) if row is not None else None

    def load_field(self, model: Model, name: str) -> Any:
        """Fetch the single column *name* for *model*'s row."""
        sql = (
            f"SELECT {quote_identifier(name)} FROM {quote_identifier(self.table)}"
            f" WHERE {quote_identifier(self.primary_key)} = :pk"
        )
        row = self._db.prepare(sql).execute({"pk": getattr(model, self.primary_key)}).fetch()
        return row[name] if row is not None else None

    def collection(self, **criteria: Any) -> Collection:
        """A lazy collection over the rows matching *criteria*."""
        return Collection(self, self.find(criteria or None))

    # -- Writes --

    def insert(self, model: Model) -> int:
        """Insert *model*, store the generated key on it and bind it."""
        new_id = self._db.insert(self.table, self.extract(model))
        setattr(model, self.primary_key, new_id)
        model.bind(self)
        return new_id

    def update(self, model: Model) -> int:
        values = self.extract(model)
        key = values.pop(self.primary_key, None)
        if key is None:
            msg = f"Cannot update {type(model).__name__} without a {self.primary_key}"
            raise ApplicationError(msg)
        where = f"{quote_identifier(self.primary_key)} = :_pk"
        return self._db.update(self.table, values, where, {"_pk": key})

    def delete(self, model: Model) -> int:
        key = getattr(model, self.primary_key, None)
        if key is None:
            msg = f"Cannot delete {type(model).__name__} without a {self.primary_key}"
            raise ApplicationError(msg)
        where = f"{quote_identifier(self.primary_key)} = :pk"
        return self._db.delete(self.table, where, {"pk": key})
