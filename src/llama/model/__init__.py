"""llama.model — dataclass models, table mappers and lazy collections."""

from llama.model.collection import Collection, CollectionCursor
from llama.model.mapper import Mapper
from llama.model.model import Model, Queryable

__all__ = ["Collection", "CollectionCursor", "Mapper", "Model", "Queryable"]
