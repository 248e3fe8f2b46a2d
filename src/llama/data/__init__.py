"""llama.data — SQLite access, record sets and row mapping.

Usage::

    from llama.data import Database

    with Database("sqlite:///app.db") as db:
        records = db.select("users", {"active": 1}, order_by="name")
        names = [row["name"] for row in records]
"""

from llama.data._mapping import map_row, map_rows
from llama.data.database import Database, RecordSet, quote_identifier
from llama.data.errors import ConnectionError, DataError, NoStatement, QueryError

__all__ = [
    "ConnectionError",
    "DataError",
    "Database",
    "NoStatement",
    "QueryError",
    "RecordSet",
    "map_row",
    "map_rows",
    "quote_identifier",
]
