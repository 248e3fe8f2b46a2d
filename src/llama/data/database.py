"""Synchronous database access over stdlib ``sqlite3``.

One connection per ``Database`` instance, opened lazily on first use and
reused until ``disconnect()``. A single live statement is tracked at a time:
``prepare()`` replaces it, ``execute()`` runs it, ``fetch()`` and
``fetch_all()`` read from it.

Connection URL format::

    sqlite:///path/to/db.sqlite    # SQLite file
    sqlite:///:memory:             # In-memory SQLite

Usage::

    db = Database("sqlite:///app.db", echo=True)

    post_id = db.insert("posts", {"title": "Hello", "body": "..."})
    records = db.select("posts", {"author": "ann"}, order_by="id DESC", limit=10)
    for row in records:
        print(row["title"])

    db.update("posts", {"title": "Hi"}, "id = :id", {"id": post_id})
    db.delete("posts", "id = :id", {"id": post_id})
"""

from __future__ import annotations

import logging
import sqlite3
import time
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any

from llama.data._mapping import map_row, map_rows
from llama.data.errors import ConnectionError, DataError, NoStatement, QueryError

logger = logging.getLogger("llama.data")

type Params = Sequence[Any] | Mapping[str, Any]
type Limit = int | tuple[int, int]


def _parse_url(url: str) -> str:
    """Return the sqlite3 path for a ``sqlite:///`` URL."""
    scheme, sep, path = url.partition("://")
    if not sep or scheme != "sqlite":
        msg = f"Unsupported database URL: {url!r}. Expected sqlite:///path"
        raise DataError(msg)
    # sqlite:///app.db -> "/app.db" -> "app.db"; sqlite:////abs/app.db -> "/abs/app.db"
    return path[1:] if path.startswith("/") else path


def quote_identifier(name: str) -> str:
    """Quote a table or column name for use in generated SQL."""
    return '"' + name.replace('"', '""') + '"'


def bind_columns(bind: Mapping[str, Any]) -> tuple[list[tuple[str, str]], dict[str, Any]]:
    """Pair each column with a generated placeholder name.

    Column names may hold characters a ``:name`` placeholder cannot, so the
    placeholders are ``_col0``, ``_col1`` ... and the values are re-keyed to
    match.
    """
    pairs = [(quote_identifier(col), f"_col{i}") for i, col in enumerate(bind)]
    values = {name: value for (_, name), value in zip(pairs, bind.values(), strict=True)}
    return pairs, values


class RecordSet:
    """Lazily buffered view over an executed cursor.

    sqlite3 cursors only read forward, so rows are pulled into a buffer as
    far as the furthest requested offset. ``row_count()`` reads the cursor
    to the end.
    """

    __slots__ = ("_cursor", "_exhausted", "_rows")

    def __init__(self, cursor: sqlite3.Cursor | None = None) -> None:
        self._cursor = cursor
        self._rows: list[dict[str, Any]] = []
        self._exhausted = cursor is None

    def _fill(self, offset: int | None = None) -> None:
        while not self._exhausted and (offset is None or len(self._rows) <= offset):
            try:
                row = self._cursor.fetchone()  # type: ignore[union-attr]
            except sqlite3.Error as exc:
                raise QueryError(str(exc)) from exc
            if row is None:
                self._exhausted = True
            else:
                self._rows.append(dict(row))

    def row_count(self) -> int:
        self._fill()
        return len(self._rows)

    def fetch_row(self, offset: int) -> dict[str, Any] | None:
        """Return the row at absolute *offset*, or ``None`` past the end."""
        if offset < 0:
            return None
        self._fill(offset)
        return self._rows[offset] if offset < len(self._rows) else None

    def rows(self) -> list[dict[str, Any]]:
        self._fill()
        return list(self._rows)

    def __len__(self) -> int:
        return self.row_count()

    def __iter__(self) -> Iterator[dict[str, Any]]:
        offset = 0
        while (row := self.fetch_row(offset)) is not None:
            yield row
            offset += 1

    def __repr__(self) -> str:
        state = "exhausted" if self._exhausted else "open"
        return f"RecordSet(buffered={len(self._rows)}, {state})"


class Database:
    """Thin adapter over one SQLite connection.

    Every driver failure surfaces as ``ConnectionError`` or ``QueryError``
    chained to the original ``sqlite3`` exception.
    """

    __slots__ = ("_conn", "_cursor", "_echo", "_path", "_sql", "_url")

    def __init__(self, url: str, /, *, echo: bool = False) -> None:
        self._url = url
        self._path = _parse_url(url)
        self._echo = echo
        self._conn: sqlite3.Connection | None = None
        self._cursor: sqlite3.Cursor | None = None
        self._sql: str | None = None

    @property
    def url(self) -> str:
        return self._url

    @property
    def connected(self) -> bool:
        return self._conn is not None

    # -- Connection management --

    def connect(self) -> None:
        """Open the connection if it is not open already."""
        if self._conn is not None:
            return
        try:
            conn = sqlite3.connect(self._path, autocommit=True)
        except sqlite3.Error as exc:
            raise ConnectionError(str(exc)) from exc
        conn.row_factory = sqlite3.Row
        self._conn = conn

    def disconnect(self) -> None:
        """Close the connection and drop the live statement."""
        if self._conn is not None:
            self._conn.close()
        self._conn = None
        self._cursor = None
        self._sql = None

    def __enter__(self) -> Database:
        self.connect()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.disconnect()

    @property
    def connection(self) -> sqlite3.Connection:
        self.connect()
        return self._conn  # type: ignore[return-value]

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run the enclosed statements atomically.

        Commits on clean exit, rolls back on exception.
        """
        conn = self.connection
        if not conn.autocommit:
            # Already inside a transaction: join it.
            yield
            return
        conn.autocommit = False
        try:
            yield
            conn.commit()
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.autocommit = True

    # -- Echo / statement logging --

    def _log_statement(self, sql: str, params: Any, elapsed: float) -> None:
        if not self._echo:
            return
        param_str = f"  params={params!r}" if params else ""
        logger.info("%6.1fms  %s%s", elapsed * 1000, sql, param_str)

    # -- Statement API --

    @property
    def statement(self) -> sqlite3.Cursor:
        """The live statement cursor; ``NoStatement`` before ``prepare()``."""
        if self._cursor is None:
            raise NoStatement()
        return self._cursor

    def prepare(self, sql: str) -> Database:
        """Make *sql* the live statement, replacing any previous one."""
        try:
            self._cursor = self.connection.cursor()
        except sqlite3.Error as exc:
            raise QueryError(str(exc)) from exc
        self._sql = sql
        return self

    def execute(self, params: Params = ()) -> Database:
        """Execute the live statement with *params* bound."""
        cursor = self.statement
        sql = self._sql or ""
        t0 = time.perf_counter()
        try:
            cursor.execute(sql, params)
        except sqlite3.Error as exc:
            raise QueryError(str(exc)) from exc
        finally:
            self._log_statement(sql, params, time.perf_counter() - t0)
        return self

    def execute_script(self, sql: str, /) -> None:
        """Execute several ``;``-separated statements at once."""
        t0 = time.perf_counter()
        try:
            self.connection.executescript(sql)
        except sqlite3.Error as exc:
            raise QueryError(str(exc)) from exc
        finally:
            self._log_statement(sql, (), time.perf_counter() - t0)

    def fetch(self) -> dict[str, Any] | None:
        """Next row of the live statement, or ``None`` when exhausted."""
        try:
            row = self.statement.fetchone()
        except sqlite3.Error as exc:
            raise QueryError(str(exc)) from exc
        return dict(row) if row is not None else None

    def fetch_all(self) -> list[dict[str, Any]]:
        """Every remaining row of the live statement."""
        try:
            rows = self.statement.fetchall()
        except sqlite3.Error as exc:
            raise QueryError(str(exc)) from exc
        return [dict(row) for row in rows]

    def fetch_as[T](self, cls: type[T]) -> list[T]:
        """Every remaining row mapped onto dataclass *cls*."""
        return map_rows(cls, self.fetch_all())

    def fetch_one_as[T](self, cls: type[T]) -> T | None:
        row = self.fetch()
        return map_row(cls, row) if row is not None else None

    @property
    def affected_rows(self) -> int:
        return self.statement.rowcount

    @property
    def last_insert_id(self) -> int:
        try:
            row = self.connection.execute("SELECT last_insert_rowid()").fetchone()
        except sqlite3.Error as exc:
            raise QueryError(str(exc)) from exc
        return int(row[0])

    # -- Generated statements --

    def select(
        self,
        table: str,
        bind: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        limit: Limit | None = None,
        operator: str = "AND",
    ) -> RecordSet:
        """Select every column of *table* where each bound column equals its value.

        Conditions are joined with *operator* (``AND`` or ``OR``). *limit* is
        an upper bound or an ``(offset, count)`` pair.
        """
        operator = operator.strip().upper()
        if operator not in ("AND", "OR"):
            msg = f"Unsupported where operator: {operator!r}"
            raise QueryError(msg)

        pairs, params = bind_columns(bind or {})
        sql = f"SELECT * FROM {quote_identifier(table)}"
        if pairs:
            where = f" {operator} ".join(f"{col} = :{name}" for col, name in pairs)
            sql += f" WHERE {where}"
        if order_by:
            sql += f" ORDER BY {order_by}"
        if limit is not None:
            if isinstance(limit, tuple):
                offset, count = limit
                sql += f" LIMIT {int(count)} OFFSET {int(offset)}"
            else:
                sql += f" LIMIT {int(limit)}"

        self.prepare(sql).execute(params)
        return RecordSet(self.statement)

    def insert(self, table: str, bind: Mapping[str, Any]) -> int:
        """Insert one row and return its generated identifier."""
        pairs, values = bind_columns(bind)
        cols = ", ".join(col for col, _ in pairs)
        names = ", ".join(f":{name}" for _, name in pairs)
        sql = f"INSERT INTO {quote_identifier(table)} ({cols}) VALUES ({names})"
        self.prepare(sql).execute(values)
        return self.last_insert_id

    def update(
        self,
        table: str,
        bind: Mapping[str, Any],
        where: str = "",
        params: Mapping[str, Any] | None = None,
    ) -> int:
        """Update rows matching *where* and return how many changed.

        Placeholders in *where* take their values from *params*; names starting
        with ``_col`` are reserved for the bound columns.
        """
        pairs, values = bind_columns(bind)
        set_clause = ", ".join(f"{col} = :{name}" for col, name in pairs)
        sql = f"UPDATE {quote_identifier(table)} SET {set_clause}"
        if where:
            sql += f" WHERE {where}"
        return self.prepare(sql).execute({**values, **(params or {})}).affected_rows

    def delete(
        self,
        table: str,
        where: str = "",
        params: Params = (),
    ) -> int:
        """Delete rows matching *where* and return how many were removed."""
        sql = f"DELETE FROM {quote_identifier(table)}"
        if where:
            sql += f" WHERE {where}"
        return self.prepare(sql).execute(params).affected_rows

    def __repr__(self) -> str:
        return f"Database({self._url!r}, echo={self._echo})"
