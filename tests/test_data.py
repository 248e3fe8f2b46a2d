"""Tests for llama.data — SQLite access, record sets and row mapping."""

import logging
from dataclasses import dataclass

import pytest

from llama.data import (
    ConnectionError,
    Database,
    DataError,
    NoStatement,
    QueryError,
    RecordSet,
    quote_identifier,
)
from llama.data._mapping import map_row, map_rows

# -- Test models --


@dataclass(frozen=True, slots=True)
class User:
    id: int
    name: str
    email: str


@dataclass(frozen=True, slots=True)
class Flagged:
    id: int
    active: bool
    score: float | None = None


# -- Fixtures --


@pytest.fixture
def db(tmp_path):
    """Create a fresh SQLite database with a users table."""
    db = Database(f"sqlite:///{tmp_path / 'test.db'}")
    db.execute_script(
        "CREATE TABLE users ("
        "  id INTEGER PRIMARY KEY AUTOINCREMENT,"
        "  name TEXT NOT NULL,"
        "  email TEXT NOT NULL"
        ");"
    )
    yield db
    db.disconnect()


@pytest.fixture
def seeded_db(db):
    """Database with pre-seeded test data."""
    db.insert("users", {"name": "Alice", "email": "alice@test.com"})
    db.insert("users", {"name": "Bob", "email": "bob@test.com"})
    db.insert("users", {"name": "Carol", "email": "carol@test.com"})
    return db


# =============================================================================
# URLs and connection lifecycle
# =============================================================================


class TestUrl:
    def test_memory_url(self) -> None:
        db = Database("sqlite:///:memory:")
        assert db.url == "sqlite:///:memory:"
        assert db.connected is False

    def test_unsupported_url_raises(self) -> None:
        with pytest.raises(DataError, match="Unsupported database URL"):
            Database("mysql://localhost/db")

    def test_missing_scheme_raises(self) -> None:
        with pytest.raises(DataError):
            Database("app.db")

    def test_repr(self) -> None:
        assert repr(Database("sqlite:///:memory:")) == "Database('sqlite:///:memory:', echo=False)"


class TestLifecycle:
    def test_connect_disconnect(self, tmp_path) -> None:
        db = Database(f"sqlite:///{tmp_path / 'x.db'}")
        db.connect()
        assert db.connected
        db.disconnect()
        assert not db.connected

    def test_context_manager(self, tmp_path) -> None:
        with Database(f"sqlite:///{tmp_path / 'x.db'}") as db:
            assert db.connected
        assert not db.connected

    def test_lazy_connect_on_first_query(self, tmp_path) -> None:
        db = Database(f"sqlite:///{tmp_path / 'x.db'}")
        assert not db.connected
        db.execute_script("CREATE TABLE t (x INTEGER);")
        assert db.connected
        db.disconnect()

    def test_double_connect_is_safe(self, db) -> None:
        db.connect()
        conn = db.connection
        db.connect()
        assert db.connection is conn

    def test_double_disconnect_is_safe(self, tmp_path) -> None:
        db = Database(f"sqlite:///{tmp_path / 'x.db'}")
        db.connect()
        db.disconnect()
        db.disconnect()

    def test_unreachable_path_raises_connection_error(self, tmp_path) -> None:
        db = Database(f"sqlite:///{tmp_path / 'missing' / 'dir' / 'x.db'}")
        with pytest.raises(ConnectionError) as exc_info:
            db.connect()
        assert isinstance(exc_info.value, DataError)
        assert exc_info.value.__cause__ is not None


# =============================================================================
# Statement API
# =============================================================================


class TestStatement:
    def test_no_statement_before_prepare(self, db) -> None:
        with pytest.raises(NoStatement, match="no prepared statement"):
            db.fetch()

    def test_disconnect_drops_statement(self, seeded_db) -> None:
        seeded_db.prepare("SELECT * FROM users").execute()
        seeded_db.disconnect()
        with pytest.raises(NoStatement):
            seeded_db.statement

    def test_prepare_execute_fetch(self, seeded_db) -> None:
        row = seeded_db.prepare("SELECT name FROM users WHERE id = ?").execute((2,)).fetch()
        assert row == {"name": "Bob"}

    def test_fetch_exhausted_returns_none(self, seeded_db) -> None:
        seeded_db.prepare("SELECT * FROM users WHERE id = ?").execute((1,))
        assert seeded_db.fetch() is not None
        assert seeded_db.fetch() is None

    def test_fetch_all(self, seeded_db) -> None:
        rows = seeded_db.prepare("SELECT name FROM users ORDER BY id").execute().fetch_all()
        assert rows == [{"name": "Alice"}, {"name": "Bob"}, {"name": "Carol"}]

    def test_named_params(self, seeded_db) -> None:
        rows = (
            seeded_db.prepare("SELECT name FROM users WHERE email = :email")
            .execute({"email": "carol@test.com"})
            .fetch_all()
        )
        assert rows == [{"name": "Carol"}]

    def test_fetch_as(self, seeded_db) -> None:
        users = seeded_db.prepare("SELECT * FROM users ORDER BY id").execute().fetch_as(User)
        assert users[0] == User(id=1, name="Alice", email="alice@test.com")
        assert len(users) == 3

    def test_fetch_one_as(self, seeded_db) -> None:
        seeded_db.prepare("SELECT * FROM users WHERE id = 99").execute()
        assert seeded_db.fetch_one_as(User) is None

    def test_invalid_sql_raises_query_error(self, db) -> None:
        with pytest.raises(QueryError) as exc_info:
            db.prepare("SELEKT nonsense").execute()
        assert exc_info.value.__cause__ is not None

    def test_invalid_script_raises_query_error(self, db) -> None:
        with pytest.raises(QueryError):
            db.execute_script("CREATE TABLE users (id INTEGER);")

    def test_affected_rows(self, seeded_db) -> None:
        seeded_db.prepare("UPDATE users SET email = 'x'").execute()
        assert seeded_db.affected_rows == 3

    def test_last_insert_id(self, seeded_db) -> None:
        seeded_db.prepare("INSERT INTO users (name, email) VALUES ('Dan', 'd@test.com')").execute()
        assert seeded_db.last_insert_id == 4


# =============================================================================
# Generated statements
# =============================================================================


class TestSelect:
    def test_select_all(self, seeded_db) -> None:
        records = seeded_db.select("users")
        assert isinstance(records, RecordSet)
        assert [row["name"] for row in records] == ["Alice", "Bob", "Carol"]

    def test_select_bind(self, seeded_db) -> None:
        records = seeded_db.select("users", {"name": "Bob"})
        assert records.rows() == [{"id": 2, "name": "Bob", "email": "bob@test.com"}]

    def test_select_or(self, seeded_db) -> None:
        records = seeded_db.select(
            "users", {"name": "Alice", "email": "carol@test.com"}, order_by="id", operator="or"
        )
        assert [row["id"] for row in records] == [1, 3]

    def test_select_and_no_match(self, seeded_db) -> None:
        records = seeded_db.select("users", {"name": "Alice", "email": "carol@test.com"})
        assert len(records) == 0

    def test_select_bad_operator(self, seeded_db) -> None:
        with pytest.raises(QueryError, match="operator"):
            seeded_db.select("users", {"name": "Alice"}, operator="XOR")

    def test_order_by_and_limit(self, seeded_db) -> None:
        records = seeded_db.select("users", order_by="id DESC", limit=2)
        assert [row["name"] for row in records] == ["Carol", "Bob"]

    def test_offset_limit_pair(self, seeded_db) -> None:
        records = seeded_db.select("users", order_by="id", limit=(1, 1))
        assert [row["name"] for row in records] == ["Bob"]


class TestWrites:
    def test_insert_returns_id(self, db) -> None:
        assert db.insert("users", {"name": "Eve", "email": "eve@test.com"}) == 1
        assert db.insert("users", {"name": "Fay", "email": "fay@test.com"}) == 2

    def test_update(self, seeded_db) -> None:
        changed = seeded_db.update("users", {"name": "Robert"}, "id = :id", {"id": 2})
        assert changed == 1
        assert seeded_db.select("users", {"id": 2}).fetch_row(0)["name"] == "Robert"

    def test_update_without_where(self, seeded_db) -> None:
        assert seeded_db.update("users", {"email": "same@test.com"}) == 3

    def test_delete(self, seeded_db) -> None:
        assert seeded_db.delete("users", "id = :id", {"id": 1}) == 1
        assert len(seeded_db.select("users")) == 2

    def test_delete_positional(self, seeded_db) -> None:
        assert seeded_db.delete("users", "id > ?", (1,)) == 2

    def test_delete_all(self, seeded_db) -> None:
        assert seeded_db.delete("users") == 3

    def test_columns_that_are_not_identifiers(self, db) -> None:
        db.execute_script(
            'CREATE TABLE people (id INTEGER PRIMARY KEY, "first name" TEXT, "user-id" INTEGER);'
        )
        new_id = db.insert("people", {"first name": "Ann", "user-id": 7})

        row = db.select("people", {"first name": "Ann", "user-id": 7}).fetch_row(0)
        assert row == {"id": new_id, "first name": "Ann", "user-id": 7}

        assert db.update("people", {"first name": "Bea"}, '"user-id" = :uid', {"uid": 7}) == 1
        assert db.select("people", {"user-id": 7}).fetch_row(0)["first name"] == "Bea"

    def test_update_where_may_reuse_column_name(self, seeded_db) -> None:
        assert seeded_db.update("users", {"id": 20}, "id = :id", {"id": 2}) == 1
        assert seeded_db.select("users", {"id": 20}).fetch_row(0)["name"] == "Bob"


class TestTransaction:
    def test_commit(self, db) -> None:
        with db.transaction():
            db.insert("users", {"name": "A", "email": "a"})
            db.insert("users", {"name": "B", "email": "b"})
        assert len(db.select("users")) == 2

    def test_rollback(self, db) -> None:
        with pytest.raises(RuntimeError), db.transaction():
            db.insert("users", {"name": "A", "email": "a"})
            raise RuntimeError("boom")
        assert len(db.select("users")) == 0
        assert db.connection.autocommit is True


class TestEcho:
    def test_echo_logs_statements(self, tmp_path, caplog) -> None:
        db = Database(f"sqlite:///{tmp_path / 'x.db'}", echo=True)
        with caplog.at_level(logging.INFO, logger="llama.data"):
            db.prepare("SELECT ?").execute((1,))
        db.disconnect()
        assert "SELECT ?" in caplog.text
        assert "params=(1,)" in caplog.text

    def test_silent_without_echo(self, db, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="llama.data"):
            db.prepare("SELECT 1").execute()
        assert caplog.records == []


# =============================================================================
# RecordSet
# =============================================================================


class TestRecordSet:
    def test_empty(self) -> None:
        records = RecordSet()
        assert len(records) == 0
        assert records.fetch_row(0) is None
        assert list(records) == []

    def test_fetch_row_absolute(self, seeded_db) -> None:
        records = seeded_db.select("users", order_by="id")
        assert records.fetch_row(2)["name"] == "Carol"
        assert records.fetch_row(0)["name"] == "Alice"

    def test_fetch_row_out_of_range(self, seeded_db) -> None:
        records = seeded_db.select("users")
        assert records.fetch_row(3) is None
        assert records.fetch_row(-1) is None

    def test_buffers_lazily(self, seeded_db) -> None:
        records = seeded_db.select("users", order_by="id")
        records.fetch_row(0)
        assert repr(records) == "RecordSet(buffered=1, open)"
        assert records.row_count() == 3
        assert repr(records) == "RecordSet(buffered=3, exhausted)"

    def test_survives_next_statement(self, seeded_db) -> None:
        records = seeded_db.select("users", order_by="id")
        seeded_db.select("users", {"id": 3})
        assert [row["id"] for row in records] == [1, 2, 3]


# =============================================================================
# Mapping and quoting
# =============================================================================


class TestMapping:
    def test_map_row_basic(self) -> None:
        user = map_row(User, {"id": 1, "name": "Alice", "email": "a@test.com"})
        assert user == User(id=1, name="Alice", email="a@test.com")

    def test_map_row_filters_extra_columns(self) -> None:
        user = map_row(User, {"id": 1, "name": "A", "email": "e", "extra": "ignored"})
        assert user.name == "A"

    def test_map_row_raises_on_missing_field(self) -> None:
        with pytest.raises(TypeError):
            map_row(User, {"id": 1, "name": "A"})

    def test_map_row_non_dataclass_raises(self) -> None:
        with pytest.raises(TypeError, match="not a dataclass"):
            map_row(dict, {"a": 1})

    def test_coercion(self) -> None:
        flagged = map_row(Flagged, {"id": "7", "active": 1, "score": "2.5"})
        assert flagged == Flagged(id=7, active=True, score=2.5)

    def test_none_is_not_coerced(self) -> None:
        assert map_row(Flagged, {"id": 1, "active": "0", "score": None}).score is None

    def test_map_rows(self) -> None:
        rows = [{"id": 1, "active": 0}, {"id": 2, "active": 1}]
        assert [f.active for f in map_rows(Flagged, rows)] == [False, True]

    def test_map_rows_empty(self) -> None:
        assert map_rows(User, []) == []


class TestQuoteIdentifier:
    def test_plain(self) -> None:
        assert quote_identifier("users") == '"users"'

    def test_embedded_quote(self) -> None:
        assert quote_identifier('we"ird') == '"we""ird"'
