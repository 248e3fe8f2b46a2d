"""Data layer error hierarchy."""

from llama.errors import LlamaError


class DataError(LlamaError):
    """Base for all llama.data errors."""


class ConnectionError(DataError):  # noqa: A001
    """Raised when a database connection cannot be established."""


class QueryError(DataError):
    """Raised when a SQL statement fails to prepare or execute."""


class NoStatement(DataError):  # noqa: N818
    """Raised when a statement operation runs before ``prepare()``."""

    def __init__(self) -> None:
        super().__init__("There is no prepared statement for use.")
