"""Signed cookie sessions.

Session data is serialized as JSON and signed with ``itsdangerous``. The
session is a mutable mapping; ``dumps()`` produces the value to send back
as the cookie named ``session.name``.

Usage::

    session = Session("llama_session", secret_key, cookie=request_cookie)
    session.set("flash", "Saved")
    ...
    message = session.get_once("flash")   # read and remove
    cookie_value = session.dumps()
"""

import logging
import secrets
from collections.abc import Iterator, MutableMapping
from typing import Any

from itsdangerous import BadSignature, URLSafeTimedSerializer

from llama.errors import ConfigurationError

logger = logging.getLogger("llama.session")


class Session(MutableMapping[str, Any]):
    """One logical user session backed by a signed cookie payload.

    A missing, tampered or expired cookie starts an empty session under a
    fresh id.
    """

    __slots__ = ("_data", "_id", "_max_age", "_name", "_serializer")

    def __init__(
        self,
        name: str,
        secret_key: str,
        *,
        id: str | None = None,
        cookie: str | None = None,
        max_age: int | None = None,
    ) -> None:
        if not secret_key:
            msg = "Session secret_key must not be empty."
            raise ConfigurationError(msg)

        self._name = name
        self._max_age = max_age
        self._serializer = URLSafeTimedSerializer(secret_key, salt=name)
        self._data: dict[str, Any] = {}
        self._id = id

        if cookie:
            self._load(cookie)
        if self._id is None:
            self._id = secrets.token_urlsafe(16)

    def _load(self, cookie: str) -> None:
        try:
            payload = self._serializer.loads(cookie, max_age=self._max_age)
        except BadSignature:
            logger.info("Discarding invalid %s cookie", self._name)
            return

        if not isinstance(payload, dict) or not isinstance(payload.get("data"), dict):
            return
        if self._id is not None and payload.get("id") != self._id:
            return
        self._id = payload.get("id")
        self._data = payload["data"]

    @property
    def name(self) -> str:
        return self._name

    @property
    def id(self) -> str:
        return self._id  # type: ignore[return-value]

    @property
    def data(self) -> dict[str, Any]:
        return self._data

    def set(self, name: str, value: Any) -> None:
        self._data[name] = value

    def get_once(self, name: str, default: Any = None) -> Any:
        """Return the value under *name* and remove it from the session."""
        return self._data.pop(name, default)

    def destroy(self) -> None:
        """Forget all data and rotate the session id."""
        self._data = {}
        self._id = secrets.token_urlsafe(16)

    def dumps(self) -> str:
        """Signed cookie value for the current id and data."""
        return self._serializer.dumps({"id": self._id, "data": self._data})

    # -- Mapping protocol --

    def __getitem__(self, name: str) -> Any:
        return self._data[name]

    def __setitem__(self, name: str, value: Any) -> None:
        self._data[name] = value

    def __delitem__(self, name: str) -> None:
        del self._data[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Session({self._name!r}, id={self._id!r}, keys={list(self._data)})"
