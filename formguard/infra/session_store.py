"""
Session stores used by the token manager.

A store wraps the key/value state of one browser session. The session itself
(cookie, id, persistence) belongs to whoever hands the mapping in.
"""
import hmac
import threading
from abc import ABC, abstractmethod
from collections.abc import Mapping, MutableMapping
from typing import Any, Optional

from formguard.exceptions import SessionUnavailable


def _as_bytes(value: str) -> bytes:
    return value.encode("utf-8", "surrogatepass")


class SessionStore(ABC):
    """Session-scoped key/value store.

    All operations raise SessionUnavailable when there is no session.
    take_if_equals is the only way the token manager consumes a token: the
    lookup, the comparison and the deletion happen under one lock.
    """

    def __init__(self):
        self._lock = threading.RLock()

    @abstractmethod
    def _data(self) -> Optional[MutableMapping]:
        """Return the backing mapping, or None if there is no session."""

    def is_available(self) -> bool:
        return self._data() is not None

    def _require(self) -> MutableMapping:
        data = self._data()
        if data is None:
            raise SessionUnavailable()
        return data

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._require().get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._require()[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._require().pop(key, None)

    def take_if_equals(self, key: str, field: str, expected: str) -> bool:
        """Remove ``self[key][field]`` if it equals ``expected``.

        The comparison is constant time. Returns True only when the entry
        existed, matched and was removed; otherwise nothing changes.
        """
        if not isinstance(expected, str):
            return False
        with self._lock:
            data = self._require()
            entries = data.get(key)
            if not isinstance(entries, Mapping):
                return False
            stored = entries.get(field)
            if not isinstance(stored, str):
                return False
            if not hmac.compare_digest(_as_bytes(stored), _as_bytes(expected)):
                return False
            remaining = dict(entries)
            del remaining[field]
            # Reassign at top level so cookie-backed sessions notice the write
            data[key] = remaining
            return True


class MappingSessionStore(SessionStore):
    """Adapter over an existing session mapping such as ``request.session``.

    Passing None means the request has no session.

    The lock only covers callers that share this adapter object. A new adapter
    per request gives no atomicity across requests: two requests carrying the
    same session each work on their own copy of the mapping. With Starlette's
    cookie-backed SessionMiddleware the session, consumed tokens included, lives
    on the client, so a client that replays an older cookie gets the older token
    map back. Serializing requests of one session is the session backend's job.
    """

    def __init__(self, session: Optional[MutableMapping]):
        super().__init__()
        self._session = session

    def _data(self) -> Optional[MutableMapping]:
        return self._session


class InMemorySessionStore(SessionStore):
    """Dict-backed store for tests and callers outside an HTTP request."""

    def __init__(self, initial: Optional[Mapping] = None, available: bool = True):
        super().__init__()
        self._session: dict = dict(initial or {})
        self.available = available

    def _data(self) -> Optional[MutableMapping]:
        return self._session if self.available else None

    def snapshot(self) -> dict:
        """Copy of the session contents, nested mappings included."""
        with self._lock:
            return {
                key: dict(value) if isinstance(value, Mapping) else value
                for key, value in self._session.items()
            }

    def clear(self) -> None:
        with self._lock:
            self._session.clear()
