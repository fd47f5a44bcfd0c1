"""Session-scoped query cache with optimistic updates.

Keys are tuples such as ``("tasks", project_id)``; invalidating
``("tasks",)`` drops every key that starts with it. The backing mapping is
normally ``st.session_state`` so cached rows survive reruns of the page
but never leak across browser sessions.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Hashable, MutableMapping, Optional, Tuple

logger = logging.getLogger(__name__)

_STATE_KEY = "_query_cache"


def _as_key(key: Any) -> Tuple[Hashable, ...]:
    return key if isinstance(key, tuple) else (key,)


class QueryCache:
    def __init__(self, state: MutableMapping[str, Any]):
        if _STATE_KEY not in state:
            state[_STATE_KEY] = {}
        self._data: dict = state[_STATE_KEY]

    def __contains__(self, key: Any) -> bool:
        return _as_key(key) in self._data

    def peek(self, key: Any, default: Any = None) -> Any:
        return self._data.get(_as_key(key), default)

    def get(self, key: Any, fetch: Callable[[], Any]) -> Any:
        k = _as_key(key)
        if k not in self._data:
            self._data[k] = fetch()
        return self._data[k]

    def set_data(self, key: Any, value: Any) -> None:
        self._data[_as_key(key)] = value

    def invalidate(self, *keys: Any) -> int:
        """Drop cached entries matching any of ``keys`` by prefix.

        With no keys the whole cache is cleared. Returns how many entries
        were dropped.
        """
        if not keys:
            n = len(self._data)
            self._data.clear()
            return n
        prefixes = [_as_key(k) for k in keys]
        stale = [k for k in self._data if any(k[: len(p)] == p for p in prefixes)]
        for k in stale:
            del self._data[k]
        return len(stale)

    def optimistic(
        self,
        key: Any,
        update: Callable[[Any], Any],
        commit: Callable[[], Any],
        invalidate: Optional[Tuple[Any, ...]] = None,
    ) -> Any:
        """Apply ``update`` to the cached value, then run ``commit``.

        If ``commit`` raises, the previous value is put back and the error
        propagates. On success the keys in ``invalidate`` are dropped so the
        next read refetches authoritative rows.
        """
        k = _as_key(key)
        had_value = k in self._data
        previous = self._data.get(k)
        self._data[k] = update(copy.deepcopy(previous))
        try:
            result = commit()
        except Exception:
            if had_value:
                self._data[k] = previous
            else:
                self._data.pop(k, None)
            logger.info("Rolled back optimistic update of %s", k)
            raise
        if invalidate:
            self.invalidate(*invalidate)
        return result
