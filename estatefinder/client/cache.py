# Request cache keyed by serialized query parameters.
# Each key is independent; `current` keeps serving the last completed result while another key loads.
from collections import OrderedDict
from typing import Any, Callable, Mapping, Optional, TypeVar

import httpx

T = TypeVar("T")


DEFAULT_MAX_ENTRIES = 50


class QueryCache:
    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        # Least recently used first; the oldest keys are evicted past max_entries
        self._entries: "OrderedDict[str, Any]" = OrderedDict()
        self.max_entries = max_entries
        self._current: Optional[Any] = None
        self.current_key: Optional[str] = None
        self.fetching_key: Optional[str] = None

    @staticmethod
    def key_for(namespace: str, params: Mapping[str, Any]) -> str:
        items = sorted((k, str(v)) for k, v in params.items() if v is not None)
        return f"{namespace}?{httpx.QueryParams(items)}"

    def get(self, key: str) -> Optional[Any]:
        return self._entries.get(key)

    @property
    def current(self) -> Optional[Any]:
        """Last completed result, even if its entry has since been invalidated."""
        return self._current

    @property
    def is_fetching(self) -> bool:
        return self.fetching_key is not None

    def fetch(self, key: str, loader: Callable[[], T], refresh: bool = False) -> T:
        """
        Return the cached value for key, loading it when missing (or when refresh=True).

        If the loader raises, `current` still holds the previous result.
        """
        if not refresh and key in self._entries:
            value = self._entries[key]
            self._entries.move_to_end(key)
        else:
            self.fetching_key = key
            try:
                value = loader()
            finally:
                self.fetching_key = None
            self._entries[key] = value
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
        self._current = value
        self.current_key = key
        return value

    def invalidate(self, namespace: Optional[str] = None) -> None:
        """Drop cached entries, all of them or those under one namespace."""
        if namespace is None:
            self._entries.clear()
            return
        prefix = f"{namespace}?"
        for key in [k for k in self._entries if k.startswith(prefix)]:
            del self._entries[key]
