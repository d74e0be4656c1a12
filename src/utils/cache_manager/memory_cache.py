import copy
from typing import Any

from utils.cache_manager.cache_backend import CacheBackend


class MemoryCacheBackend(CacheBackend):
    """
    Per-run cache. Values are deep-copied on the way in and out so callers cannot
    mutate a cached payload.
    """

    def __init__(self):
        self._entries: dict[str, Any] = {}

    def load(self, key: str) -> Any | None:
        if key not in self._entries:
            return None
        return copy.deepcopy(self._entries[key])

    def save(self, key: str, data: Any):
        self._entries[key] = copy.deepcopy(data)

    def clear_all(self):
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
