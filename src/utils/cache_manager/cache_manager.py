import os
import threading
from typing import Any, Callable

from config import Config
from log_config import log_manager
from utils.cache_manager.cache_backend import CacheBackend
from utils.cache_manager.error import CacheManagerError
from utils.cache_manager.file_cache import FileCacheBackend
from utils.cache_manager.memory_cache import MemoryCacheBackend

DEFAULT_CACHE_FILE_NAME = "jira_queries.jsonl"


class CacheManager:
    """Query cache passed explicitly to whoever needs it.

    Keys are query strings and values are raw tracker responses. Supports a per-run
    in-memory backend and a persistent append-only file backend.
    """

    _logger = log_manager.get_logger("CacheManager")

    def __init__(self, cache_backend: str = "memory", cache_file: str | None = None):
        """
        Args:
            cache_backend (str): "memory" or "file".
            cache_file (Optional[str]): JSON-lines file for the "file" backend.

        Raises:
            CacheManagerError: If the backend is unsupported or cannot be initialized.
        """
        self.cache_backend = cache_backend
        self._logger.info(f"Initializing CacheManager with backend: {cache_backend}")
        self._backend = self._initialize_backend(cache_backend, cache_file)

        self._locks_guard = threading.Lock()
        self._key_locks: dict[str, threading.Lock] = {}
        self.hits = 0
        self.misses = 0

    def _initialize_backend(self, cache_backend: str, cache_file: str | None = None) -> CacheBackend:
        if cache_backend == "memory":
            return MemoryCacheBackend()
        if cache_backend == "file":
            if not cache_file:
                raise CacheManagerError("The file cache backend requires a cache file", backend=cache_backend)
            try:
                return FileCacheBackend(cache_file)
            except Exception as e:
                self._logger.error(f"Failed to initialize backend '{cache_backend}': {e}")
                raise CacheManagerError(
                    f"Failed to initialize backend '{cache_backend}'",
                    backend=cache_backend,
                    cache_file=cache_file,
                    error=str(e),
                ) from e
        raise CacheManagerError(f"Unsupported cache backend: {cache_backend}", backend=cache_backend)

    @classmethod
    def from_cache_file(cls, cache_file: str | None) -> "CacheManager":
        """Builds a file-backed manager when a cache file is given.

        Without one, ``CACHE_BACKEND=file`` selects ``CACHE_DIR/jira_queries.jsonl`` and
        anything else keeps the cache in memory for the run.
        """
        if cache_file:
            return cls("file", cache_file=cache_file)
        if Config.CACHE_BACKEND == "file":
            return cls("file", cache_file=os.path.join(Config.CACHE_DIR, DEFAULT_CACHE_FILE_NAME))
        return cls("memory")

    def load(self, key: str) -> Any | None:
        """Load data from the cache using the provided key.

        Args:
            key (str): The cache key to retrieve data for.

        Returns:
            Optional[Any]: The cached data, otherwise None.
        """
        try:
            return self._backend.load(key)
        except Exception as e:
            self._logger.error(f"Failed to load cache for key '{key}': {e}")
            raise CacheManagerError(f"Error loading cache for key '{key}'", error=str(e)) from e

    def save(self, key: str, data: Any) -> bool:
        """Save data to the cache using the provided key.

        A failed write is logged and reported through the return value; data already
        computed by the caller stays valid.

        Returns:
            bool: True when the entry was stored.
        """
        try:
            self._backend.save(key, data)
            return True
        except Exception as e:
            self._logger.error(f"Failed to save cache for key '{key}': {e}")
            return False

    def clear_all(self):
        """Clears all cache entries for the backend."""
        try:
            self._logger.debug("Clearing all cache entries")
            self._backend.clear_all()
        except Exception as e:
            self._logger.error(f"Failed to clear cache: {e}")
            raise CacheManagerError("Error clearing all cache entries", error=str(e)) from e

    def _lock_for(self, key: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = self._key_locks[key] = threading.Lock()
            return lock

    def get_or_fetch(
        self, key: str, fetch: Callable[[], Any], accept: Callable[[Any], bool] | None = None
    ) -> Any:
        """Return the cached value for ``key`` or compute it with ``fetch`` and store it.

        At most one ``fetch`` runs per distinct key; concurrent callers for the same
        key wait and then read the stored value. Exceptions raised by ``fetch``
        propagate and nothing is cached.

        A cached value rejected by ``accept`` counts as a miss; the fresh value is
        stored again and, in the file backend, its later line wins on the next load.

        Args:
            key (str): Cache key (the query string).
            fetch (Callable[[], Any]): Produces the raw value on a miss.
            accept (Optional[Callable[[Any], bool]]): Tells whether a cached value is still usable.

        Returns:
            Any: Cached or freshly fetched data.
        """
        with self._lock_for(key):
            cached = self.load(key)
            if cached is not None and accept is not None and not accept(cached):
                self._logger.info(f"Ignoring cached entry written with other settings for key: {key}")
                cached = None
            if cached is not None:
                self.hits += 1
                self._logger.debug(f"Cache hit for key: {key}")
                return cached

            self.misses += 1
            data = fetch()
            if not self.save(key, data):
                self._logger.error(f"Continuing without a cache entry for key: {key}")
            return data

    def __len__(self) -> int:
        return len(self._backend)
