import copy
from typing import Any, Optional

from log_config import log_manager
from utils.cache_manager.cache_backend import CacheBackend
from utils.cache_manager.error import FileCacheError
from utils.data.json_manager import JSONManager
from utils.file_manager import FileManager


class FileCacheBackend(CacheBackend):
    """
    Append-only JSON-lines cache shared across runs.

    Each line holds ``{"query": <key>, "response": <raw payload>}``. The file is read
    once when the backend is created; saves append a new line and never rewrite the
    file, so a later line for the same key wins on the next load.

    Args:
        cache_file (str): Path of the JSON-lines file. Created if missing.
    """

    _logger = log_manager.get_logger("FileCacheBackend")

    def __init__(self, cache_file: str):
        self.cache_file = cache_file
        self._entries: dict[str, Any] = {}
        try:
            FileManager.touch(cache_file)
            self._load_file()
        except FileCacheError:
            raise
        except Exception as e:
            raise FileCacheError(
                f"Failed to initialize cache file: {cache_file}",
                cache_file=cache_file,
                error=str(e),
            ) from e

    def _load_file(self):
        for line_number, entry in JSONManager.iter_json_lines(self.cache_file):
            if not isinstance(entry, dict) or "query" not in entry or "response" not in entry:
                self._logger.warning(f"Skipping malformed cache line {line_number} in {self.cache_file}")
                continue
            self._entries[entry["query"]] = entry["response"]
        self._logger.info(f"Loaded {len(self._entries)} cached queries from {self.cache_file}")

    def load(self, key: str) -> Optional[Any]:
        if key not in self._entries:
            return None
        return copy.deepcopy(self._entries[key])

    def save(self, key: str, data: Any):
        try:
            JSONManager.append_json_line({"query": key, "response": data}, self.cache_file)
        except Exception as e:
            raise FileCacheError(
                f"Failed to save cache for key '{key}'",
                key=key,
                cache_file=self.cache_file,
                error=str(e),
            ) from e
        self._entries[key] = copy.deepcopy(data)

    def clear_all(self):
        """Forgets the in-memory index. The file itself is append-only and left intact."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
