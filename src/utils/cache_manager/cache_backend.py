from abc import ABC, abstractmethod
from typing import Any


class CacheBackend(ABC):
    """Key -> raw response store. Entries are never invalidated automatically."""

    @abstractmethod
    def load(self, key: str) -> Any | None:
        pass

    @abstractmethod
    def save(self, key: str, data: Any):
        pass

    @abstractmethod
    def clear_all(self):
        pass

    def __len__(self) -> int:
        return 0
