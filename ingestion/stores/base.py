"""
Collaborator interfaces used by the record mapper
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional


class TargetStore(ABC):
    """
    Creates, finds, validates and writes target entities.

    Entities are plain attribute bags from the mapper's point of view:
    scalar destinations are set with ``setattr``, many-valued relations are
    list-like attributes and single relations are assigned directly.
    """

    @abstractmethod
    def create(self, kind: str) -> Any:
        """Return a new, unsaved entity of ``kind``"""
        pass

    @abstractmethod
    def find_by_field(self, kind: str, field: str, value: Any) -> Optional[Any]:
        """Return the first entity of ``kind`` whose ``field`` equals ``value``"""
        pass

    @abstractmethod
    def validate(self, entity: Any) -> List[str]:
        """Return validation messages; empty when the entity is valid"""
        pass

    @abstractmethod
    def persist(self, entity: Any):
        """Write the entity. Raises on failure."""
        pass

    @abstractmethod
    def is_relation_many(self, kind: str, relation: str) -> bool:
        """True when ``relation`` accepts several related entities"""
        pass

    def discard(self, entity: Any):
        """Drop unsaved changes made to ``entity``"""
        pass


class AssetFetcher(ABC):
    """Retrieves remote asset content"""

    @abstractmethod
    def fetch(self, url: str) -> bytes:
        """Return the content at ``url``. Raises AssetFetchError on failure."""
        pass


class AssetStore(ABC):
    """Stores asset binaries by folder and deduplication key"""

    @abstractmethod
    def find_by_key(self, folder: str, key: str) -> Optional[Any]:
        pass

    @abstractmethod
    def store(self, content: bytes, folder: str, key: str, title: Optional[str]) -> Any:
        """Save ``content`` as a new asset named ``key`` inside ``folder``"""
        pass

    @abstractmethod
    def update_title(self, asset: Any, title: str):
        pass


class TermStore(ABC):
    """Finds or creates taxonomy terms"""

    @abstractmethod
    def find_by_title(self, title_field: str, title: str) -> Optional[Any]:
        pass

    @abstractmethod
    def create(self, title_field: str, title: str) -> Any:
        """Create and save a term whose ``title_field`` is ``title``"""
        pass
