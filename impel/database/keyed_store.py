"""
Partitioned key-value store for Impel.
"""

from enum import Enum
from typing import Iterator, Optional, Tuple

from .connection import StorageBackend


class Partition(str, Enum):
    """Logical namespaces inside the storage backend."""
    CORE_DATA = "A*"
    USERS = "B*"
    CHALLENGES = "C*"
    USER_CHALLENGES = "D*"


class KeyedStore:
    """Four fixed partitions over a single backend namespace."""

    def __init__(self, backend: StorageBackend):
        self.backend = backend

    @staticmethod
    def _full_key(partition: Partition, key: str) -> str:
        return partition.value + key

    def get(self, partition: Partition, key: str) -> Optional[bytes]:
        return self.backend.get(self._full_key(partition, key))

    def put(self, partition: Partition, key: str, value: bytes) -> None:
        self.backend.put(self._full_key(partition, key), value)

    def scan(self, partition: Partition, key_prefix: str = "",
             strip_prefix: bool = True) -> Iterator[Tuple[str, bytes]]:
        """Iterate entries of a partition whose key starts with key_prefix.

        Keys never carry the partition prefix. With strip_prefix, key_prefix
        is removed as well and only the remaining suffix is yielded.
        """
        full_prefix = self._full_key(partition, key_prefix)
        cut = len(full_prefix) if strip_prefix else len(partition.value)
        for key, value in self.backend.scan(full_prefix):
            yield key[cut:], value
