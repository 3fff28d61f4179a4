"""
Storage package for Impel.
"""

from .connection import StorageBackend, MemoryBackend, JsonFileBackend, MongoBackend, WriteBuffer, create_backend
from .keyed_store import KeyedStore, Partition
from .models import Challenge, User, UserCommit
from .operations import CoreDataOps, UserOps, ChallengeOps, CommitOps

__all__ = [
    "StorageBackend",
    "MemoryBackend",
    "JsonFileBackend",
    "MongoBackend",
    "WriteBuffer",
    "create_backend",
    "KeyedStore",
    "Partition",
    "Challenge",
    "User",
    "UserCommit",
    "CoreDataOps",
    "UserOps",
    "ChallengeOps",
    "CommitOps"
]
