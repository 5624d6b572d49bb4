"""Persistence layer: key-value backends and the classroom unit of work."""

from econsim.store.backends import JsonFileStore, KeyValueStore, MemoryStore
from econsim.store.classroom import COLLECTIONS, ClassroomStore, UnitOfWork
from econsim.store.locking import ReadWriteLock
from econsim.store.postgres import PostgresStore

__all__ = [
    "COLLECTIONS",
    "ClassroomStore",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "PostgresStore",
    "ReadWriteLock",
    "UnitOfWork",
]
