"""Persistence stores for LiveScribe."""

from .store import KeyValueStore, JsonFileStore, MemoryStore, StoreError

__all__ = [
    "KeyValueStore",
    "JsonFileStore",
    "MemoryStore",
    "StoreError",
]
