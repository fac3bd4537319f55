# Local persistence package
from .key_value import KeyValueStore, MemoryKeyValueStore, FileKeyValueStore
from .local_cache import LocalCacheStore

__all__ = [
    "KeyValueStore",
    "MemoryKeyValueStore",
    "FileKeyValueStore",
    "LocalCacheStore"
]
