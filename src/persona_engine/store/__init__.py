"""Memory store collaborators."""

from .base import MemoryQuery, MemoryStore, call_store
from .json_file import JsonFileStore
from .memory import InMemoryStore

__all__ = ["MemoryQuery", "MemoryStore", "call_store", "InMemoryStore", "JsonFileStore"]
