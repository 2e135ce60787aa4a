from .store import ImportStore, InMemoryStore

__all__ = [
    "ImportStore",
    "InMemoryStore",
]
