"""Vector index implementations."""

from src.providers.vector_store.memory_index import InMemoryVectorIndex

__all__ = ["InMemoryVectorIndex"]
