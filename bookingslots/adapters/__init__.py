"""
Adapters layer - Persistence implementations behind the repository protocol.
"""

from .memory_repository import InMemoryRepository

__all__ = ["InMemoryRepository"]
