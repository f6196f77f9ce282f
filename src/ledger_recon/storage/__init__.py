"""Match persistence interfaces."""

from .repository import MatchRepository, InMemoryMatchRepository

__all__ = ["MatchRepository", "InMemoryMatchRepository"]
