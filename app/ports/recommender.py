"""Recommender port: abstract interface for playlist recommendations."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class RecommendationResult:
    """A recommended playlist id and the signal that surfaced it."""

    playlist_id: int
    reason: str


class RecommenderPort(ABC):
    """Abstraction for the playlist recommendation lookup."""

    @abstractmethod
    async def recommend(self, playlist_id: int) -> list[RecommendationResult]:
        """Return playlists related to ``playlist_id``, best first."""
        ...

    @abstractmethod
    async def invalidate(self, playlist_id: int) -> None:
        """Forget any cached recommendation for ``playlist_id``."""
        ...
