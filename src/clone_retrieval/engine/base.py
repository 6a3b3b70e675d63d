"""
Retrieval Engine - Abstract Base Class

Defines the interface chat completion code uses to ground a clone's
answers in stored memories and ingested content.
"""

from abc import ABC, abstractmethod

from clone_retrieval.models.retrieval import RetrievalRequest, RetrievalResponse


class RetrievalEngine(ABC):
    """
    Abstract Base Class for retrieval engines.

    Implementations must always return a well-formed response: failures
    surface as low or "none" confidence with fewer results, never as
    exceptions.
    """

    @abstractmethod
    async def retrieve(self, request: RetrievalRequest) -> RetrievalResponse:
        """
        Gather memories and content relevant to a query.

        Args:
            request: Query text plus the user/app scope to search

        Returns:
            RetrievalResponse with ranked memories, contents and a
            confidence level
        """
        pass

    async def initialize(self) -> None:
        """Open connections held by the engine's collaborators."""
        pass

    async def close(self) -> None:
        """Release connections opened by initialize()."""
        pass
