"""Engine package - retrieval engine interface and orchestrator."""

from clone_retrieval.engine.base import RetrievalEngine
from clone_retrieval.engine.orchestrator import RetrievalOrchestrator

__all__ = ["RetrievalEngine", "RetrievalOrchestrator"]
