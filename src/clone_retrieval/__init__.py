"""
Clone Retrieval

Multi-source retrieval for digital-clone chat: query classification,
routing across vector, memory and relational stores, re-ranking and
confidence grading.
"""

from clone_retrieval.engine.orchestrator import RetrievalOrchestrator
from clone_retrieval.models.query_analysis import QueryAnalysis, QueryIntent
from clone_retrieval.models.retrieval import RetrievalRequest, RetrievalResponse

__version__ = "0.1.0"
__all__ = ["RetrievalOrchestrator", "QueryAnalysis", "QueryIntent", "RetrievalRequest", "RetrievalResponse"]
