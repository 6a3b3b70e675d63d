"""LLM package - embeddings and query classification."""

from clone_retrieval.llm.base import EmbeddingGenerator, EmbeddingProvider, QueryClassifier
from clone_retrieval.llm.classifier import LLMQueryClassifier
from clone_retrieval.llm.embeddings import EmbeddingClient
from clone_retrieval.llm.openai_provider import OpenAIEmbeddingProvider

__all__ = [
    "EmbeddingGenerator",
    "EmbeddingProvider",
    "QueryClassifier",
    "LLMQueryClassifier",
    "EmbeddingClient",
    "OpenAIEmbeddingProvider",
]
