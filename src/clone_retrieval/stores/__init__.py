"""Stores package - vector store, memory store and repository interfaces."""

from clone_retrieval.stores.base import ContentRepository, MemoryStore, VectorStore
from clone_retrieval.stores.chroma import ChromaVectorStore
from clone_retrieval.stores.mem0 import Mem0MemoryStore

__all__ = ["ContentRepository", "MemoryStore", "VectorStore", "ChromaVectorStore", "Mem0MemoryStore"]
