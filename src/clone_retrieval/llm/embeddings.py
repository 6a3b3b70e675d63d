"""
Embedding Client

Generates query embeddings through a pluggable provider with an
in-process LRU cache.
"""

import logging
import os
from collections import OrderedDict
from typing import List, Optional

from clone_retrieval.llm.base import EmbeddingGenerator, EmbeddingProvider
from clone_retrieval.llm.openai_provider import OpenAIEmbeddingProvider
from clone_retrieval.models.store_records import EmbeddingResult

logger = logging.getLogger("clone_retrieval.embeddings")


class EmbeddingClient(EmbeddingGenerator):
    """
    Embedding generator backed by an EmbeddingProvider.

    Repeated queries are served from an LRU cache keyed by the exact text.
    """

    def __init__(
        self,
        provider: Optional[EmbeddingProvider] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: str = "text-embedding-ada-002",
        enable_embedding_cache: bool = True,
        max_cache_size: int = 1000,
    ):
        self._provider = provider or OpenAIEmbeddingProvider(
            api_key=api_key or os.getenv("OPENAI_API_KEY"),
            base_url=base_url,
            model=model,
        )

        self.enable_embedding_cache = enable_embedding_cache
        self.max_cache_size = max_cache_size
        self._embedding_cache: "OrderedDict[str, List[float]]" = OrderedDict()

        self._cache_hits = 0
        self._cache_misses = 0

    @property
    def provider(self) -> EmbeddingProvider:
        return self._provider

    async def generate_embedding(self, text: str) -> EmbeddingResult:
        """
        Generate embedding vector for text with caching.

        Internally uses batch_generate_embeddings so single and batched
        calls share the cache.
        """
        embeddings = await self.batch_generate_embeddings([text])
        return EmbeddingResult(embedding=embeddings[0])

    async def batch_generate_embeddings(self, texts: List[str]) -> List[List[float]]:
        """
        Generate embeddings for multiple texts in a single API call.

        Args:
            texts: List of text strings to embed

        Returns:
            List of embedding vectors in the same order as input texts
        """
        if not texts:
            return []

        uncached_texts = []
        uncached_indices = []
        result_embeddings: List[Optional[List[float]]] = [None] * len(texts)

        for i, text in enumerate(texts):
            if self.enable_embedding_cache and text in self._embedding_cache:
                self._cache_hits += 1
                self._embedding_cache.move_to_end(text)
                result_embeddings[i] = self._embedding_cache[text]
            else:
                uncached_texts.append(text)
                uncached_indices.append(i)

        if not uncached_texts:
            return result_embeddings

        self._cache_misses += len(uncached_texts)
        embeddings_from_api = await self._provider.batch_embed(uncached_texts)
        logger.debug(f"Embedded {len(uncached_texts)} texts via {self._provider.get_model_name()}")

        for text, original_index, embedding in zip(uncached_texts, uncached_indices, embeddings_from_api):
            result_embeddings[original_index] = embedding
            if self.enable_embedding_cache:
                self._add_to_cache(text, embedding)

        return result_embeddings

    def _add_to_cache(self, key: str, value: List[float]) -> None:
        """Add to cache with LRU eviction."""
        if key in self._embedding_cache:
            self._embedding_cache.move_to_end(key)
        elif self._embedding_cache and len(self._embedding_cache) >= self.max_cache_size:
            self._embedding_cache.popitem(last=False)
        self._embedding_cache[key] = value

    def get_cache_stats(self) -> dict:
        """Get cache hit/miss statistics."""
        total = self._cache_hits + self._cache_misses
        hit_rate = (self._cache_hits / total * 100) if total > 0 else 0

        return {
            "hits": self._cache_hits,
            "misses": self._cache_misses,
            "total_requests": total,
            "hit_rate_percent": round(hit_rate, 2),
            "cache_size": len(self._embedding_cache),
            "max_cache_size": self.max_cache_size,
        }

    async def close(self) -> None:
        await self._provider.close()

    def clear_embedding_cache(self) -> None:
        self._embedding_cache.clear()
        self._cache_hits = 0
        self._cache_misses = 0
