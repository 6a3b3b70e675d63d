"""
Chroma Vector Store

Queries a Chroma server over its REST API. The query text is embedded
locally so the collection's stored vectors and the query share a model.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from clone_retrieval.errors import VectorStoreError
from clone_retrieval.llm.base import EmbeddingGenerator
from clone_retrieval.models.store_records import VectorStoreHit
from clone_retrieval.stores.base import VectorStore

logger = logging.getLogger("clone_retrieval.stores.chroma")


class ChromaVectorStore(VectorStore):
    """
    Chroma collection client.

    Chroma returns cosine distances; hits are converted to similarity
    scores as 1 - distance.
    """

    def __init__(
        self,
        embedder: EmbeddingGenerator,
        base_url: str = "http://localhost:8000",
        collection_id: str = "social_content",
        tenant: str = "default_tenant",
        database: str = "default_database",
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.embedder = embedder
        self.base_url = base_url.rstrip("/")
        self.collection_id = collection_id
        self.tenant = tenant
        self.database = database
        self.timeout = httpx.Timeout(timeout_seconds)
        self._transport = transport

    @property
    def query_url(self) -> str:
        return (
            f"{self.base_url}/api/v2/tenants/{self.tenant}/databases/{self.database}"
            f"/collections/{self.collection_id}/query"
        )

    async def query(
        self,
        text: str,
        top_k: int,
        filter: Optional[Dict[str, Any]] = None,
    ) -> List[VectorStoreHit]:
        embedding = await self.embedder.generate_embedding(text)

        payload: Dict[str, Any] = {
            "query_embeddings": [embedding.embedding],
            "n_results": top_k,
            "include": ["documents", "metadatas", "distances"],
        }
        if filter:
            payload["where"] = filter

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.query_url, json=payload)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPError as e:
            raise VectorStoreError(f"Chroma query failed: {e}") from e

        hits = self._parse_query_response(body)
        logger.debug(f"[Chroma] Query returned {len(hits)} hits (top_k={top_k})")
        return hits

    def _parse_query_response(self, body: Dict[str, Any]) -> List[VectorStoreHit]:
        """Flatten Chroma's per-query nested lists into hits for the single query."""
        ids = _first(body.get("ids"))
        documents = _first(body.get("documents"))
        metadatas = _first(body.get("metadatas"))
        distances = _first(body.get("distances"))

        hits = []
        for i, hit_id in enumerate(ids):
            metadata = (metadatas[i] if i < len(metadatas) else None) or {}
            distance = distances[i] if i < len(distances) else None
            hits.append(
                VectorStoreHit(
                    id=str(hit_id),
                    text=documents[i] if i < len(documents) else None,
                    metadata=metadata,
                    created_at=str(metadata["createdAt"]) if metadata.get("createdAt") else None,
                    score=1.0 - distance if distance is not None else None,
                )
            )
        return hits


def _first(nested: Optional[List[Any]]) -> List[Any]:
    if not nested:
        return []
    return nested[0] or []
