"""
mem0 Memory Store

Searches the mem0 platform's long-term memories for a user, optionally
scoped to one clone app through metadata filters.
"""

import logging
import os
from typing import Any, Dict, List, Optional

import httpx

from clone_retrieval.errors import MemoryStoreError
from clone_retrieval.models.store_records import MemoryStoreHit
from clone_retrieval.stores.base import MemoryStore

logger = logging.getLogger("clone_retrieval.stores.mem0")


class Mem0MemoryStore(MemoryStore):
    """
    mem0 REST client.

    - app_id given: v2 search, user_id plus an AND metadata filter on app_id
    - no app_id: v1 search by user_id only
    Without an API key every search returns an empty list.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = "https://api.mem0.ai",
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key or os.getenv("MEM0_API_KEY")
        self.base_url = base_url.rstrip("/")
        self.timeout = httpx.Timeout(timeout_seconds)
        self._transport = transport

        if not self.api_key:
            logger.warning("MEM0_API_KEY is not set. Memory search functionality will be disabled.")

    async def search_memories(
        self,
        query: str,
        user_id: int,
        app_id: Optional[int] = None,
    ) -> List[MemoryStoreHit]:
        if not self.api_key:
            logger.warning("MEM0_API_KEY is not set. Returning empty results.")
            return []

        if app_id is not None:
            url = f"{self.base_url}/v2/memories/search/"
            payload: Dict[str, Any] = {
                "query": query,
                "user_id": str(user_id),
                "filters": {"AND": [{"metadata": {"app_id": str(app_id)}}]},
            }
        else:
            url = f"{self.base_url}/v1/memories/search/"
            payload = {"query": query, "user_id": str(user_id)}

        logger.info(
            f"Searching memories for user {user_id}"
            f"{f' and app {app_id}' if app_id is not None else ''} with query: \"{query}\""
        )

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    url,
                    json=payload,
                    headers={"Authorization": f"Token {self.api_key}"},
                )
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPError as e:
            raise MemoryStoreError(f"mem0 search failed: {e}") from e

        raw_results = body.get("results", []) if isinstance(body, dict) else body
        hits = [self._to_hit(raw) for raw in raw_results or []]
        logger.info(f"Found {len(hits)} memories for user {user_id}")
        return hits

    @staticmethod
    def _to_hit(raw: Dict[str, Any]) -> MemoryStoreHit:
        created_at = raw.get("created_at")
        return MemoryStoreHit(
            id=str(raw.get("id")),
            memory=raw.get("memory"),
            metadata=raw.get("metadata") or {},
            score=float(raw.get("score") or 0.0),
            created_at=str(created_at) if created_at is not None else None,
            user_id=str(raw["user_id"]) if raw.get("user_id") is not None else None,
        )
