"""
Retrieval Orchestrator

Routes a query to the right backing stores based on its classification:

- uncertainty tests get no grounding at all
- queries naming a platform go straight to the relational content store
- everything else runs vector-store and memory-store search concurrently

Results are deduplicated, re-ranked and graded for confidence. Any
failure along the way degrades to an unclassified fallback search.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from clone_retrieval.config import RetrievalSettings, RetrievalSystemConfig, load_config
from clone_retrieval.database.repository import SocialContentRepository
from clone_retrieval.engine.base import RetrievalEngine
from clone_retrieval.llm.base import EmbeddingGenerator, QueryClassifier
from clone_retrieval.llm.classifier import LLMQueryClassifier
from clone_retrieval.llm.embeddings import EmbeddingClient
from clone_retrieval.models.query_analysis import QueryAnalysis, QueryIntent
from clone_retrieval.models.retrieval import (
    MemorySearchResult,
    RetrievalRequest,
    RetrievalResponse,
    RetrievalResult,
)
from clone_retrieval.models.store_records import SocialContentRow
from clone_retrieval.monitoring.error_reporter import (
    ErrorReporter,
    LoggingErrorReporter,
    build_error_context,
    report_safely,
)
from clone_retrieval.pipelines.hooks import PipelineHookManager
from clone_retrieval.pipelines.ranking import (
    calculate_confidence,
    deduplicate_results,
    parse_result_date,
    rerank_results,
)
from clone_retrieval.pipelines.shaping import convert_to_response_format
from clone_retrieval.stores.base import ContentRepository, MemoryStore, VectorStore
from clone_retrieval.stores.chroma import ChromaVectorStore
from clone_retrieval.stores.mem0 import Mem0MemoryStore

logger = logging.getLogger("clone_retrieval.orchestrator")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _distinct(values: List[str]) -> List[str]:
    """Unique values in first-seen order."""
    return list(dict.fromkeys(values))


class RetrievalOrchestrator(RetrievalEngine):
    """
    Multi-source retrieval for a clone's chat completions.

    Holds no per-request state; one instance serves concurrent requests.

    Usage:
        orchestrator = RetrievalOrchestrator.from_config()
        await orchestrator.initialize()

        response = await orchestrator.retrieve(
            RetrievalRequest(query="What did I post on LinkedIn last week?", user_id=7, app_id=3)
        )

        await orchestrator.close()
    """

    def __init__(
        self,
        classifier: QueryClassifier,
        embedder: EmbeddingGenerator,
        vector_store: VectorStore,
        memory_store: MemoryStore,
        content_repository: ContentRepository,
        error_reporter: Optional[ErrorReporter] = None,
        settings: Optional[RetrievalSettings] = None,
        hooks: Optional[PipelineHookManager] = None,
    ):
        self.classifier = classifier
        self.embedder = embedder
        self.vector_store = vector_store
        self.memory_store = memory_store
        self.content_repository = content_repository
        self.error_reporter = error_reporter or LoggingErrorReporter()
        self.settings = settings or RetrievalSettings()
        self.hooks = hooks or PipelineHookManager()

    @classmethod
    def from_config(
        cls,
        config: Optional[RetrievalSystemConfig] = None,
        error_reporter: Optional[ErrorReporter] = None,
        hooks: Optional[PipelineHookManager] = None,
    ) -> "RetrievalOrchestrator":
        """Build an orchestrator wired to OpenAI, Chroma, mem0 and PostgreSQL."""
        config = config or load_config()

        embedder = EmbeddingClient(
            api_key=config.embedding.api_key,
            base_url=config.embedding.base_url,
            model=config.embedding.model,
            enable_embedding_cache=config.embedding.enable_cache,
            max_cache_size=config.embedding.max_cache_size,
        )
        return cls(
            classifier=LLMQueryClassifier(
                api_key=config.classifier.api_key,
                base_url=config.classifier.base_url,
                model=config.classifier.model,
                max_retries=config.classifier.max_retries,
            ),
            embedder=embedder,
            vector_store=ChromaVectorStore(
                embedder=embedder,
                base_url=config.vector_store.url,
                collection_id=config.vector_store.collection_id,
                tenant=config.vector_store.tenant,
                database=config.vector_store.database,
                timeout_seconds=config.vector_store.timeout_seconds,
            ),
            memory_store=Mem0MemoryStore(
                api_key=config.memory_store.api_key,
                base_url=config.memory_store.url,
                timeout_seconds=config.memory_store.timeout_seconds,
            ),
            content_repository=SocialContentRepository(
                config.database.connection_string,
                embedding_dimension=config.embedding.dimension,
            ),
            error_reporter=error_reporter,
            settings=config.retrieval,
            hooks=hooks,
        )

    async def initialize(self) -> None:
        await self.content_repository.connect()

    async def close(self) -> None:
        await self.content_repository.disconnect()
        await self.classifier.close()
        await self.embedder.close()

    # ========== Main Flow ==========

    async def retrieve(self, request: RetrievalRequest) -> RetrievalResponse:
        """
        Classify, fetch, dedupe, re-rank and grade results for a query.

        Never raises: any failure is reported and answered by the
        fallback path instead.
        """
        start = time.perf_counter()

        try:
            context: Dict[str, Any] = {"request": request}

            await self.hooks.execute_before("classify", context)
            analysis = await self.classifier.classify_query(request.query)
            context["analysis"] = analysis
            await self.hooks.execute_after("classify", context)

            temporal = analysis.temporal_constraint
            logger.info(
                f"[Orchestrator] Query intent: {analysis.intent.value}, entities: [{', '.join(analysis.entities)}], "
                f"sources: [{', '.join(analysis.source_filter or []) or 'all'}], "
                f"temporal: {temporal.recency if temporal else 'any'}"
            )

            await self.hooks.execute_before("fetch", context)
            if analysis.intent == QueryIntent.UNCERTAINTY_TEST:
                logger.info("[Orchestrator] Uncertainty test detected - returning no grounding")
                all_results: List[RetrievalResult] = []
            elif analysis.has_source_filter:
                logger.info(
                    f"[Orchestrator] Source filter [{', '.join(analysis.source_filter)}] - "
                    f"querying social content directly"
                )
                all_results = await self._get_social_content_results(request, analysis)
            else:
                all_results = await self._get_baseline_results(request, analysis)
            context["results"] = all_results
            await self.hooks.execute_after("fetch", context)

            sources_used = _distinct([r.source for r in all_results])

            await self.hooks.execute_before("dedupe", context)
            deduped = deduplicate_results(all_results, self.settings.dedup_prefix_length)
            context["results"] = deduped
            await self.hooks.execute_after("dedupe", context)

            await self.hooks.execute_before("rerank", context)
            reranked = rerank_results(deduped, analysis, self.settings)
            context["results"] = reranked
            await self.hooks.execute_after("rerank", context)

            await self.hooks.execute_before("confidence", context)
            confidence = calculate_confidence(reranked, analysis, self.settings)
            context["confidence"] = confidence
            await self.hooks.execute_after("confidence", context)

            memories, contents = convert_to_response_format(reranked)
            processing_time = (time.perf_counter() - start) * 1000

            logger.info(
                f"[Orchestrator] Retrieved {len(memories)} memories, {len(contents)} contents "
                f"in {processing_time:.0f}ms (confidence: {confidence})"
            )

            return RetrievalResponse(
                query=request.query,
                memories=memories,
                contents=contents,
                total_results=len(memories) + len(contents),
                processing_time=processing_time,
                query_analysis=analysis,
                confidence_level=confidence,
                sources_used=sources_used,
            )

        except Exception as e:
            logger.error(f"Error in retrieval orchestrator: {e}", exc_info=True)
            report_safely(
                self.error_reporter,
                "Error in retrieval orchestrator",
                build_error_context(request, e),
            )
            return await self._fallback_retrieve(request)

    # ========== Direct Relational Path ==========

    async def _get_social_content_results(
        self,
        request: RetrievalRequest,
        analysis: QueryAnalysis,
    ) -> List[RetrievalResult]:
        """
        Query the social content table with the source filter and date window.

        An empty windowed result is retried once without the window.
        """
        try:
            embedding = await self.embedder.generate_embedding(request.query)
            temporal = analysis.temporal_constraint
            base_limit = request.max_results or self.settings.default_content_results

            rows = await self.content_repository.query_with_filters(
                app_id=request.app_id,
                query=request.query,
                query_embedding=embedding.embedding,
                sources=analysis.source_filter,
                start_date=temporal.start_date if temporal else None,
                end_date=temporal.end_date if temporal else None,
                limit=base_limit * self.settings.content_overfetch_factor,
            )
            logger.info(f"[Relational] Retrieved {len(rows)} social content items")

            if not rows and temporal is not None:
                logger.info("[Relational] No results in time range, retrying without temporal filter")
                rows = await self.content_repository.query_with_filters(
                    app_id=request.app_id,
                    query=request.query,
                    query_embedding=embedding.embedding,
                    sources=analysis.source_filter,
                    limit=base_limit,
                )
                logger.info(f"[Relational] Retry returned {len(rows)} results")

            return [self._row_to_result(row) for row in rows]

        except Exception as e:
            logger.error(f"Error in direct social content query: {e}", exc_info=True)
            report_safely(
                self.error_reporter,
                "Error in direct social content query",
                build_error_context(request, e),
            )
            return []

    @staticmethod
    def _row_to_result(row: SocialContentRow) -> RetrievalResult:
        published = row.social_content_created_at
        metadata = {
            "source": row.source,
            "externalId": row.external_id,
            "socialContentCreatedAt": published.isoformat() if published else None,
            "type": row.type,
        }
        metadata.update(row.metadata)

        return RetrievalResult(
            id=str(row.id),
            content=row.content,
            relevance_score=row.relevance_score,
            source=row.source,
            type=row.type,
            created_at=published or row.created_at,
            metadata=metadata,
        )

    # ========== Baseline Semantic Path ==========

    async def _get_baseline_results(
        self,
        request: RetrievalRequest,
        analysis: Optional[QueryAnalysis] = None,
    ) -> List[RetrievalResult]:
        """Vector-store and memory-store search in parallel; vector hits first."""
        vector_memories, stored_memories = await asyncio.gather(
            self._search_vector_store(request),
            self._search_memory_store(request, analysis),
        )

        return [
            RetrievalResult(
                id=memory.id,
                content=memory.memory,
                relevance_score=memory.relevance_score,
                source=memory.source,
                type="memory",
                created_at=parse_result_date(memory.created_at) or _utcnow(),
                metadata=memory.metadata,
            )
            for memory in vector_memories + stored_memories
        ]

    async def _search_vector_store(self, request: RetrievalRequest) -> List[MemorySearchResult]:
        """
        Pure semantic search, scoped only by app and user.

        Source and date filtering happen later in re-ranking, so this
        over-fetches.
        """
        try:
            clauses = []
            if request.app_id is not None:
                clauses.append({"appId": request.app_id})
            clauses.append({"userId": request.user_id})
            where = {"$and": clauses} if len(clauses) > 1 else clauses[0]

            top_k = (
                (request.max_results or self.settings.default_memory_results)
                * self.settings.vector_overfetch_factor
            )
            hits = await self.vector_store.query(request.query, top_k, where)

            memories = [
                MemorySearchResult(
                    id=hit.id,
                    memory=hit.text,
                    metadata=hit.metadata,
                    created_at=hit.created_at or _utcnow().isoformat(),
                    relevance_score=hit.score if hit.score is not None else 0.0,
                    source="chroma",
                )
                for hit in hits
                if hit.text and hit.text.strip()
            ]
            logger.info(f"[Chroma] Retrieved {len(hits)} items → {len(memories)} valid memories")
            return memories

        except Exception as e:
            logger.error(f"Error in Chroma search: {e}", exc_info=True)
            report_safely(self.error_reporter, "Error in Chroma search", build_error_context(request, e))
            return []

    async def _search_memory_store(
        self,
        request: RetrievalRequest,
        analysis: Optional[QueryAnalysis] = None,
    ) -> List[MemorySearchResult]:
        """
        mem0 search with score threshold and optional source filter.

        Args:
            request: Current request
            analysis: Classification; None in the fallback path (no filtering)
        """
        try:
            hits = await self.memory_store.search_memories(request.query, request.user_id, request.app_id)
            logger.info(f"[Mem0] Raw search returned {len(hits)} memories")

            source_filter = None
            if analysis is not None and analysis.has_source_filter:
                source_filter = {s.lower() for s in analysis.source_filter}

            memories = []
            for hit in hits:
                if hit.score <= self.settings.memory_min_score:
                    continue
                if source_filter is not None:
                    memory_source = str(hit.metadata.get("source") or "").lower()
                    if not memory_source or memory_source not in source_filter:
                        continue
                if not hit.memory or not hit.memory.strip():
                    continue
                memories.append(
                    MemorySearchResult(
                        id=hit.id,
                        memory=hit.memory,
                        metadata=hit.metadata,
                        created_at=hit.created_at or _utcnow().isoformat(),
                        relevance_score=hit.score,
                        source="mem0",
                    )
                )

            memories = memories[: request.max_results or self.settings.default_memory_results]

            if source_filter is not None:
                logger.info(
                    f"[Mem0] Applied source filter [{', '.join(analysis.source_filter)}]: "
                    f"{len(hits)} → {len(memories)} memories"
                )
            else:
                logger.info(f"[Mem0] No source filter applied, returning {len(memories)} memories")
            return memories

        except Exception as e:
            logger.error(f"Error in memory search: {e}", exc_info=True)
            report_safely(self.error_reporter, "Error in memory search", build_error_context(request, e))
            return []

    # ========== Fallback ==========

    async def _fallback_retrieve(self, request: RetrievalRequest) -> RetrievalResponse:
        """
        Unclassified retrieval used when the main flow fails.

        No filtering, dedup or re-ranking; memory-store results come first.
        """
        start = time.perf_counter()

        try:
            stored_memories, vector_memories = await asyncio.gather(
                self._search_memory_store(request),
                self._search_vector_store(request),
            )
            memories = stored_memories + vector_memories

            return RetrievalResponse(
                query=request.query,
                memories=memories,
                contents=[],
                total_results=len(memories),
                processing_time=(time.perf_counter() - start) * 1000,
                query_analysis=None,
                confidence_level="medium",
                sources_used=["mem0", "chroma"],
            )

        except Exception as e:
            logger.error(f"Fallback retrieval failed: {e}", exc_info=True)
            report_safely(self.error_reporter, "Fallback retrieval failed", build_error_context(request, e))
            return RetrievalResponse(
                query=request.query,
                memories=[],
                contents=[],
                total_results=0,
                processing_time=(time.perf_counter() - start) * 1000,
                query_analysis=None,
                confidence_level="none",
                sources_used=[],
            )
