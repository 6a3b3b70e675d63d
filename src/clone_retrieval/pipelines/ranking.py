"""
Ranking Pipeline

Deduplication, re-ranking and confidence scoring for the combined
result list. Every function here is pure: inputs are never mutated.

Re-ranking order:
1. Source filter (skipped when results came pre-filtered from the database)
2. Temporal filter, falling back to the source-filtered set when empty
3. Recency boost for recent-events queries
4. Score cap, stable descending sort, truncation
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional

from clone_retrieval.config import RetrievalSettings
from clone_retrieval.models.query_analysis import QueryAnalysis, QueryIntent
from clone_retrieval.models.retrieval import ConfidenceLevel, RetrievalResult

logger = logging.getLogger("clone_retrieval.ranking")

# Metadata keys checked, in order, when resolving a result's date
DATE_METADATA_KEYS = ("timestamp", "socialContentCreatedAt", "createdAt")

# fromisoformat before 3.11 rejects odd-length fractions and compact offsets
_FRACTION = re.compile(r"(?<=\d{2}:\d{2}:\d{2})\.(\d+)")
_OFFSET = re.compile(r"(?<=\d{2}:\d{2})((?::\d{2})?(?:\.\d+)?)([+-]\d{2}):?(\d{2})?$")


# ========== Deduplication ==========

def content_fingerprint(content: str, prefix_length: int = 100) -> str:
    """Content identity for dedup: leading characters plus total length."""
    return f"{content[:prefix_length]}_{len(content)}"


def deduplicate_results(
    results: List[RetrievalResult],
    prefix_length: int = 100,
) -> List[RetrievalResult]:
    """Keep the first result per fingerprint, preserving order."""
    seen = set()
    unique = []
    for result in results:
        fingerprint = content_fingerprint(result.content, prefix_length)
        if fingerprint in seen:
            continue
        seen.add(fingerprint)
        unique.append(result)
    return unique


# ========== Dates ==========

def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _normalize_iso(text: str) -> str:
    text = _FRACTION.sub(lambda m: "." + (m.group(1) + "000000")[:6], text)
    return _OFFSET.sub(lambda m: f"{m.group(1)}{m.group(2)}:{m.group(3) or '00'}", text)


def parse_result_date(value: Any) -> Optional[datetime]:
    """
    Parse a date found on a result.

    Accepts datetimes, ISO-8601 strings (including a trailing "Z", compact
    "+HHMM" offsets and any fraction length) and epoch milliseconds.
    Naive values are taken as UTC. Anything else yields None.
    """
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            return _as_utc(datetime.fromisoformat(_normalize_iso(text)))
        except ValueError:
            return None
    return None


def resolve_result_date(result: RetrievalResult) -> Optional[datetime]:
    """
    Date used for temporal filtering and recency boosting.

    The first non-empty of metadata timestamp, socialContentCreatedAt and
    createdAt wins, then the result's own created_at. A present but
    unparseable value resolves to None rather than falling through.
    """
    for key in DATE_METADATA_KEYS:
        value = result.metadata.get(key)
        if value:
            return parse_result_date(value)
    if result.created_at:
        return parse_result_date(result.created_at)
    return None


# ========== Filters ==========

def is_source_prefiltered(
    results: List[RetrievalResult],
    social_platforms: Iterable[str],
) -> bool:
    """
    Whether results came from the direct relational path.

    Only the first element is inspected: relational rows carry their
    platform name as source, semantic results carry 'chroma' or 'mem0'.
    """
    if not results:
        return False
    platforms = {p.lower() for p in social_platforms}
    return results[0].source.lower() in platforms


def filter_by_sources(
    results: List[RetrievalResult],
    sources: Iterable[str],
) -> List[RetrievalResult]:
    """Keep results whose metadata source is one of `sources` (case-insensitive)."""
    wanted = {s.lower() for s in sources}
    kept = []
    for result in results:
        result_source = str(result.metadata.get("source") or "").lower()
        if result_source and result_source in wanted:
            kept.append(result)
        else:
            logger.debug(f"[Rerank] Excluding result {result.id} with source \"{result_source}\" (not in filter)")
    return kept


def filter_by_date_range(
    results: List[RetrievalResult],
    start_date: datetime,
    end_date: datetime,
) -> List[RetrievalResult]:
    """Keep results dated within [start_date, end_date]; undated results are dropped."""
    start = _as_utc(start_date)
    end = _as_utc(end_date)
    kept = []
    for result in results:
        item_date = resolve_result_date(result)
        if item_date is None:
            logger.debug(f"[Rerank] No usable date for result {result.id}, excluding")
            continue
        if start <= item_date <= end:
            kept.append(result)
        else:
            logger.debug(f"[Rerank] Excluding result {result.id} dated {item_date.isoformat()} (outside range)")
    return kept


# ========== Re-ranking ==========

def recency_multiplier(
    item_date: Optional[datetime],
    now: datetime,
    settings: RetrievalSettings,
) -> float:
    if item_date is None:
        return 1.0
    age_days = (now - item_date).total_seconds() / 86400
    if age_days <= settings.recent_boost_days:
        return settings.recent_boost_factor
    if age_days <= settings.month_boost_days:
        return settings.month_boost_factor
    return 1.0


def rerank_results(
    results: List[RetrievalResult],
    analysis: QueryAnalysis,
    settings: Optional[RetrievalSettings] = None,
    now: Optional[datetime] = None,
) -> List[RetrievalResult]:
    """
    Filter, boost, sort and truncate results for a classified query.

    Args:
        results: Deduplicated results
        analysis: Classification of the query
        settings: Ranking constants (defaults apply when omitted)
        now: Reference time for recency boosting

    Returns:
        At most settings.rerank_limit results, scores within [0, max score],
        sorted by score descending with ties kept in input order.
    """
    settings = settings or RetrievalSettings()
    now = _as_utc(now) if now else datetime.now(timezone.utc)

    prefiltered = is_source_prefiltered(results, settings.social_platforms)
    filtered = results
    source_filtered = results

    if prefiltered:
        logger.info("[Rerank] Skipping source/temporal filters - results already filtered by the database")
    elif analysis.has_source_filter:
        filtered = filter_by_sources(results, analysis.source_filter)
        source_filtered = filtered
        logger.info(
            f"[Rerank] Source filter [{', '.join(analysis.source_filter)}]: "
            f"{len(results)} → {len(filtered)} results"
        )

    temporal = analysis.temporal_constraint
    if not prefiltered and temporal and temporal.start_date and temporal.end_date:
        in_range = filter_by_date_range(filtered, temporal.start_date, temporal.end_date)
        logger.info(
            f"[Rerank] Temporal filter {temporal.start_date.isoformat()} to {temporal.end_date.isoformat()}: "
            f"{len(filtered)} → {len(in_range)} results"
        )
        if not in_range and source_filtered:
            logger.info(
                f"[Rerank] No results in time range, falling back to source-filtered set "
                f"({len(source_filtered)} items)"
            )
            filtered = source_filtered
        else:
            filtered = in_range

    boost = analysis.intent == QueryIntent.RECENT_EVENTS
    rescored = []
    for result in filtered:
        score = result.relevance_score
        if boost:
            score *= recency_multiplier(resolve_result_date(result), now, settings)
        score = max(0.0, min(score, settings.max_relevance_score))
        rescored.append(result.model_copy(update={"relevance_score": score}))

    # sorted() is stable, so equal scores keep their input order
    rescored = sorted(rescored, key=lambda r: r.relevance_score, reverse=True)
    return rescored[: settings.rerank_limit]


# ========== Confidence ==========

def calculate_confidence(
    results: List[RetrievalResult],
    analysis: QueryAnalysis,
    settings: Optional[RetrievalSettings] = None,
) -> ConfidenceLevel:
    """
    Grade the result set against the strictness the query asks for.

    Factual queries ('high') need several strong hits; 'medium' queries
    accept volume; casual queries are 'medium' whenever anything was found.
    """
    settings = settings or RetrievalSettings()
    if not results:
        return "none"

    high_count = sum(1 for r in results if r.relevance_score > settings.high_relevance_score)
    avg = sum(r.relevance_score for r in results) / len(results)

    if analysis.confidence_required == "high":
        if high_count >= settings.strict_high_count and avg > settings.strict_high_avg:
            return "high"
        if high_count >= settings.strict_medium_count and avg > settings.strict_medium_avg:
            return "medium"
        return "low"

    if analysis.confidence_required == "medium":
        if high_count >= settings.moderate_high_count and avg > settings.moderate_high_avg:
            return "high"
        if len(results) >= settings.moderate_medium_size:
            return "medium"
        return "low"

    return "medium"
