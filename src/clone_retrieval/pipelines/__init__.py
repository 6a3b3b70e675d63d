"""Pipelines package - stage hooks, ranking and response shaping."""

from clone_retrieval.pipelines.hooks import PipelineHookManager, RETRIEVAL_STAGES
from clone_retrieval.pipelines.ranking import (
    calculate_confidence,
    content_fingerprint,
    deduplicate_results,
    is_source_prefiltered,
    rerank_results,
    resolve_result_date,
)
from clone_retrieval.pipelines.shaping import convert_to_response_format, parse_int_id

__all__ = [
    "PipelineHookManager",
    "RETRIEVAL_STAGES",
    "calculate_confidence",
    "content_fingerprint",
    "deduplicate_results",
    "is_source_prefiltered",
    "rerank_results",
    "resolve_result_date",
    "convert_to_response_format",
    "parse_int_id",
]
