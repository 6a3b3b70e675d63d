"""
Response Shaping

Partitions ranked results into the memory-shaped and content-shaped
lists of a RetrievalResponse.
"""

import re
from typing import List, Tuple

from clone_retrieval.models.retrieval import (
    ContentSearchResult,
    MemorySearchResult,
    RetrievalResult,
)

MEMORY_SOURCES = ("mem0", "chroma")

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_int_id(value: str) -> int:
    """
    Integer id from its leading digits ("42abc" -> 42).

    Ids without a leading integer map to 0, so 0 is ambiguous between a
    real id 0 and an unparseable one.
    """
    match = _LEADING_INT.match(value or "")
    return int(match.group(1)) if match else 0


def is_memory_result(result: RetrievalResult) -> bool:
    return result.source in MEMORY_SOURCES or result.type == "memory"


def convert_to_response_format(
    results: List[RetrievalResult],
) -> Tuple[List[MemorySearchResult], List[ContentSearchResult]]:
    """
    Split results into (memories, contents), keeping ranked order in each.

    Memory results report source 'mem0' only when they came from mem0;
    every other memory-typed result is reported as 'chroma'.
    """
    memories: List[MemorySearchResult] = []
    contents: List[ContentSearchResult] = []

    for result in results:
        if is_memory_result(result):
            memories.append(
                MemorySearchResult(
                    id=result.id,
                    memory=result.content,
                    metadata=result.metadata,
                    created_at=result.created_at.isoformat(),
                    relevance_score=result.relevance_score,
                    source="mem0" if result.source == "mem0" else "chroma",
                )
            )
        else:
            contents.append(
                ContentSearchResult(
                    id=parse_int_id(result.id),
                    content=result.content,
                    source=result.source,
                    type=result.type,
                    created_at=result.created_at,
                    relevance_score=result.relevance_score,
                    metadata=result.metadata,
                )
            )

    return memories, contents
