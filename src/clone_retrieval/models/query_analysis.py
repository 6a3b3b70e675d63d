"""
Query Analysis Data Model

Structured classification of a user query, produced by the query
classifier and consumed by the retrieval orchestrator.
"""

from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class QueryIntent(str, Enum):
    """Classifier-assigned category of a query."""
    FACTUAL_LOOKUP = "factual_lookup"
    RECENT_EVENTS = "recent_events"
    HISTORICAL_TIMELINE = "historical_timeline"
    PERSONALITY_QUERY = "personality_query"
    OPINION_QUERY = "opinion_query"
    CONTENT_SEARCH = "content_search"
    ANALYTICS_QUERY = "analytics_query"
    CASUAL_CONVERSATION = "casual_conversation"
    UNCERTAINTY_TEST = "uncertainty_test"  # private info, answered without grounding
    STORY_REQUEST = "story_request"


ConfidenceTier = Literal["high", "medium", "low"]


class TemporalConstraint(BaseModel):
    """
    Time window derived from query language like "last week" or "in 2022".

    start_date/end_date are resolved by the classifier; either may be
    missing when the query only carries a recency label.
    """

    type: str = Field(default="relative", description="'relative' or 'absolute'")
    recency: str = Field(default="any", description="'recent', 'historical' or 'any'")
    recency_days: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class QueryAnalysis(BaseModel):
    """
    Result of classifying a query.

    Drives which retrieval path runs, which filters apply during
    re-ranking, and how strict confidence scoring is.
    """

    intent: QueryIntent = QueryIntent.CASUAL_CONVERSATION
    entities: List[str] = Field(default_factory=list)
    source_filter: Optional[List[str]] = Field(
        default=None,
        description="Platform names the query targets, e.g. ['linkedin']"
    )
    temporal_constraint: Optional[TemporalConstraint] = None
    content_type_filter: List[str] = Field(default_factory=list)
    requires_aggregation: bool = False
    expected_answer_type: str = "conversation"
    confidence_required: ConfidenceTier = "low"
    requires_private_info: bool = False

    @property
    def has_source_filter(self) -> bool:
        return bool(self.source_filter)
