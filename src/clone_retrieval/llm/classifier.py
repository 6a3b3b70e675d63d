"""
Query Classifier

LLM-backed classification of a user query into intent, entities,
source filter, temporal constraint and required confidence.
"""

import json
import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from openai import AsyncOpenAI
from pydantic import ValidationError

from clone_retrieval.errors import ClassificationError
from clone_retrieval.llm.base import QueryClassifier
from clone_retrieval.models.query_analysis import QueryAnalysis, QueryIntent, TemporalConstraint

logger = logging.getLogger("clone_retrieval.classifier")


CLASSIFICATION_PROMPT = """You are a query classifier for a digital clone system. Analyze the user query and classify it.

User Query: "{query}"

Classification Guidelines:

1. intent (choose exactly ONE):
   - "factual_lookup": specific facts, education, work history, projects, locations
   - "recent_events": recent activity or latest updates ("What did you post last week?")
   - "historical_timeline": comparing time periods or tracking changes over time
   - "personality_query": personality, values, what excites or motivates them
   - "opinion_query": stance or viewpoint on a specific topic
   - "content_search": explicit requests to find specific content
   - "analytics_query": statistics, counts or aggregated information
   - "casual_conversation": greetings and small talk
   - "uncertainty_test": private/personal information not in public content ("What did you have for breakfast?")
   - "story_request": narratives or experiences ("Tell me about a time when...")

2. entities (array of strings): 2-5 key topics, concepts or platforms mentioned

3. temporalConstraint (object or null):
   - type: "relative" (last week, recently) or "absolute" (in 2022)
   - recency: "recent", "historical" or "any"
   - recencyDays: number of days (7 for last week, 30 for last month, 365 for last year)
   - yearMentioned: specific year if mentioned
   null if the query has no time constraint

4. contentTypeFilter (array): content types if specified, e.g. ["post"], else []

5. sourceFilter (array, lowercase): social platforms mentioned, from
   "linkedin", "twitter", "facebook", "reddit", "medium", "substack", "github", "instagram"; [] if none

6. requiresAggregation (boolean): true for counts, statistics, "most", "top", "how many"

7. expectedAnswerType: "specific_facts", "opinions", "content_list", "summary" or "conversation"

8. confidenceRequired: "high" (factual), "medium" (opinions) or "low" (casual)

9. requiresPrivateInfo (boolean): true only for non-public personal information

Return ONLY a JSON object with exactly these keys."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LLMQueryClassifier(QueryClassifier):
    """
    Classifies queries with an OpenAI chat model in JSON mode.

    The model output is parsed leniently: unknown intents fall back to
    casual conversation, missing lists become empty. Transport or parse
    failures raise ClassificationError.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: str = "gpt-4o-mini",
        max_retries: int = 3,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.model = model
        self.client = AsyncOpenAI(
            api_key=api_key or os.getenv("OPENAI_API_KEY"),
            base_url=base_url,
            max_retries=max_retries,
        )
        self._clock = clock

    async def close(self) -> None:
        await self.client.close()

    async def classify_query(self, query: str) -> QueryAnalysis:
        """
        Classify user query to determine retrieval strategy.

        Args:
            query: Raw user query

        Returns:
            QueryAnalysis with resolved temporal dates

        Raises:
            ClassificationError: If the model call fails or returns invalid or
                unusable JSON
        """
        logger.info(f"[QueryClassifier] Classifying query: \"{query}\"")

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": CLASSIFICATION_PROMPT.format(query=query)}],
                temperature=0.0,
                response_format={"type": "json_object"},
            )
            raw = json.loads(response.choices[0].message.content)
        except (json.JSONDecodeError, IndexError, TypeError) as e:
            raise ClassificationError(f"Classifier returned invalid JSON: {e}") from e
        except Exception as e:
            raise ClassificationError(f"Classifier request failed: {e}") from e

        if not isinstance(raw, dict):
            raise ClassificationError(f"Classifier returned {type(raw).__name__}, expected object")

        try:
            analysis = self.parse_analysis(raw)
        except (ValueError, TypeError, OverflowError, ValidationError) as e:
            raise ClassificationError(f"Classifier returned unusable classification: {e}") from e

        logger.info(
            f"[QueryClassifier] Query: \"{query}\" → Intent: {analysis.intent.value}, "
            f"Sources: [{', '.join(analysis.source_filter or []) or 'none'}]"
        )
        return analysis

    def parse_analysis(self, raw: Dict[str, Any]) -> QueryAnalysis:
        """Convert the model's camelCase JSON into a QueryAnalysis."""
        try:
            intent = QueryIntent(raw.get("intent") or QueryIntent.CASUAL_CONVERSATION.value)
        except ValueError:
            logger.warning(f"[QueryClassifier] Unknown intent '{raw.get('intent')}', using casual_conversation")
            intent = QueryIntent.CASUAL_CONVERSATION

        confidence = raw.get("confidenceRequired") or "low"
        if confidence not in ("high", "medium", "low"):
            confidence = "low"

        temporal_raw = raw.get("temporalConstraint")
        temporal = self.process_temporal_constraint(temporal_raw) if isinstance(temporal_raw, dict) else None

        return QueryAnalysis(
            intent=intent,
            entities=_string_list(raw.get("entities")),
            source_filter=[s.lower() for s in _string_list(raw.get("sourceFilter"))],
            temporal_constraint=temporal,
            content_type_filter=_string_list(raw.get("contentTypeFilter")),
            requires_aggregation=bool(raw.get("requiresAggregation", False)),
            expected_answer_type=raw.get("expectedAnswerType") or "conversation",
            confidence_required=confidence,
            requires_private_info=bool(raw.get("requiresPrivateInfo", False)),
        )

    def process_temporal_constraint(self, constraint: Dict[str, Any]) -> TemporalConstraint:
        """
        Resolve a temporal constraint into concrete dates.

        relative + recencyDays → [now - days, now]
        absolute + yearMentioned → the whole calendar year (UTC)
        """
        now = self._clock()
        result = TemporalConstraint(
            type=constraint.get("type") or "relative",
            recency=constraint.get("recency") or "any",
        )

        recency_days = constraint.get("recencyDays")
        year = constraint.get("yearMentioned")

        if result.type == "relative" and recency_days:
            result.recency_days = int(recency_days)
            result.end_date = now
            result.start_date = now - timedelta(days=int(recency_days))
        elif result.type == "absolute" and year:
            result.start_date = datetime(int(year), 1, 1, tzinfo=timezone.utc)
            result.end_date = datetime(int(year), 12, 31, 23, 59, 59, 999999, tzinfo=timezone.utc)

        return result


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v is not None and str(v).strip()]
