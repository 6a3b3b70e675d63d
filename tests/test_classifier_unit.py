"""
Unit Tests for Query Classifier

Tests classification parsing using mocks. Does not require OpenAI API key.
"""

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from clone_retrieval.errors import ClassificationError
from clone_retrieval.llm.classifier import LLMQueryClassifier
from clone_retrieval.models.query_analysis import QueryIntent

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


def chat_response(content):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


class TestLLMQueryClassifier:
    """Unit tests for LLMQueryClassifier."""

    @pytest.fixture
    def classifier(self):
        classifier = LLMQueryClassifier(api_key="mock-key", clock=lambda: NOW)
        classifier.client = AsyncMock()
        return classifier

    @pytest.mark.asyncio
    async def test_classify_recent_linkedin_query(self, classifier):
        classifier.client.chat.completions.create = AsyncMock(return_value=chat_response(json.dumps({
            "intent": "recent_events",
            "entities": ["LinkedIn", "posts"],
            "temporalConstraint": {"type": "relative", "recency": "recent", "recencyDays": 7},
            "contentTypeFilter": ["post"],
            "sourceFilter": ["LinkedIn"],
            "requiresAggregation": False,
            "expectedAnswerType": "content_list",
            "confidenceRequired": "medium",
            "requiresPrivateInfo": False,
        })))

        analysis = await classifier.classify_query("What did I post on LinkedIn last week?")

        assert analysis.intent == QueryIntent.RECENT_EVENTS
        assert analysis.entities == ["LinkedIn", "posts"]
        assert analysis.source_filter == ["linkedin"]
        assert analysis.content_type_filter == ["post"]
        assert analysis.confidence_required == "medium"
        assert analysis.temporal_constraint.recency_days == 7
        assert analysis.temporal_constraint.end_date == NOW
        assert analysis.temporal_constraint.start_date == NOW - timedelta(days=7)

        kwargs = classifier.client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["temperature"] == 0.0
        assert "What did I post on LinkedIn last week?" in kwargs["messages"][0]["content"]

    def test_absolute_year_covers_whole_year(self, classifier):
        constraint = classifier.process_temporal_constraint(
            {"type": "absolute", "recency": "historical", "yearMentioned": 2022}
        )

        assert constraint.start_date == datetime(2022, 1, 1, tzinfo=timezone.utc)
        assert constraint.end_date == datetime(2022, 12, 31, 23, 59, 59, 999999, tzinfo=timezone.utc)

    def test_constraint_without_window_has_no_dates(self, classifier):
        constraint = classifier.process_temporal_constraint({"type": "relative", "recency": "recent"})

        assert constraint.recency == "recent"
        assert constraint.start_date is None
        assert constraint.end_date is None

    def test_lenient_parsing_defaults(self, classifier):
        analysis = classifier.parse_analysis({
            "intent": "small_talk",
            "confidenceRequired": "extreme",
            "entities": "not a list",
            "temporalConstraint": None,
        })

        assert analysis.intent == QueryIntent.CASUAL_CONVERSATION
        assert analysis.confidence_required == "low"
        assert analysis.entities == []
        assert analysis.source_filter == []
        assert analysis.has_source_filter is False
        assert analysis.temporal_constraint is None

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self, classifier):
        classifier.client.chat.completions.create = AsyncMock(return_value=chat_response("not json"))

        with pytest.raises(ClassificationError):
            await classifier.classify_query("hello")

    @pytest.mark.asyncio
    async def test_non_object_json_raises(self, classifier):
        classifier.client.chat.completions.create = AsyncMock(return_value=chat_response("[1, 2]"))

        with pytest.raises(ClassificationError):
            await classifier.classify_query("hello")

    @pytest.mark.asyncio
    async def test_api_failure_raises(self, classifier):
        classifier.client.chat.completions.create = AsyncMock(side_effect=RuntimeError("rate limited"))

        with pytest.raises(ClassificationError):
            await classifier.classify_query("hello")

    @pytest.mark.asyncio
    async def test_non_numeric_recency_days_raises(self, classifier):
        classifier.client.chat.completions.create = AsyncMock(return_value=chat_response(json.dumps({
            "intent": "recent_events",
            "temporalConstraint": {"type": "relative", "recencyDays": "seven"},
        })))

        with pytest.raises(ClassificationError):
            await classifier.classify_query("What did I do last week?")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("year", [0, 99999])
    async def test_out_of_range_year_raises(self, classifier, year):
        classifier.client.chat.completions.create = AsyncMock(return_value=chat_response(json.dumps({
            "intent": "historical_timeline",
            "temporalConstraint": {"type": "absolute", "yearMentioned": year},
        })))

        with pytest.raises(ClassificationError):
            await classifier.classify_query("What happened that year?")

    @pytest.mark.asyncio
    async def test_non_string_answer_type_raises(self, classifier):
        classifier.client.chat.completions.create = AsyncMock(return_value=chat_response(json.dumps({
            "intent": "factual_lookup",
            "expectedAnswerType": {"kind": "facts"},
        })))

        with pytest.raises(ClassificationError):
            await classifier.classify_query("Where do I work?")

    @pytest.mark.asyncio
    async def test_close_releases_client(self, classifier):
        await classifier.close()

        classifier.client.close.assert_awaited_once()
