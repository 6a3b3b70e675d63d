"""
Tests for Data Models

Tests request, analysis, result and response models.
"""

from datetime import timezone

import pytest
from pydantic import ValidationError

from clone_retrieval.models.query_analysis import QueryAnalysis, QueryIntent
from clone_retrieval.models.retrieval import RetrievalRequest, RetrievalResponse, RetrievalResult


class TestRetrievalRequest:
    """Tests for RetrievalRequest."""

    def test_optional_scope(self):
        request = RetrievalRequest(query="hi", user_id=1)

        assert request.app_id is None
        assert request.max_results is None

    def test_user_id_required(self):
        with pytest.raises(ValidationError):
            RetrievalRequest(query="hi")


class TestQueryAnalysis:
    """Tests for QueryAnalysis."""

    def test_defaults(self):
        analysis = QueryAnalysis()

        assert analysis.intent == QueryIntent.CASUAL_CONVERSATION
        assert analysis.confidence_required == "low"
        assert analysis.has_source_filter is False

    def test_source_filter_flag(self):
        assert QueryAnalysis(source_filter=["reddit"]).has_source_filter is True
        assert QueryAnalysis(source_filter=[]).has_source_filter is False

    def test_intent_values(self):
        assert QueryIntent("uncertainty_test") is QueryIntent.UNCERTAINTY_TEST
        assert len(QueryIntent) == 10


class TestRetrievalResult:
    """Tests for RetrievalResult and RetrievalResponse."""

    def test_created_at_defaults_to_aware_now(self):
        result = RetrievalResult(id="1", content="x", source="chroma")

        assert result.created_at.tzinfo == timezone.utc
        assert result.metadata == {}

    def test_empty_response(self):
        response = RetrievalResponse(query="q")

        assert response.total_results == 0
        assert response.confidence_level == "none"
        assert response.memories == []
        assert response.sources_used == []

    def test_confidence_level_is_constrained(self):
        with pytest.raises(ValidationError):
            RetrievalResponse(query="q", confidence_level="certain")
