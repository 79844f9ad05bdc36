"""Tests for pattern insights over stored sessions."""
import json
from datetime import datetime, timezone

from src.application.insights import PatternInsightUseCase, summarize_sessions
from src.domain.models import Message, SymptomSession


class DummyLLM:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def generate_json(self, messages):
        self.calls.append(messages)
        return self.response


class FailingLLM:
    def generate_json(self, messages):
        raise ConnectionError("offline")


def _sessions():
    return [
        SymptomSession(
            user_id="u1",
            messages=[Message(role="user", content="headache after work")],
            analysis={"riskLevel": "medium", "possibleConditions": [{"name": "Tension-type headache"}]},
            timestamp=datetime(2026, 3, 2, 18, 30, tzinfo=timezone.utc),
        ),
        SymptomSession(
            user_id="u1",
            messages=[Message(role="user", content="headache again")],
            timestamp=datetime(2026, 3, 9, 18, 0, tzinfo=timezone.utc),
        ),
    ]


class TestPatternInsights:
    def test_no_sessions(self):
        llm = DummyLLM("{}")
        insight = PatternInsightUseCase(llm).predict([])
        assert insight.insights.pattern == "Insufficient data for pattern analysis"
        assert insight.risk_score == 0
        assert llm.calls == []

    def test_model_response(self):
        llm = DummyLLM(json.dumps({
            "insights": {
                "pattern": "Headaches on Monday evenings",
                "riskScore": 35,
                "recommendation": "Review workload and screen time",
                "confidence": 60,
            },
            "riskScore": 35,
        }))
        insight = PatternInsightUseCase(llm).predict(_sessions())
        assert insight.insights.pattern == "Headaches on Monday evenings"
        assert insight.risk_score == 35
        assert "Tension-type headache" in llm.calls[0][1]["content"]

    def test_missing_insights_default(self):
        insight = PatternInsightUseCase(DummyLLM('{"riskScore": 250}')).predict(_sessions())
        assert insight.insights.pattern == "Pattern analysis in progress"
        assert insight.insights.confidence == 50
        assert insight.risk_score == 100

    def test_failure_is_conservative(self):
        insight = PatternInsightUseCase(FailingLLM()).predict(_sessions())
        assert insight.insights.pattern == "Unable to analyze patterns at this time"
        assert insight.risk_score == 25
        assert insight.insights.confidence == 30

    def test_no_llm(self):
        assert PatternInsightUseCase(None).predict(_sessions()).risk_score == 25

    def test_summary(self):
        summary = summarize_sessions(_sessions())
        assert "Session 1 (2026-03-02 18:30 Monday)" in summary
        assert "- Risk Level: medium" in summary
        assert "- Conditions: none" in summary
        assert "headache again" in summary

    def test_huge_scores_clamped(self):
        raw = (
            '{"insights": {"pattern": "Evening headaches", "riskScore": 1' + "0" * 400
            + ', "recommendation": "Rest", "confidence": -1' + "0" * 400 + '}, "riskScore": 1' + "0" * 400 + "}"
        )
        insight = PatternInsightUseCase(DummyLLM(raw)).predict(_sessions())
        assert insight.insights.pattern == "Evening headaches"
        assert insight.insights.risk_score == 100
        assert insight.insights.confidence == 0
        assert insight.risk_score == 100
