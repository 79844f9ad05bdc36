"""Unit tests for the offline fallback classifier."""
import pytest

from src.application.contract import normalize_analysis
from src.domain.fallback import (
    FALLBACK_CONFIDENCE,
    FALLBACK_COMPLETENESS,
    GENERAL_CATEGORY,
    classify_fallback,
    match_category,
)


class TestCategoryMapping:
    """Keyword-to-category mapping."""

    @pytest.mark.parametrize("text,key,risk", [
        ("I have a headache and mild fever", "fever", "medium"),
        ("there is tightness in chest when I climb stairs", "chest", "high"),
        ("I get shortness of breath walking", "breathing", "high"),
        ("migraine again today", "headache", "medium"),
        ("my stomach hurts", "gastrointestinal", "medium"),
        ("I keep wanting to vomit", "gastrointestinal", "medium"),
        ("I don't feel well", "general", "medium"),
        ("", "general", "medium"),
    ])
    def test_mapping(self, text, key, risk):
        assert match_category(text).key == key
        assert classify_fallback(text)["riskLevel"] == risk

    def test_none_input(self):
        assert match_category(None) is GENERAL_CATEGORY
        assert classify_fallback(None)["possibleConditions"][0]["name"] == "General symptom pattern"

    def test_severity_escalates_medium_risk(self):
        document = classify_fallback("severe abdominal cramps")
        assert document["riskLevel"] == "high"
        assert document["triageRecommendation"] == "URGENT_CARE"

    def test_worst_pain_escalates(self):
        assert classify_fallback("worst pain in my back ever")["riskLevel"] == "high"


class TestDocumentShape:
    """The fallback document is fixed-shape and low-confidence."""

    def test_two_conditions_70_30(self):
        conditions = classify_fallback("fever since yesterday")["possibleConditions"]
        assert len(conditions) == 2
        assert [c["probability"] for c in conditions] == [70, 30]
        assert "infection" in conditions[0]["name"].lower()
        assert conditions[1]["name"] == "Other causes not fully specified"

    def test_fixed_scores(self):
        for text in ("fever", "headache", "I don't feel well", "chest pain"):
            document = classify_fallback(text)
            assert document["confidenceScore"] == FALLBACK_CONFIDENCE == 40
            assert document["informationCompleteness"] == FALLBACK_COMPLETENESS == 40

    def test_follow_up_questions(self):
        questions = classify_fallback("headache")["followUpQuestions"]
        assert 2 <= len(questions) <= 3

    def test_triage_matches_risk(self):
        assert classify_fallback("shortness of breath")["triageRecommendation"] == "URGENT_CARE"
        assert classify_fallback("mild fever")["triageRecommendation"] == "ROUTINE_CONSULTATION"

    def test_recommendations_follow_risk(self):
        high = classify_fallback("chest pain")["recommendation"]
        medium = classify_fallback("mild fever")["recommendation"]
        assert high and medium
        assert high != medium

    def test_deterministic(self):
        text = "I have a headache and mild fever"
        assert classify_fallback(text) == classify_fallback(text)

    def test_callers_cannot_mutate_shared_lists(self):
        first = classify_fallback("fever")
        first["followUpQuestions"].append("extra")
        assert "extra" not in classify_fallback("fever")["followUpQuestions"]

    def test_normalizes_cleanly(self):
        result = normalize_analysis(classify_fallback("I have a headache and mild fever"), is_fallback=True)
        assert result.is_fallback
        assert result.risk_level == "medium"
        assert result.confidence_score == 40
        assert len(result.possible_conditions) == 2
        assert result.follow_up_questions
