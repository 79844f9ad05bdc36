"""Validate-then-normalize boundary for analysis documents.

Anything coming back from the reasoning service (or the local fallback) is an
untyped document. ``normalize_analysis`` is the only place that turns such a
document into an ``AnalysisResult``; it never performs I/O.
"""
import json
import logging
from typing import Any, List, Mapping, Optional

from src.application.schemas import (
    AnalysisResult,
    Condition,
    RiskLevel,
    TriageRecommendation,
)


logger = logging.getLogger(__name__)


MAX_CONDITIONS = 5
FOLLOW_UP_THRESHOLD = 80
UNKNOWN_CONDITION_NAME = "Unknown condition"
DEFAULT_CONDITION_DESCRIPTION = "No further description was provided."

DEFAULT_FOLLOW_UP_QUESTIONS = [
    "When did your symptoms start, and are they getting better or worse?",
    "How severe are your symptoms on a scale of 0 to 10?",
    "Do you have any other symptoms, medical conditions, or take any medications?",
]

LIST_FIELDS = {
    "reasoning": "reasoning",
    "followUpQuestions": "follow_up_questions",
    "recommendation": "recommendation",
    "redFlags": "red_flags",
    "selfCareTips": "self_care_tips",
    "commonTriggers": "common_triggers",
    "trackingAdvice": "tracking_advice",
    "clinicalNextSteps": "clinical_next_steps",
}


class InvalidAnalysisError(ValueError):
    """Raised when a document cannot be turned into an analysis at all."""


def clamp_score(value: Any) -> float:
    # bool is an int subclass; true/false is not a score
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except OverflowError:
        # ints beyond float range
        return 100.0 if value > 0 else 0.0
    except (TypeError, ValueError):
        return 0.0
    if number != number:  # NaN
        return 0.0
    return min(100.0, max(0.0, number))


def _string_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    return [str(item).strip() for item in value if item is not None and str(item).strip()]


def _enum_value(value: Any, enum_cls, default, upper: bool = False):
    if isinstance(value, str):
        candidate = value.strip().upper() if upper else value.strip().lower()
        try:
            return enum_cls(candidate)
        except ValueError:
            logger.warning("Unknown %s value %r, using %s", enum_cls.__name__, value, default.value)
    return default


def _condition(raw: Any) -> Condition:
    if isinstance(raw, str):
        raw = {"name": raw}
    if not isinstance(raw, Mapping):
        raw = {}

    name = raw.get("name")
    name = str(name).strip() if name is not None else ""
    description = raw.get("description")
    description = str(description).strip() if description is not None else ""

    return Condition(
        name=name or UNKNOWN_CONDITION_NAME,
        probability=clamp_score(raw.get("probability", 0)),
        description=description or DEFAULT_CONDITION_DESCRIPTION,
    )


def pick_confidence(document: Mapping[str, Any]) -> Any:
    """``diagnosticConfidence`` wins over the legacy ``confidenceScore``."""
    if document.get("diagnosticConfidence") is not None:
        return document["diagnosticConfidence"]
    return document.get("confidenceScore", 0)


def normalize_analysis(document: Any, is_fallback: bool = False) -> AnalysisResult:
    if not isinstance(document, Mapping):
        raise InvalidAnalysisError("Analysis document must be a JSON object")

    raw_conditions = document.get("possibleConditions")
    if not isinstance(raw_conditions, list) or not raw_conditions:
        raise InvalidAnalysisError("Analysis document has no possibleConditions list")

    if len(raw_conditions) > MAX_CONDITIONS:
        logger.info("Truncating %d conditions to %d", len(raw_conditions), MAX_CONDITIONS)
    conditions = [_condition(c) for c in raw_conditions[:MAX_CONDITIONS]]

    total = sum(c.probability for c in conditions)
    if abs(total - 100) > 0.5:
        # Left as reported; the UI shows the model's own numbers.
        logger.debug("Condition probabilities sum to %.1f, not 100", total)

    lists = {attr: _string_list(document.get(key)) for key, attr in LIST_FIELDS.items()}

    completeness = clamp_score(document.get("informationCompleteness", 0))
    if completeness < FOLLOW_UP_THRESHOLD and not lists["follow_up_questions"]:
        logger.warning(
            "Completeness %.0f below %d without follow-up questions; adding defaults",
            completeness, FOLLOW_UP_THRESHOLD,
        )
        lists["follow_up_questions"] = list(DEFAULT_FOLLOW_UP_QUESTIONS)

    return AnalysisResult(
        possible_conditions=conditions,
        confidence_score=clamp_score(pick_confidence(document)),
        information_completeness=completeness,
        risk_level=_enum_value(document.get("riskLevel"), RiskLevel, RiskLevel.MEDIUM),
        triage_recommendation=_enum_value(
            document.get("triageRecommendation"),
            TriageRecommendation,
            TriageRecommendation.ROUTINE_CONSULTATION,
            upper=True,
        ),
        is_fallback=is_fallback,
        **lists,
    )


def parse_json_object(raw: Optional[str]) -> dict:
    """Cut a JSON object out of a model reply that may carry extra text."""
    if raw is None:
        raise InvalidAnalysisError("Empty response from reasoning service")
    raw = raw.strip()
    if not raw.startswith("{"):
        start_idx = raw.find("{")
        if start_idx != -1:
            raw = raw[start_idx:]
    if not raw.endswith("}"):
        end_idx = raw.rfind("}")
        if end_idx != -1:
            raw = raw[:end_idx + 1]

    try:
        data = json.loads(raw)
    except ValueError as e:  # JSONDecodeError, or ints over the digit limit
        raise InvalidAnalysisError(f"Response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise InvalidAnalysisError("Response JSON is not an object")
    return data
