import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

from src.application.contract import clamp_score, parse_json_object
from src.application.ports import LLMPort
from src.application.schemas import Insight, PatternInsight
from src.domain.models import SymptomSession


logger = logging.getLogger(__name__)


PREDICTIVE_SYSTEM_PROMPT = (
    "You are a health pattern analysis AI. Analyze the user's symptom history to identify patterns "
    "and predict potential health risks.\n\n"
    "Your task:\n"
    "1. Identify recurring patterns (e.g., symptoms occurring on specific days, times, or after certain activities)\n"
    "2. Calculate a 30-day risk score (0-100) for developing chronic conditions based on trends\n"
    "3. Provide actionable recommendations\n\n"
    "Response Format (JSON only):\n"
    '{"insights": {"pattern": "...", "riskScore": 0-100, "recommendation": "...", "confidence": 0-100}, '
    '"riskScore": 0-100}\n\n'
    "Be conservative with risk scores."
)

INSUFFICIENT_DATA = PatternInsight(
    insights=Insight(
        pattern="Insufficient data for pattern analysis",
        risk_score=0,
        recommendation="Continue logging symptoms to enable predictive insights",
        confidence=0,
    ),
    risk_score=0,
)

IN_PROGRESS = {
    "pattern": "Pattern analysis in progress",
    "riskScore": 25,
    "recommendation": "Continue monitoring symptoms",
    "confidence": 50,
}

UNAVAILABLE = PatternInsight(
    insights=Insight(
        pattern="Unable to analyze patterns at this time",
        risk_score=25,
        recommendation="Continue logging symptoms and consult a healthcare provider if symptoms persist",
        confidence=30,
    ),
    risk_score=25,
)


def summarize_sessions(sessions: Sequence[SymptomSession]) -> str:
    blocks: List[str] = []
    for idx, session in enumerate(sessions, 1):
        analysis = session.analysis or {}
        conditions = ", ".join(
            c.get("name", "") for c in analysis.get("possibleConditions", []) if isinstance(c, dict)
        )
        messages = " | ".join(m.content for m in session.messages)
        blocks.append(
            f"Session {idx} ({session.timestamp:%Y-%m-%d %H:%M} {session.timestamp:%A}):\n"
            f"- Risk Level: {analysis.get('riskLevel') or 'unknown'}\n"
            f"- Conditions: {conditions or 'none'}\n"
            f"- Messages: {messages or 'none'}"
        )
    return "\n\n".join(blocks)


class PatternInsightUseCase:
    def __init__(self, llm: Optional[LLMPort], timeout_seconds: float = 30.0):
        self.llm = llm
        self.timeout_seconds = timeout_seconds

    def predict(self, sessions: Sequence[SymptomSession]) -> PatternInsight:
        if not sessions:
            return INSUFFICIENT_DATA

        messages = [
            {"role": "system", "content": PREDICTIVE_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": "Analyze these symptom sessions and identify patterns:\n\n" + summarize_sessions(sessions),
            },
        ]
        try:
            if self.llm is None:
                raise RuntimeError("No reasoning service configured")
            executor = ThreadPoolExecutor(max_workers=1)
            try:
                raw = executor.submit(self.llm.generate_json, messages).result(timeout=self.timeout_seconds)
            finally:
                executor.shutdown(wait=False, cancel_futures=True)
            return build_insight(parse_json_object(raw))
        except Exception as e:
            logger.exception("Prediction error: %s", e)
            return UNAVAILABLE


def build_insight(data: dict) -> PatternInsight:
    raw_insights = data.get("insights")
    if not isinstance(raw_insights, dict):
        raw_insights = IN_PROGRESS
    risk_score = data.get("riskScore") or IN_PROGRESS["riskScore"]

    return PatternInsight(
        insights=Insight(
            pattern=str(raw_insights.get("pattern") or IN_PROGRESS["pattern"]),
            risk_score=clamp_score(raw_insights.get("riskScore", IN_PROGRESS["riskScore"])),
            recommendation=str(raw_insights.get("recommendation") or IN_PROGRESS["recommendation"]),
            confidence=clamp_score(raw_insights.get("confidence", IN_PROGRESS["confidence"])),
        ),
        risk_score=clamp_score(risk_score),
    )
