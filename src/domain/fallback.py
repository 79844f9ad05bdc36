"""Local symptom classifier used when the reasoning service cannot answer.

The output is a raw analysis document (camelCase keys, same shape the LLM is
asked for) so it goes through the same normalization as a live response.
Scores are fixed and low on purpose: a fallback result must always read as
less certain than a live one.
"""
from typing import List, NamedTuple, Optional, Tuple


FALLBACK_CONFIDENCE = 40
FALLBACK_COMPLETENESS = 40
PRIMARY_PROBABILITY = 70
OTHER_PROBABILITY = 30

ESCALATION_KEYWORDS = ("severe", "worst pain")


class FallbackCategory(NamedTuple):
    key: str
    keywords: Tuple[str, ...]
    condition: str
    description: str
    risk_level: str
    red_flags: Tuple[str, ...] = ()


FALLBACK_CATEGORIES: Tuple[FallbackCategory, ...] = (
    FallbackCategory(
        key="chest",
        keywords=("chest pain", "tightness in chest", "chest tightness"),
        condition="Possible cardiac or respiratory chest discomfort",
        description="Chest discomfort has cardiac, pulmonary and musculoskeletal causes that need in-person review.",
        risk_level="high",
        red_flags=(
            "Pain spreading to the arm, jaw or back",
            "Sweating, nausea or fainting with the pain",
        ),
    ),
    FallbackCategory(
        key="breathing",
        keywords=("shortness of breath", "short of breath", "breathless"),
        condition="Breathing-related issue (e.g. asthma or respiratory infection)",
        description="Breathlessness can come from the airways, lungs or heart.",
        risk_level="high",
        red_flags=(
            "Breathlessness at rest or when speaking",
            "Blue or grey lips",
        ),
    ),
    FallbackCategory(
        key="fever",
        keywords=("fever", "feverish", "high temperature"),
        condition="Possible infection (fever-related illness)",
        description="Fever usually reflects the body fighting a viral or bacterial infection.",
        risk_level="medium",
        red_flags=(
            "Fever above 39.5°C (103°F) or lasting more than 3 days",
            "Stiff neck, rash or confusion with fever",
        ),
    ),
    FallbackCategory(
        key="headache",
        keywords=("headache", "migraine"),
        condition="Primary headache (tension-type headache or migraine)",
        description="Most headaches are primary headaches related to tension, sleep, hydration or migraine.",
        risk_level="medium",
        red_flags=(
            "Sudden, worst-ever headache",
            "Headache with weakness, confusion or vision loss",
        ),
    ),
    FallbackCategory(
        key="gastrointestinal",
        keywords=("stomach", "abdominal", "vomit"),
        condition="Gastrointestinal upset (e.g. gastritis or gastroenteritis)",
        description="Stomach pain and vomiting are commonly caused by irritation or infection of the gut.",
        risk_level="medium",
        red_flags=(
            "Blood in vomit or stool",
            "Severe abdominal pain that does not ease",
        ),
    ),
)

GENERAL_CATEGORY = FallbackCategory(
    key="general",
    keywords=(),
    condition="General symptom pattern",
    description="The description does not point clearly to one body system.",
    risk_level="medium",
)

FOLLOW_UP_QUESTIONS: List[str] = [
    "When did these symptoms start, and have they been getting better or worse?",
    "How severe are the symptoms on a scale of 0 to 10?",
    "Do you have any other symptoms such as fever, chest pain, shortness of breath, or severe headache?",
]

RECOMMENDATIONS = {
    "high": [
        "Seek medical attention today, ideally at an urgent care centre.",
        "Call emergency services immediately if symptoms suddenly get worse.",
        "Do not drive yourself if you feel faint or short of breath.",
    ],
    "medium": [
        "Book an appointment with a doctor or clinic in the next few days.",
        "Rest, stay hydrated and keep a note of how your symptoms change.",
        "Seek urgent care if new or severe symptoms appear.",
    ],
}


def match_category(text: Optional[str]) -> FallbackCategory:
    lower_text = (text or "").lower()
    for category in FALLBACK_CATEGORIES:
        if any(keyword in lower_text for keyword in category.keywords):
            return category
    return GENERAL_CATEGORY


def classify_fallback(latest_user_text: Optional[str]) -> dict:
    lower_text = (latest_user_text or "").lower()
    category = match_category(lower_text)

    risk_level = category.risk_level
    if risk_level == "medium" and any(word in lower_text for word in ESCALATION_KEYWORDS):
        risk_level = "high"

    triage = "URGENT_CARE" if risk_level == "high" else "ROUTINE_CONSULTATION"

    return {
        "possibleConditions": [
            {
                "name": category.condition,
                "probability": PRIMARY_PROBABILITY,
                "description": category.description,
            },
            {
                "name": "Other causes not fully specified",
                "probability": OTHER_PROBABILITY,
                "description": "More detail is needed to consider other explanations.",
            },
        ],
        "reasoning": [
            "The AI analysis service is currently unavailable, so this is a local keyword-based approximation.",
            "Your description suggests symptoms that should be reviewed by a clinician.",
        ],
        "confidenceScore": FALLBACK_CONFIDENCE,
        "informationCompleteness": FALLBACK_COMPLETENESS,
        "followUpQuestions": list(FOLLOW_UP_QUESTIONS),
        "riskLevel": risk_level,
        "recommendation": list(RECOMMENDATIONS[risk_level]),
        "triageRecommendation": triage,
        "redFlags": list(category.red_flags),
    }
