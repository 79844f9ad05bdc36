from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.domain.models import EmergencyResult


class RiskLevel(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TriageRecommendation(str, Enum):
    EMERGENCY_ROOM = "EMERGENCY_ROOM"
    URGENT_CARE = "URGENT_CARE"
    ROUTINE_CONSULTATION = "ROUTINE_CONSULTATION"
    SELF_CARE = "SELF_CARE"


class _WireModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, use_enum_values=True)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class Condition(_WireModel):
    name: str
    probability: float = Field(..., ge=0, le=100)
    description: Optional[str] = None


class AnalysisResult(_WireModel):
    possible_conditions: List[Condition] = Field(..., min_length=1, alias="possibleConditions")
    reasoning: List[str] = []
    confidence_score: float = Field(..., ge=0, le=100, alias="confidenceScore")
    information_completeness: float = Field(..., ge=0, le=100, alias="informationCompleteness")
    follow_up_questions: List[str] = Field([], alias="followUpQuestions")
    risk_level: RiskLevel = Field(RiskLevel.MEDIUM, alias="riskLevel")
    recommendation: List[str] = []
    triage_recommendation: TriageRecommendation = Field(
        TriageRecommendation.ROUTINE_CONSULTATION, alias="triageRecommendation"
    )
    red_flags: List[str] = Field([], alias="redFlags")
    self_care_tips: List[str] = Field([], alias="selfCareTips")
    common_triggers: List[str] = Field([], alias="commonTriggers")
    tracking_advice: List[str] = Field([], alias="trackingAdvice")
    clinical_next_steps: List[str] = Field([], alias="clinicalNextSteps")
    is_fallback: bool = Field(False, alias="isFallback")


class TurnResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    emergency: EmergencyResult
    analysis: Optional[AnalysisResult] = None

    def to_dict(self) -> dict:
        return {
            "emergency": self.emergency.to_dict(),
            "analysis": self.analysis.to_dict() if self.analysis else None,
        }


class Insight(_WireModel):
    pattern: str
    risk_score: float = Field(..., ge=0, le=100, alias="riskScore")
    recommendation: str
    confidence: float = Field(..., ge=0, le=100)


class PatternInsight(_WireModel):
    insights: Insight
    risk_score: float = Field(..., ge=0, le=100, alias="riskScore")
