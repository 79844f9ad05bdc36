from datetime import datetime, timezone
from typing import List, Literal, Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


Role = Literal["user", "assistant", "system"]
FacilityType = Literal["hospital", "clinic", "pharmacy"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Message(BaseModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    role: Role
    content: str = ""
    timestamp: datetime = Field(default_factory=_utcnow)

    @field_validator("content", mode="before")
    @classmethod
    def validate_content(cls, v):
        if v is None:
            return ""
        return str(v)


class EmergencyRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    keywords: Tuple[str, ...]
    label: str
    message: str

    @field_validator("keywords")
    @classmethod
    def validate_keywords(cls, v: Tuple[str, ...]):
        keywords = tuple(k.strip().lower() for k in v if k and k.strip())
        if not keywords:
            raise ValueError("an emergency rule needs at least one keyword")
        return keywords


class EmergencyResult(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    is_emergency: bool = Field(False, alias="isEmergency")
    emergency_type: Optional[str] = Field(None, alias="emergencyType")
    message: Optional[str] = None

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class MedicalFacility(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    lat: float
    lng: float
    type: FacilityType


class SymptomSession(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    user_id: Optional[str] = Field(None, alias="userId")
    messages: List[Message] = []
    # Stored as wire dicts so the record stays readable without the schemas.
    analysis: Optional[dict] = None
    emergency: Optional[dict] = None
    timestamp: datetime = Field(default_factory=_utcnow)
    language: str = "en"

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
