from typing import List, Protocol

from src.domain.models import MedicalFacility, SymptomSession


class LLMPort(Protocol):
    def generate_json(self, messages: List[dict]) -> str:
        """
        Accepts chat-style messages and returns the raw text of a single JSON object.
        """
        ...


class FacilitySearchPort(Protocol):
    def search_facilities(self, latitude: float, longitude: float, radius_meters: int = 5000) -> List[MedicalFacility]:
        ...


class SessionStorePort(Protocol):
    def save_session(self, session: SymptomSession) -> str:
        ...

    def get_user_sessions(self, user_id: str, max_results: int = 10) -> List[SymptomSession]:
        ...
