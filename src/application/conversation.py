import logging
from typing import List, Optional

from src.application.ports import SessionStorePort
from src.application.schemas import TurnResult
from src.application.use_cases import ImageInput, TurnAnalysisUseCase
from src.domain.models import Message, SymptomSession


logger = logging.getLogger(__name__)


ANALYSIS_ACK = "I've analyzed your symptoms. Please review the detailed analysis below."


class ConversationSession:
    """Owns one user's message history and hands finished turns to storage."""

    def __init__(
        self,
        turn_analysis: TurnAnalysisUseCase,
        session_store: Optional[SessionStorePort] = None,
        user_id: Optional[str] = None,
        language: str = "en",
    ):
        self.turn_analysis = turn_analysis
        self.session_store = session_store
        self.user_id = user_id
        self.language = language
        self.messages: List[Message] = []
        self.last_result: Optional[TurnResult] = None

    def start_new(self):
        self.messages = []
        self.last_result = None

    def submit(self, text: str, image: Optional[ImageInput] = None) -> TurnResult:
        """Append the user's message, analyze the turn and record the reply."""
        self.messages.append(Message(role="user", content=text))

        result = self.turn_analysis.analyze_turn(self.messages, image=image, language=self.language)
        self.last_result = result

        if result.emergency.is_emergency:
            reply = f"⚠️ {result.emergency.emergency_type}: {result.emergency.message}"
        else:
            reply = ANALYSIS_ACK
        self.messages.append(Message(role="assistant", content=reply))

        self._persist(result)
        return result

    def _persist(self, result: TurnResult) -> None:
        if self.session_store is None or not self.user_id:
            return

        session = SymptomSession(
            user_id=self.user_id,
            messages=list(self.messages),
            analysis=result.analysis.to_dict() if result.analysis else None,
            emergency=result.emergency.to_dict(),
            language=self.language,
        )
        try:
            self.session_store.save_session(session)
        except Exception as e:
            # The turn result stands even if it cannot be stored.
            logger.exception("Failed to save session: %s", e)
