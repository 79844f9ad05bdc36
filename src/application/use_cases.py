import base64
import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import List, Optional, Sequence, Union

from src.application.contract import InvalidAnalysisError, normalize_analysis, parse_json_object
from src.application.ports import LLMPort
from src.application.schemas import AnalysisResult, TurnResult
from src.domain.detector import EmergencyDetector
from src.domain.fallback import classify_fallback
from src.domain.models import Message


logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT_SECONDS = 30.0

LANGUAGE_NAMES = {
    "en": "English",
    "hi": "Hindi",
    "mr": "Marathi",
}

SYSTEM_PROMPT = (
    "You are a medical symptom analysis assistant. Your role is to help users understand their symptoms, "
    "but you are NOT a replacement for professional medical care.\n\n"
    "CRITICAL RULES:\n"
    "1. NEVER provide definitive diagnoses.\n"
    "2. ALWAYS express uncertainty and limitations.\n"
    "3. ALWAYS recommend consulting a healthcare professional.\n"
    "4. Provide differential diagnoses with probability estimates.\n"
    "5. Ask clarifying questions to gather more information.\n"
    "6. Be transparent about confidence levels."
)


class InvalidConversationError(ValueError):
    """The caller handed over a conversation without a trailing user turn."""


ImageInput = Union[bytes, str]


def build_language_instruction(language: Optional[str]) -> str:
    name = LANGUAGE_NAMES.get((language or "en").lower(), "English")
    return (
        f"Write every human-readable value (condition names, descriptions, reasoning, questions, "
        f"recommendations, tips and advice) in {name}. Keep JSON keys and enum values in English."
    )


def build_schema_instructions() -> str:
    return (
        "You MUST return ONLY a valid JSON object. Do NOT include any markdown, code fences, or explanations.\n"
        "JSON keys: possibleConditions (array of objects), reasoning (array of strings), "
        "diagnosticConfidence (number 0-100), informationCompleteness (number 0-100), "
        "followUpQuestions (array of strings), riskLevel (one of 'critical', 'high', 'medium', 'low'), "
        "recommendation (array of strings), triageRecommendation (one of 'EMERGENCY_ROOM', 'URGENT_CARE', "
        "'ROUTINE_CONSULTATION', 'SELF_CARE'), redFlags, selfCareTips, commonTriggers, trackingAdvice, "
        "clinicalNextSteps (arrays of strings).\n"
        "Each possible condition object MUST have: name (string), probability (number 0-100), "
        "description (string).\n"
        "Modelling rules:\n"
        "- List 2-5 possible conditions ordered by descending probability.\n"
        "- Use specific clinical terms for condition names, never generic placeholders like 'illness' or 'infection'.\n"
        "- Probabilities across all conditions MUST sum to 100.\n"
        "- informationCompleteness is how much symptom detail you have; it is not the same as confidence.\n"
        "- If informationCompleteness is below 80, followUpQuestions is MANDATORY (2-4 questions).\n"
        "- diagnosticConfidence MUST go down as the description gets vaguer; below 50 strongly recommend seeing a doctor.\n"
        "- riskLevel reflects symptom severity and should agree with triageRecommendation.\n"
        "Start your response with { and end with }. Return valid JSON only."
    )


def build_system_prompt(language: Optional[str]) -> str:
    return "\n\n".join([SYSTEM_PROMPT, build_schema_instructions(), build_language_instruction(language)])


def to_data_uri(image: ImageInput, mime_type: str = "image/jpeg") -> str:
    if isinstance(image, bytes):
        if image.startswith(b"\x89PNG"):
            mime_type = "image/png"
        return f"data:{mime_type};base64,{base64.b64encode(image).decode('ascii')}"
    image = image.strip()
    if image.startswith("data:"):
        return image
    return f"data:{mime_type};base64,{image}"


def latest_user_message(conversation: Sequence[Message]) -> Optional[Message]:
    for message in reversed(conversation):
        if message.role == "user":
            return message
    return None


def build_messages(
    conversation: Sequence[Message],
    image: Optional[ImageInput] = None,
    language: Optional[str] = None,
) -> List[dict]:
    messages: List[dict] = [{"role": "system", "content": build_system_prompt(language)}]
    history = [{"role": m.role, "content": m.content} for m in conversation]

    if image:
        for entry in reversed(history):
            if entry["role"] == "user":
                entry["content"] = [
                    {"type": "text", "text": entry["content"]},
                    {"type": "image_url", "image_url": to_data_uri(image)},
                ]
                break

    return messages + history


class SymptomAnalysisUseCase:
    """Runs one analysis turn against the reasoning service.

    Never raises: missing credentials, transport errors, timeouts and unusable
    replies all end in the local fallback classifier.
    """

    def __init__(self, llm: Optional[LLMPort], timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS):
        self.llm = llm
        self.timeout_seconds = timeout_seconds

    def analyze(
        self,
        conversation: Sequence[Message],
        image: Optional[ImageInput] = None,
        language: Optional[str] = "en",
    ) -> AnalysisResult:
        try:
            if self.llm is None:
                raise RuntimeError("No reasoning service configured")
            messages = build_messages(conversation, image=image, language=language)
            raw = self._call_with_deadline(messages)
            return normalize_analysis(parse_json_object(raw))
        except InvalidAnalysisError as e:
            logger.warning("Analysis response unusable, falling back to local heuristic: %s", e)
        except FutureTimeoutError:
            logger.warning("Reasoning call exceeded %.1fs, falling back to local heuristic", self.timeout_seconds)
        except Exception as e:
            logger.exception("AI analysis error, falling back to local heuristic: %s", e)

        return self.fallback(conversation)

    def fallback(self, conversation: Sequence[Message]) -> AnalysisResult:
        latest = latest_user_message(conversation)
        document = classify_fallback(latest.content if latest else "")
        return normalize_analysis(document, is_fallback=True)

    def _call_with_deadline(self, messages: List[dict]) -> str:
        executor = ThreadPoolExecutor(max_workers=1)
        try:
            future = executor.submit(self.llm.generate_json, messages)
            return future.result(timeout=self.timeout_seconds)
        finally:
            # Do not wait on a hung call; the worker thread is abandoned.
            executor.shutdown(wait=False, cancel_futures=True)


class TurnAnalysisUseCase:
    """Inbound surface: emergency check first, analysis only when clear."""

    def __init__(self, analysis: SymptomAnalysisUseCase, detector: Optional[EmergencyDetector] = None):
        self.analysis = analysis
        self.detector = detector or EmergencyDetector()

    def analyze_turn(
        self,
        conversation: Sequence[Message],
        image: Optional[ImageInput] = None,
        language: Optional[str] = "en",
    ) -> TurnResult:
        if not conversation or conversation[-1].role != "user":
            raise InvalidConversationError("Last message must be from user")

        emergency = self.detector.detect(conversation[-1].content)
        if emergency.is_emergency:
            logger.warning("Emergency detected (%s); skipping analysis", emergency.emergency_type)
            return TurnResult(emergency=emergency, analysis=None)

        analysis = self.analysis.analyze(conversation, image=image, language=language)
        return TurnResult(emergency=emergency, analysis=analysis)
