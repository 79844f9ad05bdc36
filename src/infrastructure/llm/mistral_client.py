import logging
from typing import List

from src.application.ports import LLMPort
from src.infrastructure.config import Settings


logger = logging.getLogger(__name__)


def _has_image(messages: List[dict]) -> bool:
    for message in messages:
        content = message.get("content")
        if isinstance(content, list) and any(
            isinstance(chunk, dict) and chunk.get("type") == "image_url" for chunk in content
        ):
            return True
    return False


class MistralLLMAdapter(LLMPort):
    def __init__(self, settings: Settings | None = None, temperature: float = 0.7):
        self.settings = settings or Settings()
        self._client = None
        self._model = self.settings.mistral_model
        self._vision_model = self.settings.mistral_vision_model
        self._timeout_ms = int(self.settings.llm_timeout_seconds * 1000)
        self._temperature = temperature
        self._init_client()

    def _init_client(self):
        api_key = self.settings.mistral_api_key
        if not api_key:
            logger.error("Mistral API key is missing.")
            self._client = None
            return
        try:
            from mistralai import Mistral
            self._client = Mistral(api_key=api_key)
        except Exception as e:
            logger.exception("Failed to initialize Mistral client: %s", e)
            self._client = None

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    def generate_json(self, messages: List[dict]) -> str:
        if not self._client:
            raise RuntimeError("Mistral client not initialized (missing API key or import error)")
        model = self._vision_model if _has_image(messages) else self._model
        try:
            response = self._client.chat.complete(
                model=model,
                messages=messages,
                temperature=self._temperature,
                response_format={"type": "json_object"},
                timeout_ms=self._timeout_ms,
            )
        except Exception as e:
            logger.exception("Mistral chat call failed: %s", e)
            raise

        if not response or not response.choices:
            raise RuntimeError("No response from Mistral")
        content = response.choices[0].message.content
        if isinstance(content, list):
            # Chunked replies: keep the text parts only
            content = "".join(getattr(chunk, "text", "") or "" for chunk in content)
        if not content:
            raise RuntimeError("No response from Mistral")
        return content
