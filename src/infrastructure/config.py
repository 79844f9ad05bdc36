import os
import logging
from typing import List

try:
    import streamlit as st  # type: ignore
    _HAS_STREAMLIT = True
except Exception:
    _HAS_STREAMLIT = False

logger = logging.getLogger(__name__)


DEFAULT_OVERPASS_URLS = (
    "https://overpass-api.de/api/interpreter",
    "https://overpass.kumi.systems/api/interpreter",
    "https://overpass.openstreetmap.fr/api/interpreter",
)

SUPPORTED_LANGUAGES = ("en", "hi", "mr")


def get_secret(name: str, default: str | None = None) -> str | None:
    # Prefer Streamlit secrets if available
    if _HAS_STREAMLIT:
        try:
            if name in st.secrets:
                return str(st.secrets.get(name))
        except Exception:
            # No secrets.toml outside `streamlit run`
            logger.debug("Streamlit secrets unavailable for %s", name)
    # Fallback to environment variables
    return os.environ.get(name, default)


def _get_float(name: str, default: float) -> float:
    value = get_secret(name)
    try:
        return float(value) if value else default
    except ValueError:
        logger.warning("Invalid %s=%r, using %s", name, value, default)
        return default


class Settings:
    @property
    def mistral_api_key(self) -> str | None:
        return get_secret("MISTRAL_API_KEY")

    @property
    def mistral_model(self) -> str:
        return get_secret("MISTRAL_MODEL", "mistral-large-latest") or "mistral-large-latest"

    @property
    def mistral_vision_model(self) -> str:
        return get_secret("MISTRAL_VISION_MODEL", "pixtral-large-latest") or "pixtral-large-latest"

    @property
    def llm_timeout_seconds(self) -> float:
        return _get_float("LLM_TIMEOUT_SECONDS", 30.0)

    @property
    def overpass_urls(self) -> List[str]:
        value = get_secret("OVERPASS_API_URLS")
        if not value:
            return list(DEFAULT_OVERPASS_URLS)
        return [url.strip() for url in value.split(",") if url.strip()]

    @property
    def facility_search_radius_m(self) -> int:
        return int(_get_float("FACILITY_SEARCH_RADIUS_M", 5000))

    @property
    def session_store_path(self) -> str | None:
        return get_secret("SESSION_STORE_PATH")

    @property
    def default_language(self) -> str:
        language = (get_secret("DEFAULT_LANGUAGE", "en") or "en").lower()
        return language if language in SUPPORTED_LANGUAGES else "en"
