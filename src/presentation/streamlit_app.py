import logging
import os
from typing import Optional

import streamlit as st

from src.application.conversation import ConversationSession
from src.application.insights import PatternInsightUseCase
from src.application.schemas import AnalysisResult
from src.application.use_cases import SymptomAnalysisUseCase, TurnAnalysisUseCase
from src.infrastructure.config import SUPPORTED_LANGUAGES, Settings
from src.infrastructure.facilities.mock_search import MockFacilitySearchAdapter
from src.infrastructure.facilities.overpass import FacilitySearchError, OverpassFacilitySearchAdapter
from src.infrastructure.llm.mistral_client import MistralLLMAdapter
from src.infrastructure.storage.session_store import JsonSessionStore


logger = logging.getLogger(__name__)


DISCLAIMER = (
    "⚕️ **DISCLAIMER:** This is NOT medical advice and NOT a diagnosis. "
    "This assistant is for educational purposes only. "
    "If you experience emergency symptoms, seek immediate care (call local emergency number)."
)

LANGUAGE_LABELS = {"en": "English", "hi": "हिन्दी", "mr": "मराठी"}

LOW_CONFIDENCE = 50

TRIAGE_LABELS = {
    "EMERGENCY_ROOM": "🚑 Go to the emergency room",
    "URGENT_CARE": "⏰ Visit urgent care today",
    "ROUTINE_CONSULTATION": "🩺 Book a routine consultation",
    "SELF_CARE": "✅ Self-care is likely appropriate",
}


def _init_session_state(settings: Settings, llm, store):
    if "conversation" not in st.session_state:
        turn_analysis = TurnAnalysisUseCase(
            SymptomAnalysisUseCase(llm, timeout_seconds=settings.llm_timeout_seconds)
        )
        st.session_state.conversation = ConversationSession(
            turn_analysis, session_store=store, language=settings.default_language
        )


def _render_sidebar(settings: Settings, llm, store):
    conversation: ConversationSession = st.session_state.conversation

    st.sidebar.title("⚙️ Settings")
    conversation.language = st.sidebar.selectbox(
        "Language",
        SUPPORTED_LANGUAGES,
        index=SUPPORTED_LANGUAGES.index(conversation.language),
        format_func=lambda code: LANGUAGE_LABELS[code],
    )
    conversation.user_id = st.sidebar.text_input("User ID (to save history)") or None

    if llm.is_configured:
        st.sidebar.caption(f"**Model:** {settings.mistral_model}")
    else:
        st.sidebar.warning("⚠️ MISTRAL_API_KEY missing: using the offline fallback analysis")

    st.sidebar.divider()
    st.sidebar.markdown("### Nearby Facilities")
    lat = st.sidebar.number_input("Latitude", -90.0, 90.0, 0.0, format="%.5f")
    lng = st.sidebar.number_input("Longitude", -180.0, 180.0, 0.0, format="%.5f")
    if st.sidebar.button("🏥 Find hospitals & clinics", use_container_width=True):
        _render_facilities(settings, lat, lng)

    if conversation.user_id and st.sidebar.button("📈 Pattern insights", use_container_width=True):
        sessions = store.get_user_sessions(conversation.user_id)
        insight = PatternInsightUseCase(llm, timeout_seconds=settings.llm_timeout_seconds).predict(sessions)
        st.sidebar.info(
            f"**Pattern:** {insight.insights.pattern}\n\n"
            f"**30-day risk:** {insight.risk_score:.0f}%\n\n"
            f"**Advice:** {insight.insights.recommendation}"
        )

    st.sidebar.divider()
    if st.sidebar.button("🔄 New Conversation", use_container_width=True):
        conversation.start_new()
        st.rerun()


def _render_facilities(settings: Settings, lat: float, lng: float):
    try:
        facilities = OverpassFacilitySearchAdapter(settings).search_facilities(
            lat, lng, settings.facility_search_radius_m
        )
    except FacilitySearchError as e:
        logger.warning("Facility search failed: %s", e)
        st.sidebar.warning("Map service unavailable; showing example results.")
        facilities = MockFacilitySearchAdapter().search_facilities(lat, lng)

    if not facilities:
        st.sidebar.info("No facilities found nearby.")
    for facility in facilities[:10]:
        st.sidebar.markdown(f"**{facility.name}** ({facility.type})  \n{facility.lat:.4f}, {facility.lng:.4f}")


def uploader_key(state) -> str:
    return f"image_upload_{state.get('uploader_nonce', 0)}"


def consume_upload(state, image_file) -> Optional[bytes]:
    """Hand an attached photo to one turn only.

    Bumping the nonce gives the uploader a new key, so the next rerun renders it
    empty instead of re-sending the same file with every message.
    """
    if image_file is None:
        return None
    state["uploader_nonce"] = state.get("uploader_nonce", 0) + 1
    return image_file.getvalue()


def format_analysis(analysis: AnalysisResult) -> str:
    lines = ["# 📋 Symptom Analysis\n"]

    if analysis.is_fallback:
        lines.append("_The AI service is unavailable; this is a basic offline estimate._\n")
    if analysis.confidence_score < LOW_CONFIDENCE:
        lines.append("⚠️ **Low confidence.** Please see a healthcare professional.\n")

    lines.append(f"**Risk level:** {analysis.risk_level.upper()}  ")
    lines.append(f"**Suggested care:** {TRIAGE_LABELS[analysis.triage_recommendation]}  ")
    lines.append(
        f"**Diagnostic confidence:** {analysis.confidence_score:.0f}% · "
        f"**Information completeness:** {analysis.information_completeness:.0f}%\n"
    )

    lines.append("## 🏥 Possible Conditions (NOT a diagnosis)")
    for condition in analysis.possible_conditions:
        lines.append(f"- **{condition.name}** ({condition.probability:.0f}%): {condition.description}")
    lines.append("")

    sections = [
        ("🧠 Reasoning", analysis.reasoning),
        ("🚨 Red Flags", analysis.red_flags),
        ("📝 Recommendations", analysis.recommendation),
        ("🩺 Next Steps", analysis.clinical_next_steps),
        ("🏠 Self-Care Tips", analysis.self_care_tips),
        ("🔁 Common Triggers", analysis.common_triggers),
        ("📒 Tracking Advice", analysis.tracking_advice),
        ("❓ Questions to Help Me Understand Better", analysis.follow_up_questions),
    ]
    for title, items in sections:
        if items:
            lines.append(f"## {title}")
            lines.extend(f"- {item}" for item in items)
            lines.append("")

    lines.append("---")
    lines.append("⚠️ **Reminder:** This is NOT medical advice. Always consult a licensed healthcare professional.")
    return "\n".join(lines)


def main():
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))

    st.set_page_config(
        page_title="Symptom Intake Assistant",
        page_icon="⚕️",
        layout="centered",
        initial_sidebar_state="expanded",
    )

    settings = Settings()
    llm = MistralLLMAdapter(settings=settings)
    store = JsonSessionStore(settings.session_store_path)
    _init_session_state(settings, llm, store)
    _render_sidebar(settings, llm, store)

    st.markdown("# 🏥 Symptom Intake Assistant")
    st.info(DISCLAIMER)

    conversation: ConversationSession = st.session_state.conversation
    for msg in conversation.messages:
        with st.chat_message(msg.role):
            st.markdown(msg.content)

    result = conversation.last_result
    if result is not None:
        if result.emergency.is_emergency:
            st.error(f"## 🚨 {result.emergency.emergency_type}\n\n{result.emergency.message}")
        elif result.analysis is not None:
            st.markdown(format_analysis(result.analysis))

    image_file = st.file_uploader(
        "Attach a photo (optional)", type=["png", "jpg", "jpeg"], key=uploader_key(st.session_state)
    )
    user_input = st.chat_input("Describe your symptoms...")

    if user_input:
        image = consume_upload(st.session_state, image_file)
        with st.spinner("🔬 Analyzing your symptoms..."):
            conversation.submit(user_input, image=image)
        st.rerun()


if __name__ == "__main__":
    main()
