"""Tests for analysis rendering in the Streamlit app."""
from unittest.mock import Mock

from src.application.contract import normalize_analysis
from src.domain.fallback import classify_fallback
from src.presentation.streamlit_app import consume_upload, format_analysis, uploader_key


def test_fallback_rendering_warns_low_confidence():
    analysis = normalize_analysis(classify_fallback("I have a headache and mild fever"), is_fallback=True)
    text = format_analysis(analysis)
    assert "offline estimate" in text
    assert "Low confidence" in text
    assert "Possible infection" in text
    assert "Questions to Help Me Understand Better" in text


def test_confident_rendering():
    analysis = normalize_analysis({
        "possibleConditions": [{"name": "Migraine", "probability": 100}],
        "diagnosticConfidence": 85,
        "informationCompleteness": 90,
        "triageRecommendation": "SELF_CARE",
        "selfCareTips": ["Rest in a dark room"],
    })
    text = format_analysis(analysis)
    assert "Low confidence" not in text
    assert "Self-care is likely appropriate" in text
    assert "Rest in a dark room" in text
    assert "Red Flags" not in text


class TestPhotoUpload:
    """An attached photo goes out with one message, not every later one."""

    def test_photo_sent_once(self):
        state = {}
        upload = Mock()
        upload.getvalue.return_value = b"\x89PNG\r\n\x1a\n"
        first_key = uploader_key(state)

        assert consume_upload(state, upload) == b"\x89PNG\r\n\x1a\n"
        # the next rerun renders a fresh, empty uploader
        assert uploader_key(state) != first_key
        assert consume_upload(state, None) is None
        assert uploader_key(state) == "image_upload_1"

    def test_no_photo_keeps_uploader(self):
        state = {}
        assert consume_upload(state, None) is None
        assert uploader_key(state) == "image_upload_0"
