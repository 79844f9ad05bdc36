import logging
from typing import Optional, Sequence

from .models import EmergencyResult, EmergencyRule
from .rules import EMERGENCY_RULES


logger = logging.getLogger(__name__)


class EmergencyDetector:
    """Literal keyword scan that runs before any reasoning call.

    Substring matching is intentionally naive: "no chest pain" still matches
    "chest pain". Over-triggering is preferred to missing an emergency.
    """

    def __init__(self, rules: Sequence[EmergencyRule] = EMERGENCY_RULES):
        self.rules = tuple(rules)

    def detect(self, text: Optional[str]) -> EmergencyResult:
        if not text:
            return EmergencyResult(is_emergency=False)

        lower_text = str(text).lower()
        for rule in self.rules:
            for keyword in rule.keywords:
                if keyword in lower_text:
                    logger.info("Emergency rule '%s' matched keyword '%s'", rule.id, keyword)
                    return EmergencyResult(
                        is_emergency=True,
                        emergency_type=rule.label,
                        message=rule.message,
                    )

        return EmergencyResult(is_emergency=False)


_default_detector = EmergencyDetector()


def detect_emergency(text: Optional[str]) -> EmergencyResult:
    return _default_detector.detect(text)
