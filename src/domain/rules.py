from typing import Tuple

from .models import EmergencyRule


# Declaration order is the tie-break when text matches several rules.
EMERGENCY_RULES: Tuple[EmergencyRule, ...] = (
    EmergencyRule(
        id="chest_pain",
        keywords=(
            "chest pain", "heart attack", "cardiac arrest", "crushing chest",
            "chest pressure", "chest tightness", "pain in chest",
        ),
        label="Cardiac Emergency",
        message="Chest pain can indicate a heart attack. Call emergency services immediately!",
    ),
    EmergencyRule(
        id="stroke",
        keywords=(
            "stroke", "face drooping", "arm weakness", "speech difficulty",
            "sudden numbness", "sudden confusion", "trouble speaking",
            "vision problems sudden", "severe headache sudden",
        ),
        label="Stroke",
        message="These symptoms may indicate a stroke. Call emergency services immediately!",
    ),
    EmergencyRule(
        id="breathing",
        keywords=(
            "can't breathe", "cannot breathe", "difficulty breathing",
            "shortness of breath severe", "gasping for air", "choking",
            "suffocating", "breathing problem",
        ),
        label="Respiratory Emergency",
        message="Severe breathing difficulty requires immediate medical attention!",
    ),
    EmergencyRule(
        id="bleeding",
        keywords=(
            "severe bleeding", "heavy bleeding", "bleeding won't stop",
            "blood gushing", "hemorrhage", "bleeding profusely",
        ),
        label="Severe Bleeding",
        message="Severe bleeding requires immediate medical attention!",
    ),
    EmergencyRule(
        id="suicide",
        keywords=(
            "want to die", "kill myself", "suicide", "end my life",
            "self harm", "hurt myself", "don't want to live",
        ),
        label="Mental Health Crisis",
        message=(
            "Please call emergency services or a suicide prevention hotline immediately. "
            "You are not alone."
        ),
    ),
    EmergencyRule(
        id="seizure",
        keywords=(
            "seizure", "convulsion", "fitting", "uncontrollable shaking",
            "loss of consciousness", "collapsed",
        ),
        label="Seizure",
        message="Active seizures require immediate medical attention!",
    ),
    EmergencyRule(
        id="overdose",
        keywords=(
            "overdose", "took too many pills", "poisoning", "swallowed poison",
            "drug overdose", "medication overdose",
        ),
        label="Overdose/Poisoning",
        message="Overdose or poisoning requires immediate emergency care!",
    ),
    EmergencyRule(
        id="vomiting_blood",
        keywords=(
            "vomiting blood", "throwing up blood", "blood in vomit",
            "coughing up blood", "hematemesis",
        ),
        label="Internal Bleeding",
        message="Vomiting blood indicates serious internal bleeding. Seek emergency care immediately!",
    ),
    EmergencyRule(
        id="severe_burns",
        keywords=(
            "severe burn", "third degree burn", "burned badly",
            "skin peeling off", "large burn",
        ),
        label="Severe Burns",
        message="Severe burns require immediate medical attention!",
    ),
)
