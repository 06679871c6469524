import re
import unicodedata
from dataclasses import dataclass
from typing import Optional

SAFETY_REPLACEMENT_MESSAGE = (
    "Let's stay on learning topics. Want to try space, dinosaurs, or fractions instead?"
)

_BLOCKED_PATTERNS = [
    re.compile(r"suicide", re.IGNORECASE),
    re.compile(r"self[-\s]?harm", re.IGNORECASE),
    re.compile(r"kill myself", re.IGNORECASE),
    re.compile(r"sex(ual)?", re.IGNORECASE),
    re.compile(r"inappropriate", re.IGNORECASE),
]


@dataclass
class SafetyCheck:
    safe: bool
    replacement_message: Optional[str] = None


def normalize_text(text: str) -> str:
    """
    Nettoie une chaîne : trim, unicodes normalisés, espaces réduits.
    """
    if not text:
        return ""
    text = text.strip()
    text = unicodedata.normalize("NFKC", text)
    text = re.sub(r"\s+", " ", text)
    return text


def normalize_answer(value) -> str:
    # comparaison de réponses libres : insensible à la casse et aux espaces
    return normalize_text(str(value if value is not None else "")).lower()


def check_safety(message: Optional[str]) -> SafetyCheck:
    """
    Filtre minimal sur le texte libre saisi par l'enfant (objectif, réponse...).
    """
    if not message:
        return SafetyCheck(safe=True)

    for pattern in _BLOCKED_PATTERNS:
        if pattern.search(message):
            return SafetyCheck(safe=False, replacement_message=SAFETY_REPLACEMENT_MESSAGE)

    return SafetyCheck(safe=True)


def clamp_text(text: str, max_chars: int) -> str:
    text = text or ""
    return text if len(text) <= max_chars else text[:max_chars]
