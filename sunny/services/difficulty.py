from __future__ import annotations

from typing import Optional

DIFFICULTY_TIERS = ["beginner", "easy", "medium", "hard", "advanced"]
DEFAULT_DIFFICULTY = "medium"

CORRECT_STREAK_THRESHOLD = 3
WRONG_STREAK_THRESHOLD = 2

# zone proximale de développement : ~75% de réussite visée
ZPD_TARGET_ACCURACY = 0.75
ZPD_TOLERANCE = 0.10


def normalize_difficulty(value: Optional[str]) -> str:
    diff = str(value or DEFAULT_DIFFICULTY).strip().lower()
    if diff not in DIFFICULTY_TIERS:
        return DEFAULT_DIFFICULTY
    return diff


def tier_index(value: str) -> int:
    return DIFFICULTY_TIERS.index(normalize_difficulty(value))


def step_up(current: str) -> str:
    i = tier_index(current)
    return DIFFICULTY_TIERS[min(i + 1, len(DIFFICULTY_TIERS) - 1)]


def step_down(current: str) -> str:
    i = tier_index(current)
    return DIFFICULTY_TIERS[max(i - 1, 0)]


def adjust_for_streak(
    current: str,
    correct_streak: int,
    wrong_streak: int,
    *,
    question_number: Optional[int] = None,
) -> Optional[dict]:
    """
    Ajustement d'un cran quand une série atteint un multiple du seuil.
    Retourne l'entrée de journal {questionNumber, from, to, reason}, ou None
    si rien ne bouge (pas de seuil atteint, ou déjà en butée).
    """
    current = normalize_difficulty(current)
    correct_streak = int(correct_streak or 0)
    wrong_streak = int(wrong_streak or 0)

    target = current
    reason = ""
    if correct_streak > 0 and correct_streak % CORRECT_STREAK_THRESHOLD == 0:
        target = step_up(current)
        reason = f"{correct_streak} correct answers in a row"
    elif wrong_streak > 0 and wrong_streak % WRONG_STREAK_THRESHOLD == 0:
        target = step_down(current)
        reason = f"{wrong_streak} incorrect answers in a row"

    if target == current:
        return None

    return {
        "questionNumber": question_number,
        "from": current,
        "to": target,
        "reason": reason,
    }


def recommended_blooms_level(mastery: float) -> str:
    mastery = float(mastery or 0)
    if mastery < 30:
        return "remember"
    if mastery < 50:
        return "understand"
    if mastery < 70:
        return "apply"
    if mastery < 85:
        return "analyze"
    if mastery < 95:
        return "evaluate"
    return "create"


BLOOMS_VERBS = {
    "remember": ["list", "name", "identify", "recall", "recognize"],
    "understand": ["explain", "describe", "summarize", "interpret"],
    "apply": ["use", "solve", "demonstrate", "apply"],
    "analyze": ["compare", "contrast", "examine", "categorize"],
    "evaluate": ["judge", "assess", "critique", "evaluate"],
    "create": ["design", "create", "compose", "invent"],
}


def is_in_zpd(accuracy: float) -> bool:
    return abs(float(accuracy) - ZPD_TARGET_ACCURACY) <= ZPD_TOLERANCE
