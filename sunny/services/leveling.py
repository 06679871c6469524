from __future__ import annotations

import math
from typing import Tuple

BASE_XP = 100
LEVEL_MULTIPLIER = 1.5

# XP gagnés par type d'événement
POINT_VALUES = {
    "CORRECT_ANSWER": 10,
    "INCORRECT_ANSWER": 5,  # participation
    "QUIZ_COMPLETED": 30,
    "LESSON_COMPLETED": 50,
    "DAILY_LOGIN": 10,
    "CHALLENGE_COMPLETED": 40,
    "TOPIC_EXPLORED": 20,
}


def level_cost(level: int, base: int = BASE_XP, multiplier: float = LEVEL_MULTIPLIER) -> int:
    """XP nécessaires pour passer de `level` à `level + 1`."""
    return int(math.floor(base * (multiplier ** (max(1, int(level)) - 1))))


def _walk_levels(xp: int, base: int, multiplier: float) -> Tuple[int, int, int]:
    # -> (niveau, xp cumulés pour l'atteindre, coût du niveau suivant)
    level = 1
    total = 0
    need = level_cost(level, base, multiplier)
    while need > 0 and total + need <= xp:
        total += need
        level += 1
        need = level_cost(level, base, multiplier)
    return level, total, need


def level_from_xp(xp: int, base: int = BASE_XP, multiplier: float = LEVEL_MULTIPLIER) -> int:
    """
    Niveau atteint pour un total d'XP.
    On cumule les coûts tant que total + coût suivant <= xp (niveau 1 minimum,
    XP négatifs traités comme 0).
    """
    level, _, _ = _walk_levels(max(0, int(xp or 0)), base, multiplier)
    return level


def level_progress(xp: int, base: int = BASE_XP, multiplier: float = LEVEL_MULTIPLIER) -> dict:
    xp = max(0, int(xp or 0))
    level, total, need = _walk_levels(xp, base, multiplier)

    into = xp - total
    # progress intra-niveau (0..1) utile pour une barre
    progress = into / need if need > 0 else 0.0

    return {
        "level": level,
        "xpIntoLevel": into,
        "xpForLevel": need,
        "xpToNextLevel": need - into,
        "progress": float(max(0.0, min(1.0, progress))),
    }
