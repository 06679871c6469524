from __future__ import annotations

import logging
from typing import Any, get_args

from sunny.models.quiz import QuestionType
from sunny.utils.text_utils import normalize_answer

logger = logging.getLogger(__name__)

QUESTION_TYPES = get_args(QuestionType)


def _as_int(value: Any):
    # bool est un int en Python : on le refuse explicitement
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None


def _as_float(value: Any):
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_bool(value: Any):
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        v = value.strip().lower()
        if v in ("true", "vrai", "yes"):
            return True
        if v in ("false", "faux", "no"):
            return False
    return None


def check_answer(question: dict, answer: Any) -> bool:
    """
    Corrige une réponse selon le type de question.
    Type inconnu ou réponse mal formée -> False (jamais d'exception).
    """
    qtype = (question.get("type") or "").strip()
    content = question.get("content") or {}

    if qtype == "multiple-choice":
        idx = _as_int(answer)
        return idx is not None and idx == content.get("correctIndex")

    if qtype == "multiple-select":
        if not isinstance(answer, list):
            return False
        chosen = {_as_int(a) for a in answer}
        if None in chosen:
            return False
        return chosen == set(content.get("correctIndices") or [])

    if qtype == "true-false":
        value = _as_bool(answer)
        return value is not None and value == content.get("correct")

    if qtype == "fill-in-blank":
        blanks = content.get("blanks") or []
        answers = answer if isinstance(answer, list) else [answer]
        if not blanks or len(answers) < len(blanks):
            return False
        for blank, given in zip(blanks, answers):
            accepted = [normalize_answer(c) for c in (blank.get("correctAnswers") or [])]
            if normalize_answer(given) not in accepted:
                return False
        return True

    if qtype == "number-input":
        value = _as_float(answer)
        expected = _as_float(content.get("correctAnswer"))
        if value is None or expected is None:
            return False
        tolerance = abs(_as_float(content.get("tolerance")) or 0.0)
        return abs(value - expected) <= tolerance

    if qtype == "short-answer":
        accepted = [content.get("correctAnswer")] + list(content.get("acceptableAnswers") or [])
        given = normalize_answer(answer)
        return bool(given) and given in {normalize_answer(a) for a in accepted if a is not None}

    if qtype == "ordering":
        if not isinstance(answer, list):
            return False
        expected = content.get("correctOrder") or []
        return [normalize_answer(a) for a in answer] == [normalize_answer(e) for e in expected]

    logger.warning("Unknown question type %r, answer marked incorrect", qtype)
    return False
