import pytest

from sunny.services.difficulty import (
    adjust_for_streak,
    is_in_zpd,
    recommended_blooms_level,
    step_down,
    step_up,
)


def test_step_is_clamped():
    assert step_up("medium") == "hard"
    assert step_up("advanced") == "advanced"
    assert step_down("easy") == "beginner"
    assert step_down("beginner") == "beginner"


def test_three_correct_moves_up_one_tier():
    adj = adjust_for_streak("medium", correct_streak=3, wrong_streak=0, question_number=3)
    assert adj == {
        "questionNumber": 3,
        "from": "medium",
        "to": "hard",
        "reason": "3 correct answers in a row",
    }


def test_every_multiple_of_threshold_moves_again():
    assert adjust_for_streak("hard", 6, 0)["to"] == "advanced"
    assert adjust_for_streak("hard", 4, 0) is None
    assert adjust_for_streak("hard", 5, 0) is None


def test_two_wrong_moves_down_one_tier():
    adj = adjust_for_streak("medium", 0, 2)
    assert adj["from"] == "medium" and adj["to"] == "easy"
    assert adjust_for_streak("easy", 0, 3) is None
    assert adjust_for_streak("easy", 0, 4)["to"] == "beginner"


def test_no_record_at_bounds():
    assert adjust_for_streak("advanced", 3, 0) is None
    assert adjust_for_streak("beginner", 0, 2) is None


def test_unknown_tier_treated_as_medium():
    assert adjust_for_streak("impossible", 3, 0)["from"] == "medium"


@pytest.mark.parametrize(
    "mastery, level",
    [(0, "remember"), (30, "understand"), (55, "apply"), (80, "analyze"), (90, "evaluate"), (99, "create")],
)
def test_blooms_level(mastery, level):
    assert recommended_blooms_level(mastery) == level


def test_zpd():
    assert is_in_zpd(0.75)
    assert is_in_zpd(0.8)
    assert not is_in_zpd(0.5)
    assert not is_in_zpd(1.0)
