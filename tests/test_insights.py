from sunny.services import insights


def answers(*flags, time_ms=10_000):
    return [{"correct": f, "timeSpent": time_ms, "hintsUsed": 0} for f in flags]


def test_empty_session_is_steady():
    analysis = insights.analyze_answers([])
    assert analysis["performancePattern"] == "steady"
    assert analysis["confidenceLevel"] == 50


def test_excelling_and_struggling():
    assert insights.analyze_answers(answers(True, True, True, True, False))["performancePattern"] == "excelling"
    assert insights.analyze_answers(answers(False, False, True, False, False))["performancePattern"] == "struggling"


def test_only_last_five_answers_count():
    data = answers(False, False, False, True, True, True, True, True)
    assert insights.analyze_answers(data)["performancePattern"] == "excelling"


def test_inconsistent_when_time_varies():
    data = [
        {"correct": True, "timeSpent": 2_000},
        {"correct": False, "timeSpent": 40_000},
        {"correct": True, "timeSpent": 5_000},
    ]
    assert insights.analyze_answers(data)["performancePattern"] == "inconsistent"


def test_steady_when_time_is_regular():
    data = answers(True, False, True, time_ms=10_000)
    analysis = insights.analyze_answers(data)
    assert analysis["performancePattern"] == "steady"
    assert analysis["insights"]


def test_recommendations_follow_pattern():
    recs = insights.recommendations("fractions", {"performancePattern": "excelling", "insights": ["x"]})
    assert "Try advanced topics in fractions" in recs
    assert recs[-1] == "Tip: x"


def test_achievements():
    got = insights.achievements(
        correct_answers=3,
        total_questions=3,
        questions_completed=3,
        avg_time_seconds=5,
        answers=answers(True, True, True),
        adjustments=[{"from": "medium", "to": "hard"}],
        pattern="excelling",
    )
    ids = {a["id"] for a in got}
    assert ids == {"perfect_score", "fast_learner", "independent", "leveled_up"}
