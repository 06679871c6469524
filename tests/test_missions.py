import pytest

from sunny.core.deps import get_mission_service
from sunny.models.mission import MissionEvaluation
from sunny.services.missions import (
    MissionService,
    mastery_delta,
    mission_difficulty,
    select_question_format,
    should_create_note,
    sunny_goal,
    update_decay_rate,
    urgency_score,
)


def evaluation(**overrides):
    data = {
        "correctness": "partial",
        "reasoning_quality": 3,
        "answer_style": "worked",
        "misunderstanding_label": None,
        "confidence_level": "medium",
        "ai_feedback": "Nice steps.",
    }
    data.update(overrides)
    return data


def next_mission(client, user_id):
    r = client.get("/api/mission/next", params={"userId": user_id})
    assert r.status_code == 200, r.text
    return r.json()


def grade(client, user_id, mission, answer="3/4 is bigger because 3 > 2 out of 4", seconds=12, **extra):
    question = mission["questions"][0]
    body = {
        "sessionId": mission["id"],
        "userId": user_id,
        "questionId": question["id"],
        "questionText": question["text"],
        "studentAnswer": answer,
        "timeToAnswerSeconds": seconds,
    }
    body.update(extra)
    return client.post("/api/mission/grade", json=body)


def use_llm(app, fake):
    app.dependency_overrides[get_mission_service] = lambda: MissionService(llm=fake)


# ---------- règles ----------

@pytest.mark.parametrize(
    "correctness,quality,style,confidence,expected",
    [
        ("correct", 5, "worked", "high", 3),
        ("correct", 3, "worked", "medium", 2),
        ("partial", 3, "worked", "medium", 0),
        ("partial", 2, "worked", "medium", -1),
        ("incorrect", 2, "worked", "high", -3),
        ("incorrect", 4, "worked", "high", -1),
        ("incorrect", 2, "rushed", "low", -2),
        ("correct", 5, "skip", "high", 0),
        ("incorrect", 1, "guess", "high", 0),
    ],
)
def test_mastery_delta(correctness, quality, style, confidence, expected):
    assert mastery_delta(correctness, quality, style, confidence) == expected


def test_decay_rate_moves_and_stays_bounded():
    assert update_decay_rate(0.15, "correct", 4) == 0.13
    assert update_decay_rate(0.06, "correct", 5) == 0.05
    assert update_decay_rate(0.15, "incorrect", 2) == 0.16
    assert update_decay_rate(0.50, "incorrect", 1) == 0.50
    # ni bon raisonnement ni échec net : inchangé
    assert update_decay_rate(0.15, "correct", 3) == 0.15
    assert update_decay_rate(0.15, "partial", 2) == 0.15


def test_urgency_grows_with_forgetting_and_time():
    assert urgency_score(0, 0.25, 0) == 25
    assert urgency_score(100, 0.5, 30) == 0
    assert urgency_score(40, 0.2, 7) == pytest.approx(24.0)
    assert urgency_score(40, 0.2, 14) > urgency_score(40, 0.2, 7)


def test_difficulty_format_and_goal():
    assert [mission_difficulty(m) for m in (0, 29.9, 30, 70, 70.1)] == ["easy", "easy", "medium", "medium", "hard"]
    assert select_question_format("visual", "rushed") == "explanation_required"
    assert select_question_format("kinesthetic", "worked") == "hands_on_scenarios"
    assert select_question_format(None, None) == "mixed_format"
    assert sunny_goal("Adding Fractions", "medium") == "We are practicing adding fractions. Let's patch this skill."


def test_note_triggers():
    calm = MissionEvaluation.model_validate(evaluation())
    assert should_create_note(calm, 12, None) is False
    assert should_create_note(calm, 40, 20) is True
    assert should_create_note(calm, 14, 20) is False
    confused = MissionEvaluation.model_validate(evaluation(misunderstanding_label="adds the denominators"))
    assert should_create_note(confused, 12, None) is True
    overconfident = MissionEvaluation.model_validate(evaluation(correctness="incorrect", confidence_level="high"))
    assert should_create_note(overconfident, 12, None) is True


def test_llm_null_label_means_no_misunderstanding():
    ev = MissionEvaluation.model_validate(evaluation(misunderstanding_label="null"))
    assert ev.misunderstandingLabel is None


# ---------- API ----------

def test_next_mission_creates_default_skills(test_client, make_user):
    user = make_user()
    data = next_mission(test_client, user["id"])

    assert data["demoMode"] is True
    mission = data["mission"]
    # maîtrise 0 partout : l'oubli le plus rapide passe en premier
    assert mission["skill"]["domain"] == "word_problems_multi_step"
    assert mission["skill"]["urgencyScore"] == 25.0
    assert mission["difficultyLevel"] == "easy"
    assert mission["questionFormat"] == "mixed_format"
    assert mission["sunnyGoal"] == "We are learning multi-step word problems. Let's patch this skill."
    assert [q["id"] for q in mission["questions"]] == ["q1", "q2"]
    assert mission["estimatedDurationMinutes"] == 4

    dash = test_client.get("/api/dashboard", params={"userId": user["id"]}).json()
    assert len(dash["skills"]) == 5


def test_next_mission_unknown_user(test_client):
    r = test_client.get("/api/mission/next", params={"userId": "nope"})
    assert r.status_code == 404


def test_grade_applies_delta_and_completes_mission(app, test_client, make_user, fake_llm_factory):
    fake = fake_llm_factory(
        json_payloads=[
            {
                "questions": [
                    {"text": "Tom has 3 bags of 4 apples and eats 2. How many are left?", "expected_reasoning": "12 - 2"},
                    {"text": ""},
                ]
            },
            evaluation(correctness="correct", reasoning_quality=4),
        ]
    )
    use_llm(app, fake)
    user = make_user()
    data = next_mission(test_client, user["id"])
    mission = data["mission"]
    assert data["demoMode"] is False
    assert len(mission["questions"]) == 1
    assert mission["questions"][0]["expectedReasoning"] == "12 - 2"

    r = grade(test_client, user["id"], mission, answer="3 x 4 = 12 then 12 - 2 = 10")
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["correctness"] == "correct"
    assert body["masteryDelta"] == 3
    assert body["newMastery"] == 3.0
    assert body["missionComplete"] is True

    # plus de payload : questions génériques, même compétence toujours en tête
    again = next_mission(test_client, user["id"])["mission"]
    assert again["skill"]["domain"] == "word_problems_multi_step"
    assert again["skill"]["mastery"] == 3.0
    assert again["skill"]["decayRate"] == 0.23


def test_misunderstanding_creates_note(app, test_client, make_user, fake_llm_factory):
    fake = fake_llm_factory(
        json_payloads=[
            {"questions": [{"text": "Is 1/2 + 1/3 equal to 2/5?"}]},
            evaluation(
                correctness="incorrect",
                reasoning_quality=2,
                confidence_level="high",
                misunderstanding_label="adds the denominators",
            ),
        ]
    )
    use_llm(app, fake)
    user = make_user()
    mission = next_mission(test_client, user["id"])["mission"]

    body = grade(test_client, user["id"], mission, answer="yes, 1+1 over 2+3").json()
    assert body["masteryDelta"] == -3
    assert body["newMastery"] == 0.0

    notes = test_client.get("/api/notes", params={"userId": user["id"]}).json()["items"]
    assert len(notes) == 1
    note = notes[0]
    assert note["noteType"] == "concern"
    assert note["priority"] == "high"
    assert note["actionable"] is True
    assert "adds the denominators" in note["comment"]
    assert note["relatedSkill"] == "word_problems_multi_step"
    assert note["relatedSessionId"] == mission["id"]


def test_invalid_llm_evaluation_falls_back(app, test_client, make_user, fake_llm_factory):
    fake = fake_llm_factory(
        json_payloads=[
            {"questions": [{"text": "Explain why 0.5 equals 1/2."}]},
            {"correctness": "maybe", "reasoning_quality": 9},
        ]
    )
    use_llm(app, fake)
    user = make_user()
    mission = next_mission(test_client, user["id"])["mission"]

    body = grade(test_client, user["id"], mission, answer="because half of one is five tenths").json()
    assert body["correctness"] == "partial"
    assert body["reasoningQuality"] == 3
    assert body["answerStyle"] == "worked"
    assert body["masteryDelta"] == 0
    assert body["aiFeedback"] == "Keep working on this. Show your thinking step by step."


def test_demo_grade_skip_counts_nothing(test_client, make_user):
    user = make_user()
    mission = next_mission(test_client, user["id"])["mission"]

    body = grade(test_client, user["id"], mission, answer="idk").json()
    assert body["answerStyle"] == "skip"
    assert body["masteryDelta"] == 0
    assert body["missionComplete"] is False

    r = grade(test_client, user["id"], mission, answer="   ")
    assert r.status_code == 400


def test_grade_other_users_mission_is_not_found(test_client, make_user):
    owner = make_user()
    other = make_user(name="Leo")
    mission = next_mission(test_client, owner["id"])["mission"]

    r = grade(test_client, other["id"], mission)
    assert r.status_code == 404
