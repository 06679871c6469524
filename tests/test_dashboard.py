from sunny.routers.dashboard import skill_status


def test_dashboard_for_new_user(test_client, make_user):
    user = make_user()
    r = test_client.get("/api/dashboard", params={"userId": user["id"]})
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["user"]["level"] == 1
    assert data["user"]["levelProgress"]["xpForLevel"] == 100
    assert data["skills"] == []
    assert data["recentActivity"] == []
    assert data["notes"] == []
    assert data["nextMission"]["title"] == "Get Started"


def test_dashboard_after_quizzes(test_client, make_user):
    user = make_user()
    uid = user["id"]

    # fractions : tout juste ; espace : tout faux
    sid = test_client.post("/api/quiz/create", json={"userId": uid, "topic": "fractions", "questionCount": 2}).json()["sessionId"]
    for i, value in enumerate([0, True]):
        test_client.post("/api/quiz/answer", json={"userId": uid, "sessionId": sid, "questionIndex": i, "answer": value})

    sid = test_client.post("/api/quiz/create", json={"userId": uid, "topic": "space", "questionCount": 3}).json()["sessionId"]
    for i in range(3):
        test_client.post("/api/quiz/answer", json={"userId": uid, "sessionId": sid, "questionIndex": i, "answer": "nope"})

    data = test_client.get("/api/dashboard", params={"userId": uid}).json()

    skills = {s["domain"]: s for s in data["skills"]}
    assert skills["fractions"]["mastery"] == 100.0
    assert skills["fractions"]["status"] == "mastered"
    assert skills["space"]["mastery"] == 0.0
    assert skills["space"]["status"] == "struggling"
    assert skills["space"]["category"] == "science"

    mission = data["nextMission"]
    assert mission["skill"] == "space"
    assert mission["urgency"] == "high"

    recent = {a["topic"]: a for a in data["recentActivity"]}
    assert recent["fractions"]["masteryGain"] == 100.0
    assert recent["space"]["masteryGain"] == 0.0

    # 2*10 + 30 + 3*5 + 30
    assert data["user"]["totalXp"] == 95
    assert [n["noteType"] for n in data["notes"]] == ["concern"]


def test_dashboard_unknown_user(test_client):
    assert test_client.get("/api/dashboard", params={"userId": "ghost"}).status_code == 404


def test_skill_status_thresholds():
    assert skill_status(70) == "mastered"
    assert skill_status(69.9) == "learning"
    assert skill_status(40) == "learning"
    assert skill_status(None) == "struggling"
