def add_note(client, user_id, comment, **extra):
    r = client.post("/api/notes", json={"userId": user_id, "comment": comment, **extra})
    assert r.status_code == 201, r.text
    return r.json()


def test_create_and_get_note(test_client, make_user):
    user = make_user()
    note = add_note(test_client, user["id"], "  Loves planets  ", relatedSkill="space")
    assert note["comment"] == "Loves planets"
    assert note["noteType"] == "observation"
    assert note["priority"] == "medium"
    assert note["actionable"] is False
    assert note["timestamp"]

    r = test_client.get(f"/api/notes/{note['id']}")
    assert r.status_code == 200, r.text
    assert r.json()["relatedSkill"] == "space"


def test_create_note_validation(test_client, make_user):
    user = make_user()
    r = test_client.post("/api/notes", json={"userId": user["id"], "comment": "x", "noteType": "gossip"})
    assert r.status_code == 422
    r = test_client.post("/api/notes", json={"userId": user["id"], "comment": "   "})
    assert r.status_code == 400
    r = test_client.post("/api/notes", json={"userId": "ghost", "comment": "hello"})
    assert r.status_code == 404


def test_list_filters(test_client, make_user):
    user = make_user()
    other = make_user(name="Leo")
    add_note(test_client, user["id"], "first")
    add_note(test_client, user["id"], "won a badge", noteType="milestone")
    add_note(test_client, user["id"], "low concern", noteType="concern", actionable=True, priority="low")
    add_note(test_client, user["id"], "needs help", noteType="concern", actionable=True, priority="high")
    add_note(test_client, other["id"], "not mine")

    data = test_client.get("/api/notes", params={"userId": user["id"]}).json()
    assert data["count"] == 4
    assert data["items"][0]["comment"] == "needs help"

    concerns = test_client.get("/api/notes", params={"userId": user["id"], "noteType": "concern"}).json()
    assert {n["comment"] for n in concerns["items"]} == {"low concern", "needs help"}

    urgent = test_client.get("/api/notes", params={"userId": user["id"], "actionableOnly": "true"}).json()
    assert [n["comment"] for n in urgent["items"]] == ["needs help"]

    limited = test_client.get("/api/notes", params={"userId": user["id"], "limit": 2}).json()
    assert limited["count"] == 2

    r = test_client.get("/api/notes", params={"userId": user["id"], "noteType": "gossip"})
    assert r.status_code == 422


def test_update_note(test_client, make_user):
    user = make_user()
    note = add_note(test_client, user["id"], "draft", relatedSkill="fractions")

    r = test_client.patch(
        f"/api/notes/{note['id']}",
        json={"comment": "Great progress", "noteType": "milestone", "priority": "high", "relatedSkill": ""},
    )
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["comment"] == "Great progress"
    assert data["noteType"] == "milestone"
    assert data["priority"] == "high"
    assert data["relatedSkill"] is None

    assert test_client.patch(f"/api/notes/{note['id']}", json={"comment": "  "}).status_code == 400
    assert test_client.patch("/api/notes/missing", json={"priority": "low"}).status_code == 404
    assert test_client.get("/api/notes/missing").status_code == 404
