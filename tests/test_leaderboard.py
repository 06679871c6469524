def give_xp(client, user_id, amount):
    r = client.post("/api/progress", json={"userId": user_id, "op": "add_xp", "amount": amount})
    assert r.status_code == 200, r.text


def test_leaderboard_order_and_paging(test_client, make_user):
    mia = make_user(name="Mia")
    leo = make_user(name="Leo")
    ava = make_user(name="Ava")
    give_xp(test_client, mia["id"], 50)
    give_xp(test_client, leo["id"], 300)

    r = test_client.get("/api/leaderboard")
    assert r.status_code == 200, r.text
    items = r.json()["items"]
    assert [i["name"] for i in items] == ["Leo", "Mia", "Ava"]
    assert [i["rank"] for i in items] == [1, 2, 3]
    assert items[0]["level"] == 3
    assert items[2]["totalXp"] == 0

    page = test_client.get("/api/leaderboard", params={"limit": 1, "offset": 1}).json()
    assert page["items"][0]["name"] == "Mia"
    assert page["items"][0]["rank"] == 2

    clamped = test_client.get("/api/leaderboard", params={"limit": 0}).json()
    assert clamped["limit"] == 1
    assert ava["id"]


def test_user_rank(test_client, make_user):
    mia = make_user(name="Mia")
    leo = make_user(name="Leo")
    give_xp(test_client, leo["id"], 10)

    data = test_client.get(f"/api/leaderboard/{mia['id']}").json()
    assert data["rank"] == 2
    assert data["totalUsers"] == 2
    assert test_client.get(f"/api/leaderboard/{leo['id']}").json()["rank"] == 1
    assert test_client.get("/api/leaderboard/ghost").status_code == 404
