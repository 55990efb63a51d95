from langnotes import maintenance


def test_record_and_list_recent_scores(client, signup):
    user = signup()
    for i in range(9):
        r = client.post(
            "/quiz-scores",
            json={"correctAnswers": i, "wrongAnswers": 10 - i},
            headers=user["headers"],
        )
        assert r.status_code == 201
        assert r.json()["ownerId"] == user["id"]

    r = client.get(f"/quiz-scores/recent/{user['id']}", headers=user["headers"])
    assert r.status_code == 200
    assert [s["correctAnswers"] for s in r.json()] == [8, 7, 6, 5, 4, 3, 2]


def test_negative_counts_are_rejected(client, signup):
    user = signup()
    r = client.post("/quiz-scores", json={"correctAnswers": -1, "wrongAnswers": 0}, headers=user["headers"])
    assert r.status_code == 400


def test_cannot_record_for_someone_else(client, signup):
    alice, bob = signup(), signup()
    r = client.post(
        "/quiz-scores",
        json={"correctAnswers": 1, "wrongAnswers": 0, "ownerId": bob["id"]},
        headers=alice["headers"],
    )
    assert r.status_code == 403
    assert client.get(f"/quiz-scores/recent/{bob['id']}", headers=alice["headers"]).status_code == 403


def test_moderator_reads_recent_scores(client, signup, grant_role):
    alice, moderator = signup(), signup()
    grant_role(moderator["id"], "MODERATOR")
    client.post("/quiz-scores", json={"correctAnswers": 3, "wrongAnswers": 1}, headers=alice["headers"])
    r = client.get(f"/quiz-scores/recent/{alice['id']}", headers=moderator["headers"])
    assert r.status_code == 200
    assert len(r.json()) == 1


def test_average_intensity_history(client, signup, db, make_language):
    user = signup()
    make_language([20, 40], owner_id=user["id"])
    for _ in range(9):
        maintenance.snapshot_average_intensity(db)
    r = client.get(f"/quiz-scores/average-intensity/{user['id']}", headers=user["headers"])
    assert r.status_code == 200
    history = r.json()
    assert len(history) == 7
    assert all(h["average"] == 30.0 for h in history)
