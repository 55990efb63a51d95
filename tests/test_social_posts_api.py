import uuid

import pytest


def create_post(client, user, content="hola a todos"):
    r = client.post("/social-posts", json={"content": content, "ownerId": user["id"]}, headers=user["headers"])
    assert r.status_code == 201, r.text
    return r.json()


def like(client, user, post, path="/social-posts/add-positive-action"):
    return client.post(path, json={"socialPostId": post["id"], "userId": user["id"]}, headers=user["headers"])


def test_create_and_get_post(client, signup):
    user = signup()
    client.post(
        "/profiles",
        json={"firstName": "Ada", "username": "ada", "ownerId": user["id"]},
        headers=user["headers"],
    )
    post = create_post(client, user)
    assert post["content"] == "hola a todos"
    assert post["isGenerated"] is False
    assert post["owner"]["ownerId"] == user["id"]
    assert post["owner"]["username"] == "ada"
    assert post["positiveActionCount"] == 0

    r = client.get(f"/social-posts/{post['id']}", headers=user["headers"])
    assert r.status_code == 200
    assert r.json()["id"] == post["id"]


def test_post_validation_and_ownership(client, signup):
    alice, bob = signup(), signup()
    r = client.post("/social-posts", json={"content": "x", "ownerId": alice["id"]}, headers=alice["headers"])
    assert r.status_code == 400
    r = client.post("/social-posts", json={"content": "hello", "ownerId": bob["id"]}, headers=alice["headers"])
    assert r.status_code == 403
    assert client.get("/social-posts/not-a-uuid", headers=alice["headers"]).status_code == 400
    assert client.get(f"/social-posts/{uuid.uuid4()}", headers=alice["headers"]).status_code == 404


def test_latest_posts_are_paginated_newest_first(client, signup):
    user = signup()
    for i in range(8):
        create_post(client, user, content=f"post {i}")
    r = client.get("/social-posts", headers=user["headers"])
    assert [p["content"] for p in r.json()] == [f"post {i}" for i in range(7, 1, -1)]
    r = client.get("/social-posts", params={"page": 2}, headers=user["headers"])
    assert [p["content"] for p in r.json()] == ["post 1", "post 0"]


def test_positive_actions(client, signup):
    alice, bob, carol = signup(), signup(), signup()
    post = create_post(client, alice)

    r = like(client, bob, post)
    assert r.status_code == 201
    assert r.json()["positiveActionCount"] == 1
    assert like(client, bob, post).status_code == 409
    r = like(client, carol, post)
    assert r.json()["positiveActionCount"] == 2
    assert [a["userId"] for a in r.json()["positiveActionsBy"]] == [carol["id"], bob["id"]]

    r = client.post(
        "/social-posts/add-positive-action",
        json={"socialPostId": post["id"], "userId": carol["id"]},
        headers=bob["headers"],
    )
    assert r.status_code == 403

    r = like(client, bob, post, path="/social-posts/remove-positive-action")
    assert r.status_code == 200
    assert r.json()["positiveActionCount"] == 1
    assert like(client, bob, post, path="/social-posts/remove-positive-action").status_code == 404


def test_positive_action_on_missing_post(client, signup):
    user = signup()
    r = like(client, user, {"id": str(uuid.uuid4())})
    assert r.status_code == 404


@pytest.mark.parametrize("feed", ["user", "following", "positive-actioned"])
def test_personal_feeds_are_guarded(client, signup, feed):
    alice, bob = signup(), signup()
    path = f"/social-posts/user/{alice['id']}" if feed == "user" else f"/social-posts/{feed}/user/{alice['id']}"
    assert client.get(path, headers=bob["headers"]).status_code == 403
    assert client.get(path, headers=alice["headers"]).status_code == 200


def test_personal_feeds(client, signup):
    alice, bob, carol = signup(), signup(), signup()
    bob_post = create_post(client, bob, content="from bob")
    create_post(client, carol, content="from carol")
    mine = create_post(client, alice, content="from alice")
    client.post(
        "/users/add-follow",
        json={"followedById": alice["id"], "followingId": bob["id"]},
        headers=alice["headers"],
    )
    like(client, alice, bob_post)

    def contents(path):
        return [p["content"] for p in client.get(path, headers=alice["headers"]).json()]

    assert contents(f"/social-posts/user/{alice['id']}") == [mine["content"]]
    assert contents(f"/social-posts/following/user/{alice['id']}") == ["from bob"]
    assert contents(f"/social-posts/positive-actioned/user/{alice['id']}") == ["from bob"]
