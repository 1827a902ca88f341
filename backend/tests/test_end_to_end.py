def test_delete_author_cascades_through_api(client):
    """
    End-to-end scenario covering:
    - user, post, comment and like creation
    - cascading delete of the post author
    - cleanup of the surviving user's reference sets
    """

    a = client.post("/users/", json={"name": "A", "password": "pa", "email": "a@x"}).json()
    b = client.post("/users/", json={"name": "B", "password": "pb", "email": "b@x"}).json()
    p = client.post("/posts/", json={"content": "by A", "author": a["id"]}).json()
    c = client.post(
        "/comments/",
        json={"text": "by B", "author": b["id"], "post": p["id"]},
    ).json()
    client.post(f"/posts/{p['id']}/likes/{b['id']}")

    # ---------------- Before ----------------

    b_before = client.get(f"/users/{b['id']}").json()
    assert b_before["comments"] == [c["id"]]
    assert b_before["liked_posts"] == [p["id"]]

    # ---------------- Delete ----------------

    response = client.delete(f"/users/{a['id']}")

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["status"] == "success"
    assert body["failed_steps"] == []

    # ---------------- After ----------------

    assert client.get(f"/users/{a['id']}").status_code == 404
    assert client.get(f"/posts/{p['id']}").status_code == 404
    assert client.get(f"/comments/{c['id']}").status_code == 404

    b_after = client.get(f"/users/{b['id']}").json()
    assert b_after["comments"] == []
    assert b_after["liked_posts"] == []

    assert client.get("/graph/audit").json()["ok"] is True


def test_partial_failure_is_surfaced(client, store):
    a = client.post("/users/", json={"name": "A", "password": "pa", "email": "a@x"}).json()
    p = client.post("/posts/", json={"content": "by A", "author": a["id"]}).json()

    store.users.fail_on("update_many")
    body = client.delete(f"/posts/{p['id']}").json()

    assert body["ok"] is False
    assert body["status"] == "partial_failure"
    assert body["failed_steps"][0]["collection"] == "users"
    assert client.get("/graph/audit").json()["ok"] is False
