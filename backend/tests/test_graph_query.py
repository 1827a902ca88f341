from bson import ObjectId


def test_reference_fields_resolve(engine, seeded):
    a, b, p, c = seeded["a"], seeded["b"], seeded["p"], seeded["c"]
    user_b = engine.get_user(b.id)
    post = engine.get_post(p.id)
    comment = engine.get_comment(c.id)

    assert [x.id for x in engine.user_posts(engine.get_user(a.id))] == [p.id]
    assert [x.id for x in engine.user_comments(user_b)] == [c.id]
    assert [x.id for x in engine.user_liked_posts(user_b)] == [p.id]
    assert engine.post_author(post).id == a.id
    assert [x.id for x in engine.post_comments(post)] == [c.id]
    assert [x.id for x in engine.post_likes(post)] == [b.id]
    assert engine.comment_author(comment).id == b.id
    assert engine.comment_post(comment).id == p.id


def test_missing_references_are_omitted(store, engine, seeded):
    a = seeded["a"]
    ghost = ObjectId()
    store.users.update_one({"_id": a.id}, {"$push": {"likedPosts": ghost}})
    store.users.update_one({"_id": a.id}, {"$push": {"likedPosts": seeded["p"].id}})

    liked = engine.user_liked_posts(engine.get_user(a.id))

    assert [x.id for x in liked] == [seeded["p"].id]


def test_missing_single_references_resolve_to_none(store, engine, seeded):
    store.users.delete_one({"_id": seeded["b"].id})
    store.posts.delete_one({"_id": seeded["p"].id})

    comment = engine.get_comment(seeded["c"].id)

    assert engine.comment_author(comment) is None
    assert engine.comment_post(comment) is None


def test_get_unknown_ids_return_none(engine):
    assert engine.get_user(ObjectId()) is None
    assert engine.get_post(str(ObjectId())) is None
    assert engine.get_comment(ObjectId()) is None


def test_listing(engine, seeded):
    assert {u.email for u in engine.list_users()} == {"a@x", "b@x"}
    assert len(engine.list_posts()) == 1
    assert len(engine.list_comments()) == 1
