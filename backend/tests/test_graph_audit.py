from bson import ObjectId


def test_consistent_graph_passes(auditor, seeded):
    report = auditor.audit()

    assert report.ok
    # 2 users, 1 post, 1 comment
    assert report.nodes == 4
    # A.posts, P.author, B.comments, C.author, P.comments, C.post, B.likedPosts, P.likes
    assert report.edges == 8


def test_missing_backlink_is_reported(store, auditor, seeded):
    a, p = seeded["a"], seeded["p"]
    store.users.update_one({"_id": a.id}, {"$pull": {"posts": p.id}})

    report = auditor.audit()

    assert not report.ok
    assert report.dangling == []
    assert [(v.relation, v.reason) for v in report.asymmetric] == [
        ("author", "missing users.posts")
    ]


def test_dangling_reference_is_reported(store, auditor, seeded):
    ghost = ObjectId()
    store.posts.update_one({"_id": seeded["p"].id}, {"$push": {"likes": ghost}})

    report = auditor.audit()

    assert [(v.relation, v.target_id) for v in report.dangling] == [("likes", str(ghost))]
    assert report.to_dict()["ok"] is False
