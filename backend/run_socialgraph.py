import json
import logging
import sys
import time
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.app.config import AppConfig  # noqa: E402
from backend.app.dependencies import get_store  # noqa: E402
from socialgraph.graph.graph_audit import GraphAuditor  # noqa: E402
from socialgraph.graph.graph_mutator import GraphMutator  # noqa: E402
from socialgraph.graph.graph_query import GraphQueryEngine  # noqa: E402


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logger = logging.getLogger("socialgraph.run")
    start = time.perf_counter()
    config = AppConfig()

    store = get_store()
    mutator = GraphMutator(store=store, config=config.socialgraph.cascade)
    engine = GraphQueryEngine(store)
    auditor = GraphAuditor(store)

    def log_audit(label: str) -> None:
        report = auditor.audit()
        logger.info("[%s] audit %s", label, json.dumps(report.to_dict(), indent=2))
        if not report.ok:
            logger.warning("[%s] graph has reference violations", label)

    # Two users, a post by A, a comment and a like on it by B, then A leaves.
    suffix = str(int(time.time()))
    a = mutator.create_user(name="A", password="secret-a", email=f"a+{suffix}@x")
    b = mutator.create_user(name="B", password="secret-b", email=f"b+{suffix}@x")
    post = mutator.create_post(content="hello from A", author=a.id)
    comment = mutator.create_comment(text="hi A", author=b.id, post=post.id)
    mutator.add_like_to_post(post.id, b.id)
    log_audit("seeded")

    result = mutator.delete_user(a.id)
    logger.info("[delete] %s", json.dumps(result.to_dict(), indent=2))

    b_after = engine.get_user(b.id)
    logger.info(
        "[delete] post gone=%s comment gone=%s b.comments=%s b.liked_posts=%s",
        engine.get_post(post.id) is None,
        engine.get_comment(comment.id) is None,
        [str(i) for i in b_after.comments],
        [str(i) for i in b_after.liked_posts],
    )
    log_audit("after-delete")

    mutator.delete_user(b.id)
    logger.info("done in %.2fs", time.perf_counter() - start)
    store.close()


if __name__ == "__main__":
    main()
