from dataclasses import dataclass
from dynaconf import Dynaconf
from backend.app.constants import DEFAULTS

from socialgraph.config.settings import (
    StoreConfig,
    CascadeConfig,
    SocialGraphConfig,
)

settings = Dynaconf(
    envvar_prefix="SOCIALGRAPH",
    load_dotenv=True,
    settings_files=[],
)
for _key, _value in DEFAULTS.items():
    settings.setdefault(_key, _value)


@dataclass(frozen=True)
class AppConfig:
    # ---------------- App ----------------
    app_name: str = settings.get("APP_NAME", "socialgraph-backend")
    api_prefix: str = settings.get("API_PREFIX", "")

    # ---------------- Graph Policy ----------------
    socialgraph: SocialGraphConfig = SocialGraphConfig(
        store=StoreConfig(
            backend=settings.get("STORE_BACKEND", "memory"),
            mongo_url=settings.get("MONGO_URL"),
            database=settings.get("MONGO_DATABASE", "socialgraph"),
            users_collection=settings.get("USERS_COLLECTION", "Users"),
            posts_collection=settings.get("POSTS_COLLECTION", "Posts"),
            comments_collection=settings.get("COMMENTS_COLLECTION", "Comments"),
        ),
        cascade=CascadeConfig(
            mode=settings.get("CASCADE_MODE", "sequential"),
            max_workers=settings.get("CASCADE_MAX_WORKERS", 4),
            use_transactions=settings.get("CASCADE_USE_TRANSACTIONS", True),
        ),
    )
