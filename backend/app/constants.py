DEFAULTS = {
    # Service title shown in the OpenAPI docs
    "APP_NAME": "socialgraph-backend",
    # Prefix for every router
    "API_PREFIX": "",
    # Document store backend: "memory" or "mongo"
    "STORE_BACKEND": "memory",
    # Connection string for the mongo backend
    "MONGO_URL": "mongodb://localhost:27017",
    # Database holding the three collections
    "MONGO_DATABASE": "socialgraph",
    # Collection names
    "USERS_COLLECTION": "Users",
    "POSTS_COLLECTION": "Posts",
    "COMMENTS_COLLECTION": "Comments",
    # How compensations run after a primary write: "sequential" or "parallel"
    "CASCADE_MODE": "sequential",
    # Worker threads for parallel compensations
    "CASCADE_MAX_WORKERS": 4,
    # Wrap each plan in a transaction when the store supports it
    "CASCADE_USE_TRANSACTIONS": True,
}
