from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from bson.errors import InvalidId

from socialgraph.graph.errors import (
    GraphError,
    NotFoundError,
    ConflictError,
    WriteRejectedError,
)

from backend.app.config import AppConfig
from backend.app.api.routes_users import router as users_router
from backend.app.api.routes_posts import router as posts_router
from backend.app.api.routes_comments import router as comments_router
from backend.app.api.routes_graph import router as graph_router
from backend.app.dependencies import get_store


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifecycle hooks.

    Opens the document store once at startup and closes it at shutdown.
    """
    store = get_store()

    yield

    store.close()


_STATUS_BY_ERROR = {
    NotFoundError: 404,
    ConflictError: 409,
    WriteRejectedError: 500,
}


async def _graph_error_handler(request: Request, exc: GraphError) -> JSONResponse:
    status = _STATUS_BY_ERROR.get(type(exc), 400)
    return JSONResponse(
        status_code=status,
        content={
            "detail": exc.message,
            "error": type(exc).__name__,
            "entity": exc.entity,
            "entity_id": None if exc.entity_id is None else str(exc.entity_id),
        },
    )


async def _invalid_id_handler(request: Request, exc: InvalidId) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc), "error": "InvalidId"})


def create_app(config: AppConfig) -> FastAPI:
    app = FastAPI(
        title=config.app_name,
        lifespan=lifespan,
    )

    app.add_exception_handler(GraphError, _graph_error_handler)
    app.add_exception_handler(InvalidId, _invalid_id_handler)

    app.include_router(
        users_router,
        prefix=f"{config.api_prefix}/users",
        tags=["users"],
    )

    app.include_router(
        posts_router,
        prefix=f"{config.api_prefix}/posts",
        tags=["posts"],
    )

    app.include_router(
        comments_router,
        prefix=f"{config.api_prefix}/comments",
        tags=["comments"],
    )

    app.include_router(
        graph_router,
        prefix=f"{config.api_prefix}/graph",
        tags=["graph"],
    )

    return app


config = AppConfig()
app = create_app(config)
