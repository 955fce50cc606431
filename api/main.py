import logging
import os
import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core import db
from items import router as items_router

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def configure_logging() -> None:
    level = os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # One pool per process; handlers get it via db.get_pool.
    app.state.pool = await db.init_pool()
    try:
        yield
    finally:
        await db.close_pool(app.state.pool)
        app.state.pool = None


async def store_error_handler(_: Request, exc: db.StoreError) -> JSONResponse:
    # The cause was logged where it happened; callers only see the short message.
    return JSONResponse(status_code=500, content={"error": str(exc)})


async def http_error_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "request method=%s path=%s status=%s duration_ms=%.1f",
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - start) * 1000.0,
    )
    return response


def create_app() -> FastAPI:
    app = FastAPI(title="items-api", lifespan=lifespan)
    app.state.pool = None

    app.add_exception_handler(db.StoreError, store_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.middleware("http")(log_requests)

    app.include_router(items_router.router, tags=["items"])

    @app.get("/healthz", responses={503: {"description": "Database not reachable."}})
    async def healthz(pool=Depends(db.get_pool)):
        try:
            await db.ping(pool)
        except db.StoreError as exc:
            logger.warning("healthz_failed error=%r", exc.__cause__)
            return JSONResponse(status_code=503, content={"error": str(exc)})
        return {"status": "ok"}

    return app


app = create_app()


def run() -> None:
    configure_logging()
    uvicorn.run(
        app,
        host=os.environ.get("HOST", "127.0.0.1").strip() or "127.0.0.1",
        port=_env_int("PORT", 8080),
        log_level=os.environ.get("LOG_LEVEL", "info").strip().lower() or "info",
    )


if __name__ == "__main__":
    run()
