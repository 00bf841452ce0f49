"""ASGI entrypoint for the factory portal API."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from factory_portal.api.v1.router import get_api_router
from factory_portal.core.config import get_config
from factory_portal.core.startup import bootstrap, stop_trigger_dispatch


@asynccontextmanager
async def lifespan(app: FastAPI):
    bootstrap()
    yield
    stop_trigger_dispatch()


def create_app(with_lifespan: bool = True) -> FastAPI:
    cfg = get_config()
    app = FastAPI(title=cfg.APP_NAME, version=cfg.APP_VERSION, lifespan=lifespan if with_lifespan else None)
    app.include_router(get_api_router())

    @app.get("/")
    def root() -> dict:
        return {"service": cfg.APP_NAME, "version": cfg.APP_VERSION, "api_prefix": cfg.API_PREFIX}

    return app


# Exposed for `uvicorn factory_portal.main:app`.
app = create_app()


if __name__ == "__main__":
    import uvicorn

    cfg = get_config()
    uvicorn.run("factory_portal.main:app", host=cfg.API_HOST, port=cfg.API_PORT)
