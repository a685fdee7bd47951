from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from index_console.exceptions import CatalogError, UnknownIndexError, UnknownSchemaError

from api.routes.indexes import router as indexes_router

logger = logging.getLogger(__name__)


async def catalog_error_response(request: Request, exc: CatalogError) -> JSONResponse:
    """
    Catalog failures reach the client as `{"detail": ...}`, the shape the
    console reads its error text from.
    """
    status_code = 404 if isinstance(exc, (UnknownSchemaError, UnknownIndexError)) else 400
    logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def create_app() -> FastAPI:
    origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    app = FastAPI(title="Index Console API", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )
    app.add_exception_handler(CatalogError, catalog_error_response)
    app.include_router(indexes_router)

    @app.get("/healthz")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
