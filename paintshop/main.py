"""Application wiring: middleware, error handlers, routers and startup hooks."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .core.config import settings
from .core.errors import (
    PaintShopError,
    http_exception_handler,
    paintshop_error_handler,
    validation_exception_handler,
)
from .core.logging import configure_logging
from .db.session import Base, engine
from .middlewares import RequestIdMiddleware, SecurityHeadersMiddleware

# Registers every table on Base.metadata before create_all runs.
from . import models as _models  # noqa: F401
from .routers import (
    api_auth,
    api_colors,
    api_contacts,
    api_expenses,
    api_inventory,
    api_ledger,
    api_products,
    api_purchases,
    api_sales,
)

app = FastAPI(title=settings.APP_NAME, version=__version__)

app.add_exception_handler(PaintShopError, paintshop_error_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIdMiddleware)
if settings.ALLOWED_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

for module in (
    api_auth,
    api_colors,
    api_products,
    api_inventory,
    api_purchases,
    api_sales,
    api_contacts,
    api_expenses,
    api_ledger,
):
    app.include_router(module.router)

instrumentator = Instrumentator()


@app.get("/health")
async def health() -> dict[str, bool]:
    return {"ok": True}


@app.on_event("startup")
async def _startup() -> None:
    configure_logging(settings.LOG_LEVEL)
    Base.metadata.create_all(bind=engine)
    instrumentator.instrument(app).expose(app)


__all__ = ["app"]
