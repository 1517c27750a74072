import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from entitlement_gate import __version__
from entitlement_gate.api.deps import get_entitlement_store, get_rules, get_settings
from entitlement_gate.app_shell.config import validate_ops_rules

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = get_settings()

    # Load rules, validate, and open the store on startup (fail-fast)
    try:
        rules = get_rules()
        validate_ops_rules(rules)
        get_entitlement_store()
        logger.info(f"Rules loaded from {settings.rules_path} (store: {rules.store.backend})")
    except Exception as e:
        logger.critical(f"Startup failed: {e}")
        sys.exit(1)

    yield


app = FastAPI(
    title="Entitlement Gate",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
from entitlement_gate.api.routes import access, checkout, pages, webhook  # noqa: E402

app.include_router(webhook.router, prefix="/api", tags=["Webhooks"])
app.include_router(access.router, prefix="/api", tags=["Access"])
app.include_router(checkout.router, prefix="", tags=["Checkout"])
app.include_router(pages.router, prefix="", tags=["Pages"])


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "api"}
