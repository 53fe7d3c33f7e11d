"""FastAPI application serving UBA fee quotes.

The app reconciles a data source exported to JSON (see
:meth:`ManualFlowSource.from_dict`) at startup. Deployments with a live
indexer attach their own client to ``app.state.uba_client`` instead.
"""

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from uba import __version__
from uba.api.endpoints import router
from uba.client import UBAClient
from uba.errors import (
    IncentivePoolOverdrawnError,
    InvalidFeeConfigurationError,
    InvalidFeeCurveError,
    MissingBundleStateError,
    UnresolvableFlowError,
)
from uba.sources.manual import ManualFlowSource

logger = structlog.get_logger()

# Configuration from environment variables with sensible defaults
HOST = os.environ.get("UBA_HOST", "0.0.0.0")
PORT = int(os.environ.get("UBA_PORT", "8000"))
DEBUG = os.environ.get("UBA_DEBUG", "false").lower() in ("true", "1", "yes")
SOURCE_PATH = os.environ.get("UBA_SOURCE_PATH")
CHAIN_IDS = [int(c) for c in os.environ.get("UBA_CHAIN_IDS", "").split(",") if c.strip()]
TOKENS = [t for t in os.environ.get("UBA_TOKENS", "").split(",") if t.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if SOURCE_PATH:
        source = ManualFlowSource.from_file(SOURCE_PATH)
        client = UBAClient(source, chain_ids=CHAIN_IDS, tokens=TOKENS)
        client.update()
        app.state.uba_client = client
        logger.info("uba_client_loaded", source=SOURCE_PATH, chain_ids=CHAIN_IDS, tokens=TOKENS)
    else:
        logger.warning("uba_source_not_configured", env_var="UBA_SOURCE_PATH")
    yield


app = FastAPI(
    title="UBA Fee Service",
    description="Balancing and LP fee quotes for the Unified Bridge Adapter",
    version=__version__,
    lifespan=lifespan,
)


@app.exception_handler(MissingBundleStateError)
async def missing_bundle_state(request: Request, exc: MissingBundleStateError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(UnresolvableFlowError)
@app.exception_handler(InvalidFeeConfigurationError)
@app.exception_handler(InvalidFeeCurveError)
async def invalid_input(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(IncentivePoolOverdrawnError)
async def incentive_pool_overdrawn(request: Request, exc: IncentivePoolOverdrawnError) -> JSONResponse:
    logger.error("incentive_pool_overdrawn_response", error=str(exc))
    return JSONResponse(status_code=500, content={"detail": str(exc)})


app.include_router(router)


@app.get("/health")
async def health() -> dict[str, object]:
    """Health check endpoint."""
    client = getattr(app.state, "uba_client", None)
    return {"status": "ok", "loaded": client is not None and client.is_updated}


def run() -> None:
    """Run the UBA API server.

    Configuration via environment variables:
    - UBA_HOST: Host to bind to (default: 0.0.0.0)
    - UBA_PORT: Port to bind to (default: 8000)
    - UBA_DEBUG: Enable debug/reload mode (default: false)
    - UBA_SOURCE_PATH: JSON export loaded into a ManualFlowSource
    - UBA_CHAIN_IDS / UBA_TOKENS: Comma-separated chains and tokens to reconcile
    """
    uvicorn.run(
        "uba.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
