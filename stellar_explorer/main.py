import logging
import os
from functools import lru_cache

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from stellar_explorer.config import settings
from stellar_explorer.errors import (
    ConfigurationError,
    RelayError,
    UpstreamProtocolError,
    ValidationError,
)
from stellar_explorer.llm import GatewayClient
from stellar_explorer.observability import (
    CorsHeadersMiddleware,
    RequestMetricsAndLoggingMiddleware,
    configure_logging,
    metrics_registry,
)
from stellar_explorer.schemas import CelestialInfo, ErrorResponse
from stellar_explorer.services.relay import CelestialRelay

logger = logging.getLogger(__name__)

app = FastAPI(title="Stellar Explorer Relay", version="0.1.0")
# Added first so the access log middleware wraps it and sees preflights too.
app.add_middleware(CorsHeadersMiddleware)
app.add_middleware(RequestMetricsAndLoggingMiddleware)


@app.on_event("startup")
def startup_logging() -> None:
    configure_logging()
    if not settings.llm_api_key:
        logger.warning("LLM_API_KEY is not configured; identify requests will fail")


@lru_cache(maxsize=1)
def get_relay() -> CelestialRelay:
    return CelestialRelay(GatewayClient.from_settings(settings))


@app.exception_handler(RelayError)
async def relay_error_handler(_: Request, exc: RelayError) -> JSONResponse:
    logger.error("Error: %s (%s)", exc.message, exc.kind.value)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(_: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error("Error: %s", exc)
    return JSONResponse(status_code=500, content={"error": str(exc)})


@app.get("/health")
def health() -> dict[str, str | bool]:
    return {
        "status": "ok",
        "model": settings.llm_model,
        "credential_configured": bool(settings.llm_api_key),
    }


@app.get("/metrics", response_class=PlainTextResponse)
def metrics() -> str:
    if not settings.enable_metrics:
        raise HTTPException(status_code=404, detail="metrics disabled")
    return metrics_registry.render_prometheus()


@app.post(
    "/identify-celestial",
    response_model=CelestialInfo,
    responses={402: {"model": ErrorResponse}, 429: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def identify_celestial(
    request: Request,
    relay: CelestialRelay = Depends(get_relay),
) -> JSONResponse:
    try:
        payload = await request.json()
    except ValueError as exc:
        raise ValidationError("Request body must be a JSON object") from exc

    try:
        info = await relay.identify(payload)
    except RelayError:
        raise
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unexpected relay failure")
        raise UpstreamProtocolError(str(exc) or "Unknown error") from exc

    return JSONResponse(content=info.model_dump())


def run() -> None:
    import uvicorn

    uvicorn.run(
        "stellar_explorer.main:app",
        host=os.getenv("RELAY_HOST", "127.0.0.1"),
        port=int(os.getenv("RELAY_PORT", "8000")),
    )
