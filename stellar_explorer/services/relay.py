import logging
from typing import Any

import pydantic

from stellar_explorer.errors import RelayError, ValidationError
from stellar_explorer.llm import GatewayClient
from stellar_explorer.observability import metrics_registry
from stellar_explorer.prompts import build_messages
from stellar_explorer.schemas import CelestialInfo, IdentifyRequest

logger = logging.getLogger(__name__)


class CelestialRelay:
    """Turns one client envelope into one gateway call and back.

    Holds no per-request state; a single instance serves every request.
    """

    def __init__(self, gateway: GatewayClient) -> None:
        self.gateway = gateway

    async def identify(self, payload: Any) -> CelestialInfo:
        try:
            request = parse_request(payload)
            logger.info("Processing %s request", request.type)
            info = await self.gateway.request_celestial_info(build_messages(request))
        except RelayError as exc:
            metrics_registry.record_relay_outcome(exc.kind.value)
            raise

        metrics_registry.record_relay_outcome("ok")
        return info


def parse_request(payload: Any) -> IdentifyRequest:
    try:
        return IdentifyRequest.model_validate(payload)
    except pydantic.ValidationError as exc:
        details = "; ".join(error["msg"] for error in exc.errors())
        raise ValidationError(f"Invalid request: {details}") from exc
