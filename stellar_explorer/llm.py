import json
import logging
from typing import Any

import httpx
import pydantic

from stellar_explorer.config import Settings
from stellar_explorer.errors import (
    ConfigurationError,
    UpstreamPaymentRequired,
    UpstreamProtocolError,
    UpstreamRateLimited,
)
from stellar_explorer.prompts import celestial_info_tool, forced_tool_choice
from stellar_explorer.schemas import CelestialInfo

logger = logging.getLogger(__name__)


class GatewayClient:
    """Chat-completions client that always asks for a ``provide_celestial_info`` call."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        timeout_s: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("LLM_API_KEY is not configured")
        self._api_key = api_key
        self.model = model
        self.base_url = base_url
        self.timeout_s = timeout_s
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "GatewayClient":
        return cls(
            api_key=settings.llm_api_key,
            model=settings.llm_model,
            base_url=settings.llm_base_url,
            timeout_s=settings.llm_timeout_s,
            transport=transport,
        )

    @property
    def chat_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"

    def build_body(self, messages: list[dict[str, Any]]) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": messages,
            "tools": [celestial_info_tool()],
            "tool_choice": forced_tool_choice(),
        }

    async def request_celestial_info(self, messages: list[dict[str, Any]]) -> CelestialInfo:
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
                response = await client.post(
                    self.chat_url,
                    headers=headers,
                    json=self.build_body(messages),
                )
        except httpx.HTTPError as exc:
            logger.error("AI gateway request failed: %s", exc)
            raise UpstreamProtocolError(f"AI gateway request failed: {exc}") from exc

        _raise_for_gateway_status(response)

        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamProtocolError("AI gateway returned a non-JSON response") from exc

        logger.info("AI response received")
        return parse_tool_call(data)


def _raise_for_gateway_status(response: httpx.Response) -> None:
    if response.is_success:
        return
    if response.status_code == 429:
        logger.warning("AI gateway rate limited the request")
        raise UpstreamRateLimited()
    if response.status_code == 402:
        logger.warning("AI gateway requires payment")
        raise UpstreamPaymentRequired()
    logger.error("AI gateway error: status=%s body=%s", response.status_code, response.text)
    raise UpstreamProtocolError("AI gateway error")


def parse_tool_call(data: Any) -> CelestialInfo:
    arguments = _extract_tool_arguments(data)
    if arguments is None:
        raise UpstreamProtocolError("No tool call in response")

    if isinstance(arguments, str):
        try:
            arguments = json.loads(arguments)
        except json.JSONDecodeError as exc:
            raise UpstreamProtocolError(f"Tool call arguments are not valid JSON: {exc}") from exc

    if not isinstance(arguments, dict):
        raise UpstreamProtocolError("Tool call arguments are not a JSON object")

    try:
        return CelestialInfo.model_validate(arguments)
    except pydantic.ValidationError as exc:
        fields = ", ".join(
            ".".join(str(part) for part in error["loc"]) or "<root>" for error in exc.errors()
        )
        raise UpstreamProtocolError(f"Tool call arguments do not match celestial info: {fields}") from exc


def _extract_tool_arguments(data: Any) -> Any:
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message") or {}
    tool_calls = message.get("tool_calls") if isinstance(message, dict) else None
    if not isinstance(tool_calls, list) or not tool_calls:
        return None
    call = tool_calls[0]
    if not isinstance(call, dict):
        return None
    function = call.get("function")
    if not isinstance(function, dict):
        return None
    return function.get("arguments")
