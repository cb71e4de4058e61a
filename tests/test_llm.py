import json

import httpx
import pytest

from conftest import HALLEY, tool_response
from stellar_explorer.errors import (
    PAYMENT_REQUIRED_MESSAGE,
    RATE_LIMIT_MESSAGE,
    ConfigurationError,
    UpstreamPaymentRequired,
    UpstreamProtocolError,
    UpstreamRateLimited,
)
from stellar_explorer.llm import GatewayClient, parse_tool_call
from stellar_explorer.prompts import build_text_messages


def _gateway(handler) -> GatewayClient:
    return GatewayClient(
        api_key="secret",
        model="test-model",
        base_url="https://gateway.test/v1/",
        transport=httpx.MockTransport(handler),
    )


def test_missing_api_key_fails_at_construction() -> None:
    with pytest.raises(ConfigurationError, match="LLM_API_KEY"):
        GatewayClient(api_key="", model="m", base_url="https://gateway.test/v1")


@pytest.mark.asyncio
async def test_request_posts_forced_tool_call_with_bearer_token() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=tool_response(HALLEY))

    info = await _gateway(handler).request_celestial_info(build_text_messages("Halley's Comet"))

    assert info.model_dump() == HALLEY
    assert seen["url"] == "https://gateway.test/v1/chat/completions"
    assert seen["auth"] == "Bearer secret"
    body = seen["body"]
    assert body["model"] == "test-model"
    assert body["tool_choice"]["function"]["name"] == "provide_celestial_info"
    assert len(body["tools"]) == 1
    assert "Halley's Comet" in body["messages"][1]["content"]


@pytest.mark.asyncio
async def test_rate_limit_maps_to_rate_limited_error() -> None:
    gateway = _gateway(lambda request: httpx.Response(429, json={"error": "slow down"}))

    with pytest.raises(UpstreamRateLimited) as exc_info:
        await gateway.request_celestial_info(build_text_messages("Vega"))

    assert exc_info.value.status_code == 429
    assert exc_info.value.message == RATE_LIMIT_MESSAGE


@pytest.mark.asyncio
async def test_payment_required_maps_to_payment_error() -> None:
    gateway = _gateway(lambda request: httpx.Response(402, text="no credits"))

    with pytest.raises(UpstreamPaymentRequired) as exc_info:
        await gateway.request_celestial_info(build_text_messages("Vega"))

    assert exc_info.value.status_code == 402
    assert exc_info.value.message == PAYMENT_REQUIRED_MESSAGE


@pytest.mark.asyncio
async def test_other_gateway_status_is_protocol_error() -> None:
    gateway = _gateway(lambda request: httpx.Response(503, text="upstream down"))

    with pytest.raises(UpstreamProtocolError, match="AI gateway error") as exc_info:
        await gateway.request_celestial_info(build_text_messages("Vega"))

    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_transport_failure_is_protocol_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamProtocolError, match="request failed"):
        await _gateway(handler).request_celestial_info(build_text_messages("Vega"))


@pytest.mark.asyncio
async def test_non_json_gateway_body_is_protocol_error() -> None:
    gateway = _gateway(lambda request: httpx.Response(200, text="<html>oops</html>"))

    with pytest.raises(UpstreamProtocolError, match="non-JSON"):
        await gateway.request_celestial_info(build_text_messages("Vega"))


def test_parse_tool_call_requires_a_tool_call() -> None:
    plain_answer = {"choices": [{"message": {"role": "assistant", "content": "It is a comet."}}]}

    with pytest.raises(UpstreamProtocolError, match="No tool call in response"):
        parse_tool_call(plain_answer)
    with pytest.raises(UpstreamProtocolError, match="No tool call in response"):
        parse_tool_call({"choices": []})


def test_parse_tool_call_rejects_unparseable_arguments() -> None:
    with pytest.raises(UpstreamProtocolError, match="not valid JSON"):
        parse_tool_call(tool_response('{"name": "Vega",'))


def test_parse_tool_call_rejects_missing_field() -> None:
    partial = {key: value for key, value in HALLEY.items() if key != "moons"}

    with pytest.raises(UpstreamProtocolError, match="moons"):
        parse_tool_call(tool_response(partial))


def test_parse_tool_call_rejects_non_string_and_extra_fields() -> None:
    with pytest.raises(UpstreamProtocolError, match="distance"):
        parse_tool_call(tool_response({**HALLEY, "distance": 35}))
    with pytest.raises(UpstreamProtocolError, match="distance"):
        parse_tool_call(tool_response({**HALLEY, "distance": None}))
    with pytest.raises(UpstreamProtocolError, match="discovered"):
        parse_tool_call(tool_response({**HALLEY, "discovered": "1758"}))


def test_parse_tool_call_accepts_object_arguments() -> None:
    response = tool_response(HALLEY)
    response["choices"][0]["message"]["tool_calls"][0]["function"]["arguments"] = dict(HALLEY)

    assert parse_tool_call(response).name == "Halley's Comet"
