import base64
import binascii
from typing import Any

import httpx
import pydantic

from stellar_explorer.config import ClientSettings, client_settings
from stellar_explorer.errors import (
    NetworkError,
    UpstreamProtocolError,
    ValidationError,
    error_for_status,
)
from stellar_explorer.schemas import CelestialInfo

IDENTIFY_PATH = "/identify-celestial"


def encode_data_url(content: bytes, content_type: str | None) -> str:
    if not content_type or not content_type.startswith("image/"):
        raise ValidationError("Only image uploads are allowed")
    if not content:
        raise ValidationError("The selected file is empty")
    encoded = base64.b64encode(content).decode("utf-8")
    return f"data:{content_type};base64,{encoded}"


def decode_data_url(data_url: str) -> bytes:
    header, sep, encoded = data_url.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise ValidationError("not a base64 data URL")
    try:
        return base64.b64decode(encoded.encode("utf-8"), validate=True)
    except binascii.Error as exc:
        raise ValidationError(f"invalid base64 payload: {exc}") from exc


class RelayClient:
    def __init__(
        self,
        base_url: str,
        timeout_s: float = 90.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout_s = timeout_s
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: ClientSettings = client_settings,
        transport: httpx.BaseTransport | None = None,
    ) -> "RelayClient":
        return cls(settings.relay_url, settings.relay_timeout_s, transport=transport)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url.rstrip('/')}{IDENTIFY_PATH}"

    def identify_text(self, query: str) -> CelestialInfo:
        return self._invoke({"query": query, "type": "text"})

    def identify_image(self, data_url: str) -> CelestialInfo:
        return self._invoke({"image": data_url, "type": "image"})

    def _invoke(self, body: dict[str, Any]) -> CelestialInfo:
        try:
            with httpx.Client(timeout=self.timeout_s, transport=self._transport) as client:
                response = client.post(self.endpoint, json=body)
        except httpx.HTTPError as exc:
            raise NetworkError(f"relay unreachable: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise NetworkError(
                f"relay returned a non-JSON response (status {response.status_code})"
            ) from exc

        if not response.is_success:
            message = data.get("error", "") if isinstance(data, dict) else ""
            raise error_for_status(response.status_code, str(message))

        try:
            return CelestialInfo.model_validate(data)
        except pydantic.ValidationError as exc:
            raise UpstreamProtocolError("relay returned an incomplete celestial record") from exc
