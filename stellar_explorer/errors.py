"""Error kinds shared by the relay and the client.

Every failure the system can report belongs to exactly one ``ErrorKind``.
The relay maps a kind to an HTTP status and a JSON ``{"error": ...}`` body;
the client maps a failed relay call back to the same kinds so it can log
what happened before showing its generic notice.
"""

from enum import Enum

RATE_LIMIT_MESSAGE = "Rate limits exceeded. Please try again later."
PAYMENT_REQUIRED_MESSAGE = "Payment required. Please add credits to continue."


class ErrorKind(str, Enum):
    VALIDATION = "ValidationError"
    NETWORK = "NetworkError"
    UPSTREAM_RATE_LIMITED = "UpstreamRateLimited"
    UPSTREAM_PAYMENT_REQUIRED = "UpstreamPaymentRequired"
    UPSTREAM_PROTOCOL = "UpstreamProtocolError"


# Relay response status per kind. NetworkError never leaves the client.
STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 500,
    ErrorKind.NETWORK: 500,
    ErrorKind.UPSTREAM_RATE_LIMITED: 429,
    ErrorKind.UPSTREAM_PAYMENT_REQUIRED: 402,
    ErrorKind.UPSTREAM_PROTOCOL: 500,
}


class ConfigurationError(RuntimeError):
    """Raised when a required setting is missing at construction time."""


class RelayError(Exception):
    kind: ErrorKind = ErrorKind.UPSTREAM_PROTOCOL

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]

    def to_payload(self) -> dict[str, str]:
        return {"error": self.message}


class ValidationError(RelayError):
    kind = ErrorKind.VALIDATION


class NetworkError(RelayError):
    kind = ErrorKind.NETWORK


class UpstreamRateLimited(RelayError):
    kind = ErrorKind.UPSTREAM_RATE_LIMITED

    def __init__(self, message: str = RATE_LIMIT_MESSAGE) -> None:
        super().__init__(message)


class UpstreamPaymentRequired(RelayError):
    kind = ErrorKind.UPSTREAM_PAYMENT_REQUIRED

    def __init__(self, message: str = PAYMENT_REQUIRED_MESSAGE) -> None:
        super().__init__(message)


class UpstreamProtocolError(RelayError):
    kind = ErrorKind.UPSTREAM_PROTOCOL


def error_for_status(status_code: int, message: str) -> RelayError:
    """Rebuild the error a relay response with ``status_code`` stands for."""
    if status_code == 429:
        return UpstreamRateLimited(message or RATE_LIMIT_MESSAGE)
    if status_code == 402:
        return UpstreamPaymentRequired(message or PAYMENT_REQUIRED_MESSAGE)
    return UpstreamProtocolError(message or f"relay returned status {status_code}")
