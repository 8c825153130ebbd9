"""Classification of provider failures into user-facing messages."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from openai import APIConnectionError, APIError, APIStatusError

from docmirror.llm.models import LLMError, MalformedResponseError


class ErrorKind(str, Enum):
    quota = "quota"
    rate_limit = "rate_limit"
    authentication = "authentication"
    permission = "permission"
    server_error = "server_error"
    unavailable = "unavailable"
    network = "network"
    malformed_response = "malformed_response"
    unknown = "unknown"


MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.quota: "Insufficient API credits, please top up",
    ErrorKind.rate_limit: "Rate limit exceeded, please try again later",
    ErrorKind.authentication: "Invalid API key, please check configuration",
    ErrorKind.permission: "Access forbidden, please check API key permissions",
    ErrorKind.server_error: "API server internal error",
    ErrorKind.unavailable: "API service temporarily unavailable",
    ErrorKind.network: "Could not reach the AI provider, please check network connectivity",
    ErrorKind.malformed_response: "AI provider returned an unusable response",
}

_STATUS_KINDS: dict[int, ErrorKind] = {
    401: ErrorKind.authentication,
    402: ErrorKind.quota,
    403: ErrorKind.permission,
    429: ErrorKind.rate_limit,
    500: ErrorKind.server_error,
    502: ErrorKind.unavailable,
    503: ErrorKind.unavailable,
}

_QUOTA_CODES = frozenset({"insufficient_quota", "quota_exceeded"})
_RATE_LIMIT_CODES = frozenset({"rate_limit_exceeded", "rate_limited"})

# Checked in order against the lowercased message when nothing typed matched
_MESSAGE_HINTS: tuple[tuple[str, ErrorKind], ...] = (
    ("402", ErrorKind.quota),
    ("429", ErrorKind.rate_limit),
    ("401", ErrorKind.authentication),
    ("rate_limit", ErrorKind.rate_limit),
    ("rate limit", ErrorKind.rate_limit),
    ("quota", ErrorKind.quota),
)


@dataclass(frozen=True)
class ClassifiedError:
    kind: ErrorKind
    message: str


def _unwrap(exc: BaseException) -> BaseException:
    if isinstance(exc, LLMError) and exc.__cause__ is not None:
        return exc.__cause__
    return exc


def _raw_message(exc: BaseException) -> str:
    if isinstance(exc, APIError) and exc.message:
        return exc.message
    return str(exc) or type(exc).__name__


def classify_error(exc: BaseException) -> ClassifiedError:
    """Map a translation failure onto an ErrorKind and a message for the user.

    Order: response shape, error code, HTTP status, transport failure,
    message substrings. Anything unrecognized keeps its raw message.
    """
    cause = _unwrap(exc)
    kind: ErrorKind | None = None

    if isinstance(cause, MalformedResponseError):
        kind = ErrorKind.malformed_response
    elif isinstance(cause, APIError):
        code = str(cause.code).lower() if cause.code else ""
        if code in _QUOTA_CODES:
            kind = ErrorKind.quota
        elif code in _RATE_LIMIT_CODES:
            kind = ErrorKind.rate_limit
        elif isinstance(cause, APIStatusError):
            kind = _STATUS_KINDS.get(cause.status_code)
            if kind is None and cause.status_code >= 500:
                kind = ErrorKind.server_error
        elif isinstance(cause, APIConnectionError):
            kind = ErrorKind.network
    elif isinstance(cause, (ConnectionError, TimeoutError)):
        kind = ErrorKind.network

    raw = _raw_message(cause)
    if kind is None:
        lowered = raw.lower()
        for needle, hinted in _MESSAGE_HINTS:
            if needle in lowered:
                kind = hinted
                break

    if kind is None:
        return ClassifiedError(ErrorKind.unknown, raw)
    return ClassifiedError(kind, MESSAGES[kind])
