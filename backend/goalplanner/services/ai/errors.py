"""Errors raised by provider adapters."""
from __future__ import annotations

ERROR_BODY_EXCERPT_LENGTH = 300


class AIProviderError(Exception):
    """Base class for failed provider attempts."""


class ProviderRequestError(AIProviderError):
    """A provider answered with a non-success HTTP status."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body_excerpt = (body or "")[:ERROR_BODY_EXCERPT_LENGTH]
        super().__init__(f"AI provider request failed ({status_code}): {self.body_excerpt}")


class ProviderTimeoutError(AIProviderError):
    def __init__(self, url: str, timeout_ms: int) -> None:
        self.url = url
        self.timeout_ms = timeout_ms
        super().__init__(f"AI provider request timed out after {timeout_ms}ms: {url}")


class ProviderCancelledError(AIProviderError):
    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"AI provider request cancelled by caller: {url}")


class ProviderResponseError(AIProviderError):
    """A provider answered 2xx with a body that is not JSON."""
