from __future__ import annotations


class AiSupportError(Exception):
    """Base class for AI-support failures surfaced to the HTTP layer."""


class ProviderNotConfiguredError(AiSupportError):
    pass


class UpstreamProviderError(AiSupportError):
    """Every upstream model endpoint failed (timeout, transport error or non-2xx)."""

    def __init__(self, message: str, status: int | None = None, url: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.url = url


class ReplyPipelineError(AiSupportError):
    pass


class EscalationError(AiSupportError):
    pass
