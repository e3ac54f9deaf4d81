"""Error types shared by the relay handlers and the client driver."""

from __future__ import annotations


class RelayError(Exception):
    """Base error for failures surfaced to relay callers as ``{"error": ...}``."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None, cause: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause
        if status_code is not None:
            self.status_code = status_code


class ClientInputError(RelayError):
    """Missing or invalid field in the client request."""

    status_code = 400


class MethodNotAllowedError(RelayError):
    status_code = 405


class ConfigurationError(RelayError):
    """A server-held secret needed by the handler is not configured."""

    status_code = 500


class UpstreamError(RelayError):
    """Network failure or non-success status from an upstream API.

    ``upstream_status`` is the status the upstream answered with, if it answered at all.
    """

    status_code = 500

    def __init__(
        self,
        message: str,
        upstream_status: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause=cause)
        self.upstream_status = upstream_status


class RelayClientError(Exception):
    """Error raised by the run/poll client driver."""

    def __init__(self, message: str, thread_id: str | None = None, cause: Exception | None = None):
        super().__init__(message)
        self.thread_id = thread_id
        self.cause = cause


class AssistantStartError(RelayClientError):
    """The relay did not return a thread id, so there is nothing to poll."""


class AssistantPollError(RelayClientError):
    """A poll request failed."""


class AssistantTimeoutError(RelayClientError):
    """No answer arrived within the poll budget."""


class AssistantCancelledError(RelayClientError):
    """The caller's cancel event was set before the next poll."""
