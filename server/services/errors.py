from __future__ import annotations

from typing import Optional


class GatewayError(Exception):
    """Base error for the media gateway; carries the HTTP status it maps to."""

    status_code = 500

    def __init__(self, detail: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(detail)
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code


class ValidationError(GatewayError):
    status_code = 400


class PolicyError(GatewayError):
    status_code = 403


class UpstreamError(GatewayError):
    status_code = 502


class StreamTimeoutError(GatewayError):
    status_code = 504


class ParseError(ValueError):
    """A single manifest line or metadata block could not be parsed.

    Never surfaced to clients; callers recover by leaving the unit untouched.
    """
