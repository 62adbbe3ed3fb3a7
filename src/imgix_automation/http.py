"""HTTP utilities for working with imgix API responses."""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional

from requests import Response

from .errors import ApiError, ApiErrorEntry, ImgixAutomationError


def _request_url(response: Response) -> str:
    return response.request.url if response.request else "<unknown>"


def _body_preview(response: Response) -> str:
    preview = response.text[:500].replace("\n", " ").strip()
    return preview or "<no text>"


@dataclass(slots=True, eq=False)
class TransportError(ImgixAutomationError):
    """Raised when the API could not be reached or answered with an unreadable error."""

    url: str
    message: str
    status_code: Optional[int] = None

    def __str__(self) -> str:
        if self.status_code is None:
            return f"Error sending request to {self.url}: {self.message}"
        return f"Request to {self.url} failed (status {self.status_code}): {self.message}"


@dataclass(slots=True, eq=False)
class UnexpectedResponseError(ImgixAutomationError):
    """Raised when an HTTP response payload is not the expected JSON."""

    status_code: int
    url: str
    body_preview: str

    def __str__(self) -> str:  # noqa: D401 - simple representation
        return (
            f"Unexpected response while calling {self.url} (status {self.status_code}): "
            f"{self.body_preview}"
        )


def parse_json(response: Response) -> Any:
    """Return JSON content or raise UnexpectedResponseError with helpful context."""

    if not response.content:
        raise UnexpectedResponseError(
            status_code=response.status_code,
            url=_request_url(response),
            body_preview="<empty body>",
        )
    try:
        return response.json()
    except ValueError as exc:
        raise UnexpectedResponseError(
            status_code=response.status_code,
            url=_request_url(response),
            body_preview=_body_preview(response),
        ) from exc


def api_error_from_response(response: Response) -> ImgixAutomationError:
    """Classify a rejected call as ApiError, or TransportError when the body is unreadable."""

    try:
        body = json.loads(response.content or b"")
    except ValueError:
        body = None
    raw_entries = body.get("errors") if isinstance(body, dict) else None
    if (
        not isinstance(raw_entries, list)
        or not raw_entries
        or not all(isinstance(item, dict) for item in raw_entries)
    ):
        return TransportError(
            url=_request_url(response),
            message=_body_preview(response),
            status_code=response.status_code,
        )
    return ApiError(
        entries=[ApiErrorEntry.from_dict(item) for item in raw_entries],
        status_code=response.status_code,
    )


def raise_for_api_error(response: Response, expected_status: int) -> None:
    if response.status_code != expected_status:
        raise api_error_from_response(response)
