"""Error types raised by the imgix source automation."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


class ImgixAutomationError(RuntimeError):
    """Base class for every failure surfaced by this package."""


class MissingCredentialError(ImgixAutomationError):
    """Raised when a client is built without an imgix API key."""


class InvalidSpecError(ImgixAutomationError):
    """Raised when a source specification cannot be turned into a request."""


class ConfigurationError(ImgixAutomationError):
    """Raised when the automation configuration is invalid."""


@dataclass(slots=True)
class ApiErrorEntry:
    status: str = ""
    title: str = ""
    detail: str = ""

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "ApiErrorEntry":
        return cls(
            status=str(raw.get("status") or ""),
            title=str(raw.get("title") or ""),
            detail=str(raw.get("detail") or ""),
        )


@dataclass(slots=True, eq=False)
class ApiError(ImgixAutomationError):
    """Structured rejection returned by the imgix API.

    The API answers failed calls with ``{"errors": [{"status", "title", "detail"}]}``.
    Callers match specific conditions with :meth:`has_title` rather than the
    human readable detail text.
    """

    entries: list[ApiErrorEntry] = field(default_factory=list)
    status_code: Optional[int] = None

    def has_title(self, title: str) -> bool:
        return any(entry.title == title for entry in self.entries)

    def __str__(self) -> str:
        return "\n".join(
            f"status: {entry.status}, details: {entry.detail}" for entry in self.entries
        )


@dataclass(slots=True, eq=False)
class ConvergenceTimeoutError(ImgixAutomationError):
    """Raised when a source does not reach a terminal deployment status in time."""

    source_id: str
    last_status: Optional[str]
    timeout: float

    def __str__(self) -> str:
        return (
            f"Source '{self.source_id}' did not finish deploying within {self.timeout:g}s "
            f"(last status: {self.last_status or '<unknown>'})"
        )


@dataclass(slots=True, eq=False)
class UnexpectedDeploymentStatusError(ImgixAutomationError):
    """Raised when the API reports a deployment status the engine does not know."""

    source_id: str
    status: Optional[str]

    def __str__(self) -> str:
        return f"Source '{self.source_id}' reported unexpected deployment status '{self.status}'"
