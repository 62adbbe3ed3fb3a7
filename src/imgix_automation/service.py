"""Service orchestration for imgix source lifecycles."""
from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Union

from .client import ImgixClient
from .config import ConvergenceConfig, ImgixConfig
from .convergence import retry_transient, wait_for_deployment
from .errors import InvalidSpecError
from .models import Diagnostic, DisableOutcome, Source
from .schema import SourceSpec

logger = logging.getLogger(__name__)

DISABLED_NOT_DELETED = "resource disabled, not deleted"

SourceInput = Union[SourceSpec, Source]


class SourceService:
    """Turns imgix's asynchronous deployments into synchronous source operations."""

    def __init__(
        self,
        client: ImgixClient,
        settings: Optional[ConvergenceConfig] = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._settings = settings or ConvergenceConfig()
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_config(cls, config: ImgixConfig) -> "SourceService":
        return cls(ImgixClient.from_config(config), config.convergence)

    def create_source(self, request: SourceInput) -> Source:
        source = self._as_source(request)
        created = self._with_transient_retry(lambda: self._client.create_source(source), "create source")
        resolved = self._converge(created.id, self._settings.create_timeout_seconds)
        return resolved.carry_write_only_fields(source)

    def read_source(self, source_id: str, wait_for_deployed: bool = False) -> Source:
        if wait_for_deployed:
            return self._converge(source_id, self._settings.read_timeout_seconds)
        return self._client.get_source_by_id(source_id)

    def lookup_source(self, source_id: str) -> Source:
        return self.read_source(source_id)

    def update_source(self, source_id: str, request: SourceInput) -> Source:
        source = self._as_source(request, source_id)
        updated = self._with_transient_retry(lambda: self._client.update_source(source), "update source")
        resolved = self._converge(source_id, self._settings.update_timeout_seconds)
        return resolved.carry_write_only_fields(updated)

    def disable_source(self, source: Source) -> DisableOutcome:
        """Disable ``source``; imgix has no way to delete one."""
        self._client.disable_source(source)
        logger.warning("Source '%s' was disabled; imgix does not support deleting sources", source.id)
        warning = Diagnostic(
            severity="warning",
            summary=DISABLED_NOT_DELETED,
            detail=(
                f"Source '{source.id}' still exists in imgix with enabled=false. "
                "Set enabled=true on the source to serve traffic from it again."
            ),
        )
        return DisableOutcome(source=source, diagnostics=[warning])

    def _converge(self, source_id: Optional[str], timeout: float) -> Source:
        if not source_id:
            raise InvalidSpecError("Cannot wait for a source that has no id")
        return wait_for_deployment(
            lambda: self._client.get_source_by_id(source_id),
            source_id=source_id,
            timeout=timeout,
            initial_delay=self._settings.initial_delay_seconds,
            interval=self._settings.poll_interval_seconds,
            sleep=self._sleep,
            clock=self._clock,
        )

    def _with_transient_retry(self, operation, description: str):
        return retry_transient(
            operation,
            delay=self._settings.transient_retry_delay_seconds,
            timeout=self._settings.transient_retry_timeout_seconds,
            sleep=self._sleep,
            description=description,
        )

    @staticmethod
    def _as_source(request: SourceInput, source_id: Optional[str] = None) -> Source:
        if isinstance(request, SourceSpec):
            return request.to_source(source_id)
        if source_id is not None:
            request.id = source_id
        return request
