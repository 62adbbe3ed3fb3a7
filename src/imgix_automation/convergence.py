"""Waiting for imgix deployments to settle and absorbing transient API errors."""
from __future__ import annotations

import logging
import time
from typing import Callable, Optional, TypeVar

from tenacity import Retrying, before_sleep_log, retry_if_exception, stop_after_attempt, stop_after_delay, wait_fixed

from .errors import ApiError, ConvergenceTimeoutError, UnexpectedDeploymentStatusError
from .models import Source

logger = logging.getLogger(__name__)

T = TypeVar("T")

PENDING_STATUSES = frozenset({"deploying"})
TERMINAL_STATUSES = frozenset({"deployed", "disabled", "deleted"})

# Title reported while a freshly created origin access key is not yet visible to imgix.
INVALID_ACCESS_KEY_TITLE = "aws_access_key"

DEFAULT_INITIAL_DELAY = 5.0
DEFAULT_POLL_INTERVAL = 10.0
DEFAULT_DEPLOY_TIMEOUT = 30 * 60.0
DEFAULT_RETRY_DELAY = 3.0
DEFAULT_RETRY_TIMEOUT = 10.0


def is_transient_error(exc: BaseException) -> bool:
    return isinstance(exc, ApiError) and exc.has_title(INVALID_ACCESS_KEY_TITLE)


def wait_for_deployment(
    fetch: Callable[[], Source],
    *,
    source_id: str,
    timeout: float = DEFAULT_DEPLOY_TIMEOUT,
    initial_delay: float = DEFAULT_INITIAL_DELAY,
    interval: float = DEFAULT_POLL_INTERVAL,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> Source:
    """Poll ``fetch`` until the source reports a terminal deployment status.

    The first poll happens ``initial_delay`` seconds after the call, because
    imgix does not start deploying the instant a write returns. Every later
    poll is ``interval`` seconds apart. Errors raised by ``fetch`` propagate
    unchanged; there is no retry while polling.
    """
    deadline = clock() + timeout
    logger.debug("Waiting for source %s being deployed", source_id)
    sleep(initial_delay)
    polls = 0
    while True:
        source = fetch()
        polls += 1
        status = source.deployment_status
        if status in TERMINAL_STATUSES:
            logger.info("Source '%s' reached status '%s' after %d poll(s)", source_id, status, polls)
            return source
        if status not in PENDING_STATUSES:
            raise UnexpectedDeploymentStatusError(source_id=source_id, status=status)
        remaining = deadline - clock()
        if remaining <= 0:
            raise ConvergenceTimeoutError(source_id=source_id, last_status=status, timeout=timeout)
        logger.debug("Source '%s' is still '%s'; polling again in %.1fs", source_id, status, interval)
        sleep(min(interval, remaining))


def retry_transient(
    operation: Callable[[], T],
    *,
    delay: float = DEFAULT_RETRY_DELAY,
    timeout: float = DEFAULT_RETRY_TIMEOUT,
    sleep: Callable[[float], None] = time.sleep,
    description: Optional[str] = None,
) -> T:
    """Run ``operation``, retrying only while imgix rejects a not-yet-visible access key.

    Any other failure is raised on the first attempt. When the budget runs out
    the last transient ApiError is raised, not a generic retry error.
    """
    max_attempts = int(timeout // delay) + 1
    retryer = Retrying(
        retry=retry_if_exception(is_transient_error),
        wait=wait_fixed(delay),
        stop=stop_after_delay(timeout) | stop_after_attempt(max_attempts),
        sleep=sleep,
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    if description:
        logger.debug("Running '%s' with up to %d attempt(s)", description, max_attempts)
    return retryer(operation)
