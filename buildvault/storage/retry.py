"""Retry policy for transient storage failures, built on tenacity.

Only :class:`StorageTransientError` is retried. Fatal errors and
``TagExistsError`` pass straight through on the first attempt. When the
attempts run out, the last transient error is re-raised with its
``attempts`` attribute set so callers can report how hard we tried.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from typing import Any, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from buildvault.core.errors import StorageTransientError
from buildvault.models.config import RetryConfig
from buildvault.models.tags import TagPointer
from buildvault.storage.base import StorageProvider

logger = logging.getLogger(__name__)

R = TypeVar("R")


def _log_retry(operation: str, config: RetryConfig) -> Callable[[RetryCallState], None]:
    def before_sleep(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        logger.warning(
            "%s failed on attempt %d/%d (%s); retrying in %.2fs",
            operation,
            state.attempt_number,
            config.max_attempts,
            exc,
            state.next_action.sleep if state.next_action else 0.0,
        )

    return before_sleep


def call_with_retry(
    config: RetryConfig,
    operation: str,
    func: Callable[..., R],
    *args: Any,
    **kwargs: Any,
) -> R:
    """Call *func* and retry it on ``StorageTransientError`` per *config*."""
    retryer = Retrying(
        retry=retry_if_exception_type(StorageTransientError),
        stop=stop_after_attempt(config.max_attempts),
        wait=wait_exponential_jitter(
            initial=config.initial_wait_seconds,
            max=config.max_wait_seconds,
            jitter=config.jitter_seconds,
        ),
        before_sleep=_log_retry(operation, config),
        reraise=True,
    )
    try:
        return retryer(func, *args, **kwargs)
    except StorageTransientError as exc:
        exc.attempts = retryer.statistics.get("attempt_number", config.max_attempts)
        logger.error("%s gave up after %d attempt(s): %s", operation, exc.attempts, exc)
        raise


class RetryingStorageProvider(StorageProvider):
    """Wraps another provider and retries each single-object call.

    Listing is passed through unretried: a half-consumed iterator cannot
    be replayed transparently, so a transient failure there surfaces to
    the caller, who can restart the listing.
    """

    def __init__(self, inner: StorageProvider, config: RetryConfig | None = None) -> None:
        self._inner = inner
        self._config = config or RetryConfig()
        self.name = inner.name

    @property
    def inner(self) -> StorageProvider:
        return self._inner

    def put_bundle(self, fingerprint: str, payload: bytes) -> None:
        call_with_retry(
            self._config, "put_bundle", self._inner.put_bundle, fingerprint, payload
        )

    def get_bundle(self, fingerprint: str) -> bytes:
        return call_with_retry(
            self._config, "get_bundle", self._inner.get_bundle, fingerprint
        )

    def has_bundle(self, fingerprint: str) -> bool:
        return call_with_retry(
            self._config, "has_bundle", self._inner.has_bundle, fingerprint
        )

    def exists_tag(self, project: str, tag: str) -> bool:
        return call_with_retry(
            self._config, "exists_tag", self._inner.exists_tag, project, tag
        )

    def put_tag_pointer(self, pointer: TagPointer, *, force: bool = False) -> None:
        call_with_retry(
            self._config,
            "put_tag_pointer",
            self._inner.put_tag_pointer,
            pointer,
            force=force,
        )

    def get_tag_pointer(self, project: str, tag: str) -> TagPointer | None:
        return call_with_retry(
            self._config, "get_tag_pointer", self._inner.get_tag_pointer, project, tag
        )

    def iter_tag_pointers(self, project: str) -> Iterator[TagPointer]:
        return self._inner.iter_tag_pointers(project)

    def describe(self) -> str:
        return self._inner.describe()
