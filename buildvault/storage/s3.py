"""S3-compatible object storage provider (AWS S3, MinIO, R2, ...).

Uses the same logical keys as the local provider under an optional
prefix. Tag creation relies on conditional writes (``IfNoneMatch="*"``),
so the bucket itself arbitrates racing pushes.

botocore's built-in retries are disabled; connect/read timeouts are
bounded and surface as :class:`StorageTransientError` so the retry policy
in :mod:`buildvault.storage.retry` stays the single place that decides
how often to try again.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from typing import Any, TypeVar
from urllib.parse import unquote

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionError as BotoConnectionError,
    HTTPClientError,
)
from pydantic import ValidationError

from buildvault.core.errors import (
    BundleNotFoundError,
    StorageFatalError,
    StorageTransientError,
    TagExistsError,
)
from buildvault.models.config import StorageConfig
from buildvault.models.tags import TagPointer
from buildvault.storage.base import StorageProvider, bundle_key, tag_key, tag_prefix

logger = logging.getLogger(__name__)

R = TypeVar("R")

_TRANSIENT_CODES = frozenset(
    {
        "InternalError",
        "ServiceUnavailable",
        "SlowDown",
        "Throttling",
        "ThrottlingException",
        "RequestTimeout",
        "RequestTimeoutException",
        "ConditionalRequestConflict",
    }
)
_NOT_FOUND_CODES = frozenset({"NoSuchKey", "NotFound", "404"})
_PRECONDITION_CODES = frozenset({"PreconditionFailed", "412"})


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


def _status_code(exc: ClientError) -> int:
    return int(exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode") or 0)


def is_not_found(exc: ClientError) -> bool:
    return _error_code(exc) in _NOT_FOUND_CODES or (
        _status_code(exc) == 404 and _error_code(exc) != "NoSuchBucket"
    )


def is_transient(exc: ClientError) -> bool:
    status = _status_code(exc)
    return _error_code(exc) in _TRANSIENT_CODES or status >= 500 or status == 429


def build_client(config: StorageConfig) -> Any:
    """Create a boto3 S3 client from explicit configuration only."""
    session_kwargs: dict[str, Any] = {"region_name": config.region}
    if config.credentials_source.startswith("profile:"):
        session_kwargs["profile_name"] = config.credentials_source.split(":", 1)[1]
    elif config.credentials_source == "static":
        session_kwargs["aws_access_key_id"] = config.access_key_id
        session_kwargs["aws_secret_access_key"] = config.secret_access_key

    session = boto3.Session(**session_kwargs)
    client_kwargs: dict[str, Any] = {
        "config": Config(
            connect_timeout=config.connect_timeout_seconds,
            read_timeout=config.read_timeout_seconds,
            retries={"max_attempts": 1, "mode": "standard"},
        )
    }
    if config.endpoint_url:
        client_kwargs["endpoint_url"] = config.endpoint_url
    return session.client("s3", **client_kwargs)


class S3StorageProvider(StorageProvider):
    """Store bundles and tag pointers in an S3-compatible bucket.

    Usage::

        provider = S3StorageProvider(
            StorageConfig(
                backend="s3",
                bucket="build-artifacts",
                endpoint_url="http://localhost:9000",  # for MinIO
            )
        )

    Parameters
    ----------
    config:
        Storage configuration; ``bucket`` is required.
    client:
        Optional pre-built S3 client (tests pass a stubbed one).
    """

    name = "s3"

    def __init__(self, config: StorageConfig, *, client: Any | None = None) -> None:
        if not config.bucket:
            raise StorageFatalError("S3StorageProvider requires a bucket")
        self._config = config
        self._bucket = config.bucket
        self._prefix = config.prefix
        if self._prefix and not self._prefix.endswith("/"):
            self._prefix += "/"
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = build_client(self._config)
        return self._client

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def _call(self, operation: str, func: Callable[[], R], **context: Any) -> R:
        """Run one S3 call and translate failures into the store's taxonomy."""
        try:
            return func()
        except ClientError as exc:
            code = _error_code(exc) or str(_status_code(exc))
            if is_transient(exc):
                raise StorageTransientError(
                    f"S3 {operation} failed transiently ({code})", **context
                ) from exc
            raise StorageFatalError(f"S3 {operation} failed ({code})", **context) from exc
        except (BotoConnectionError, HTTPClientError) as exc:
            raise StorageTransientError(
                f"S3 {operation} connection error: {exc}", **context
            ) from exc
        except BotoCoreError as exc:
            raise StorageFatalError(f"S3 {operation} failed: {exc}", **context) from exc

    # ------------------------------------------------------------------
    # Bundles
    # ------------------------------------------------------------------

    def put_bundle(self, fingerprint: str, payload: bytes) -> None:
        key = self._key(bundle_key(fingerprint))
        self._call(
            "put_bundle",
            lambda: self._get_client().put_object(
                Bucket=self._bucket,
                Key=key,
                Body=payload,
                ContentType="application/json",
            ),
            fingerprint=fingerprint,
        )
        logger.debug("Stored bundle %s at s3://%s/%s", fingerprint[:12], self._bucket, key)

    def get_bundle(self, fingerprint: str) -> bytes:
        key = self._key(bundle_key(fingerprint))

        def fetch() -> bytes:
            try:
                resp = self._get_client().get_object(Bucket=self._bucket, Key=key)
            except ClientError as exc:
                if is_not_found(exc):
                    raise BundleNotFoundError(
                        "Bundle not found", fingerprint=fingerprint
                    ) from exc
                raise
            return resp["Body"].read()

        return self._call("get_bundle", fetch, fingerprint=fingerprint)

    def has_bundle(self, fingerprint: str) -> bool:
        return self._exists(self._key(bundle_key(fingerprint)), fingerprint=fingerprint)

    def _exists(self, key: str, **context: Any) -> bool:
        def head() -> bool:
            try:
                self._get_client().head_object(Bucket=self._bucket, Key=key)
            except ClientError as exc:
                if is_not_found(exc):
                    return False
                raise
            return True

        return self._call("head_object", head, **context)

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def exists_tag(self, project: str, tag: str) -> bool:
        return self._exists(self._key(tag_key(project, tag)), project=project, tag=tag)

    def put_tag_pointer(self, pointer: TagPointer, *, force: bool = False) -> None:
        params: dict[str, Any] = {
            "Bucket": self._bucket,
            "Key": self._key(tag_key(pointer.project, pointer.tag)),
            "Body": pointer.model_dump_json(indent=2).encode("utf-8"),
            "ContentType": "application/json",
        }
        if not force:
            params["IfNoneMatch"] = "*"

        def put() -> None:
            try:
                self._get_client().put_object(**params)
            except ClientError as exc:
                if _error_code(exc) in _PRECONDITION_CODES or _status_code(exc) == 412:
                    raise TagExistsError(
                        "Tag already exists", project=pointer.project, tag=pointer.tag
                    ) from exc
                raise

        self._call("put_tag_pointer", put, project=pointer.project, tag=pointer.tag)

    def get_tag_pointer(self, project: str, tag: str) -> TagPointer | None:
        return self._read_pointer(self._key(tag_key(project, tag)), project=project, tag=tag)

    def _read_pointer(self, key: str, *, project: str, tag: str) -> TagPointer | None:
        def fetch() -> bytes | None:
            try:
                resp = self._get_client().get_object(Bucket=self._bucket, Key=key)
            except ClientError as exc:
                if is_not_found(exc):
                    return None
                raise
            return resp["Body"].read()

        raw = self._call("get_tag_pointer", fetch, project=project, tag=tag)
        if raw is None:
            return None
        try:
            return TagPointer.model_validate_json(raw)
        except ValidationError as exc:
            raise StorageFatalError(
                f"Corrupt tag pointer: {exc}", project=project, tag=tag
            ) from exc

    def iter_tag_pointers(self, project: str) -> Iterator[TagPointer]:
        prefix = self._key(tag_prefix(project))
        paginator = self._get_client().get_paginator("list_objects_v2")
        pages = iter(paginator.paginate(Bucket=self._bucket, Prefix=prefix))
        while True:
            page = self._call("list_tags", lambda: next(pages, None), project=project)
            if page is None:
                return
            for obj in page.get("Contents", []):
                key = obj["Key"]
                if not key.endswith(".json"):
                    continue
                tag = unquote(key[len(prefix) : -len(".json")])
                pointer = self._read_pointer(key, project=project, tag=tag)
                if pointer is not None:
                    yield pointer

    def describe(self) -> str:
        return f"s3://{self._bucket}/{self._prefix}"
