"""Single-file and batch upload of issue photos with metadata tagging."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, TypeVar

from snapsend.errors import FetchError, PipelineError, UploadError
from snapsend.interfaces import ResourceFetcher, StorageBackend
from snapsend.logging_setup import set_ref_code
from snapsend.models.config import UploadConfig
from snapsend.models.enums import BucketFolder, FailureStage
from snapsend.models.upload import (
    BatchUploadResult,
    IssueMeta,
    UploadFailure,
    UploadRequest,
    UploadResult,
)
from snapsend.storage_paths import build_object_path, extension_for_content_type
from snapsend.uri_validation import partition_uris

logger = logging.getLogger(__name__)

TResult = TypeVar("TResult")


class IssueUploader:
    """Uploads the photos of a submission to object storage.

    Every stored object carries the submission's form fields as custom
    metadata. Storage and fetcher are injected; the uploader owns neither.
    """

    def __init__(
        self,
        storage: StorageBackend,
        fetcher: ResourceFetcher,
        config: UploadConfig | None = None,
    ) -> None:
        self._storage = storage
        self._fetcher = fetcher
        self._config = config or UploadConfig()

    async def upload_issue_file(
        self,
        folder: BucketFolder | str,
        ref_code: str,
        uri: str,
        meta: IssueMeta | Mapping[str, Any] | None = None,
        index: int = 0,
        total: int = 1,
    ) -> UploadResult:
        """Fetch one local resource and store it under its deterministic path.

        Raises:
            FetchError: The resource behind ``uri`` could not be read.
            UploadError: Storage rejected the write or no download URL was produced.
        """
        folder = BucketFolder(folder)
        meta = _coerce_meta(folder, meta)

        try:
            resource = await self._fetcher.fetch(uri)
        except Exception as exc:
            raise FetchError(ref_code, uri, cause=exc) from exc

        object_path: str | None = None
        try:
            object_path = build_object_path(
                folder,
                ref_code,
                machine=meta.machine_or_system,
                issue_type=meta.issue_type,
                extension=extension_for_content_type(resource.content_type),
                index=index,
                total=total,
            )
            path = object_path
            stored = await self._run_with_retries(
                ref_code=ref_code,
                op=lambda: self._storage.put_bytes(
                    path,
                    resource.data,
                    content_type=resource.content_type,
                    metadata=meta.to_custom_metadata(ref_code),
                ),
            )
            download_url = await self._storage.get_download_url(stored.path)
        except Exception as exc:
            raise UploadError(ref_code, object_path, cause=exc) from exc

        logger.info(
            "Uploaded file %d/%d: path=%s size=%d content_type=%s",
            index + 1,
            total,
            stored.path,
            resource.size,
            resource.content_type,
        )
        return UploadResult(
            path=stored.path,
            bucket=stored.bucket,
            download_url=download_url,
            index=index,
            content_type=resource.content_type,
        )

    async def upload_multiple_issue_files(
        self,
        request: UploadRequest | None = None,
        *,
        bucket_folder: BucketFolder | str | None = None,
        ref_code: str | None = None,
        image_uris: Sequence[object] | None = None,
        meta: IssueMeta | Mapping[str, Any] | None = None,
    ) -> BatchUploadResult:
        """Upload every valid URI of a submission concurrently.

        Invalid references and those past ``max_images`` are dropped before
        dispatch. Per-file failures are collected, never raised; successes
        come back in submission order.
        """
        if request is None:
            request = UploadRequest(
                bucket_folder=bucket_folder,
                ref_code=ref_code,
                image_uris=list(image_uris) if image_uris is not None else [],
                meta=_coerce_meta(BucketFolder(bucket_folder), meta),
            )
        set_ref_code(request.ref_code)

        valid, rejected = partition_uris(request.image_uris)
        limit = self._config.max_images
        dropped = rejected + valid[limit:]
        selected = valid[:limit]
        batch = BatchUploadResult(
            ref_code=request.ref_code,
            bucket_folder=request.bucket_folder,
            dropped_uris=dropped,
        )
        if rejected:
            logger.warning("Dropped %d invalid URI(s) from submission", len(rejected))
        if len(valid) > limit:
            logger.warning(
                "Submission has %d images, uploading the first %d", len(valid), limit
            )
        if not selected:
            logger.info("No valid URIs to upload")
            return batch

        semaphore = asyncio.Semaphore(self._config.max_concurrent_uploads)
        total = len(selected)

        async def upload_one(index: int, uri: str) -> UploadResult:
            async with semaphore:
                return await self.upload_issue_file(
                    request.bucket_folder,
                    request.ref_code,
                    uri,
                    request.meta,
                    index=index,
                    total=total,
                )

        outcomes = await asyncio.gather(
            *(upload_one(index, uri) for index, uri in enumerate(selected)),
            return_exceptions=True,
        )

        for index, (uri, outcome) in enumerate(zip(selected, outcomes, strict=True)):
            match outcome:
                case UploadResult() as result:
                    batch.results.append(result)
                case Exception() as err:
                    failure = _failure_from_error(index, uri, err)
                    batch.failures.append(failure)
                    logger.error(
                        "Upload failed for file %d/%d (%s): %s",
                        index + 1,
                        total,
                        failure.stage,
                        failure.message,
                        exc_info=err,
                    )
                case BaseException() as err:
                    raise err

        logger.info(
            "Batch upload finished: %d uploaded, %d failed, %d dropped",
            len(batch.results),
            len(batch.failures),
            len(batch.dropped_uris),
        )
        return batch

    async def upload(
        self,
        *,
        bucket_folder: BucketFolder | str,
        ref_code: str,
        image_uris: Sequence[object] | None,
        meta: IssueMeta | Mapping[str, Any] | None = None,
    ) -> list[UploadResult]:
        """Upload a submission and return only the successful uploads."""
        batch = await self.upload_multiple_issue_files(
            bucket_folder=bucket_folder,
            ref_code=ref_code,
            image_uris=image_uris,
            meta=meta,
        )
        return batch.results

    async def _run_with_retries(
        self, *, ref_code: str, op: Callable[[], Awaitable[TResult]]
    ) -> TResult:
        max_attempts = max(1, int(self._config.retry.max_attempts))
        backoff_s = max(0.0, float(self._config.retry.backoff_s))
        attempts = 1

        while True:
            try:
                return await op()
            except Exception as exc:
                if attempts >= max_attempts:
                    raise
                logger.warning(
                    "Storage write failed for %s (attempt %d/%d): %s",
                    ref_code,
                    attempts,
                    max_attempts,
                    exc,
                    exc_info=True,
                )
                delay = backoff_s * (2 ** (attempts - 1))
                if delay > 0:
                    await asyncio.sleep(delay)
                attempts += 1


def _coerce_meta(folder: BucketFolder, meta: IssueMeta | Mapping[str, Any] | None) -> IssueMeta:
    match meta:
        case IssueMeta():
            return meta.with_folder_defaults(folder)
        case None:
            return IssueMeta.for_folder(folder)
        case _:
            return IssueMeta.for_folder(folder, **dict(meta))


def _failure_from_error(index: int, uri: str, err: Exception) -> UploadFailure:
    match err:
        case FetchError():
            stage = FailureStage.FETCH
        case _:
            stage = FailureStage.UPLOAD
    cause = err.cause if isinstance(err, PipelineError) and err.cause is not None else err
    return UploadFailure(
        index=index,
        uri=uri,
        stage=stage,
        error_type=type(cause).__name__,
        message=str(cause),
    )
