"""S3-compatible object storage backend.

Archives are stored under the key ``<owner_id>/<filename>`` inside a single
container (bucket) that is provisioned on first use.
"""

import asyncio
import shutil
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional, Union

from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..._utils import logger, format_size
from ...config import ObjectStorageConfig
from ..exceptions import (
    ArchiveIOError,
    BackendProvisioningError,
    BackendTransferError,
    BackupNotFoundError,
)
from ..models import BackupRecord, DeploymentMode, StoredArchive
from ..utils import ARCHIVE_EXTENSION, ARCHIVE_MIME_TYPE, validate_path_component

MISSING_CONTAINER_CODES = {"404", "NoSuchBucket", "NotFound"}
MISSING_OBJECT_CODES = {"404", "NoSuchKey", "NotFound"}
CONTAINER_EXISTS_CODES = {"BucketAlreadyOwnedByYou"}


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


class ObjectStorageBackend:
    """Per-owner key prefixes inside one remote container."""

    mode = DeploymentMode.CLOUD

    def __init__(
        self,
        session: Any,
        config: ObjectStorageConfig,
        staging_dir: Optional[Union[str, Path]] = None,
        retry_wait: float = 1.0,
    ):
        """Initialize object storage backend.

        Args:
            session: aioboto3.Session (or compatible) used to open S3 clients
            config: Remote storage configuration
            staging_dir: Directory for temporary restore downloads. Defaults to
                the system temp directory.
            retry_wait: Base delay in seconds between transfer retries
        """
        self.session = session
        self.config = config
        self.container = config.container
        self.staging_dir = Path(staging_dir) if staging_dir else None
        self.retry_wait = retry_wait
        self._policy_applied = False

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[Any]:
        async with self.session.client(
            "s3",
            endpoint_url=self.config.endpoint_url,
            region_name=self.config.region,
            config=BotoConfig(
                connect_timeout=self.config.request_timeout,
                read_timeout=self.config.request_timeout,
                retries={"max_attempts": 1},
            ),
        ) as client:
            yield client

    async def _bounded(self, operation: Awaitable[Any]) -> Any:
        return await asyncio.wait_for(operation, timeout=self.config.request_timeout)

    async def _with_retries(self, func: Callable[..., Awaitable[Any]], *args: Any) -> Any:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.config.max_attempts),
            wait=wait_exponential(multiplier=self.retry_wait, max=10),
            retry=retry_if_exception_type(BackendTransferError),
            reraise=True,
        ):
            with attempt:
                result = await func(*args)
        return result

    def _key(self, owner_id: str, name: str) -> str:
        owner_id = validate_path_component(owner_id, "owner id")
        return f"{owner_id}/{validate_path_component(name, 'backup id')}"

    # Provisioning

    async def ensure_container(self) -> bool:
        """Make sure the container exists, creating it when missing.

        Returns:
            True if the container was created by this call

        Raises:
            BackendProvisioningError: If the existence check fails for any reason
                other than not-found, or if creation or applying the
                container policy fails
        """
        try:
            return await self._bounded(self._ensure_container())
        except asyncio.TimeoutError as e:
            raise BackendProvisioningError(
                self.container, f"timed out after {self.config.request_timeout}s"
            ) from e
        except (ClientError, BotoCoreError) as e:
            raise BackendProvisioningError(self.container, str(e)) from e

    async def _ensure_container(self) -> bool:
        async with self._client() as s3:
            created = await self._create_if_missing(s3)

            # Re-applied until it succeeds once, so a failure right after creation
            # does not leave an existing container without its policy
            if created or not self._policy_applied:
                await self._apply_policy(s3)
                self._policy_applied = True

            if created:
                logger.info(f"Container '{self.container}' created successfully.")
            return created

    async def _create_if_missing(self, s3: Any) -> bool:
        logger.info(f"Checking container '{self.container}'...")
        try:
            await s3.head_bucket(Bucket=self.container)
            return False
        except ClientError as e:
            if _error_code(e) not in MISSING_CONTAINER_CODES:
                logger.error(f"Error checking container '{self.container}': {e}")
                raise

        logger.info(f"Container '{self.container}' not found. Attempting to create it...")
        create_params = {"Bucket": self.container}
        if self.config.region != "us-east-1":
            create_params["CreateBucketConfiguration"] = {"LocationConstraint": self.config.region}
        try:
            await s3.create_bucket(**create_params)
        except ClientError as e:
            if _error_code(e) in CONTAINER_EXISTS_CODES:
                return False
            logger.error(f"Failed to create container '{self.container}': {e}")
            raise
        return True

    async def _apply_policy(self, s3: Any) -> None:
        """Make the container non-public and record its upload limits as tags."""
        try:
            await s3.put_public_access_block(
                Bucket=self.container,
                PublicAccessBlockConfiguration={
                    "BlockPublicAcls": True,
                    "IgnorePublicAcls": True,
                    "BlockPublicPolicy": True,
                    "RestrictPublicBuckets": True,
                },
            )
            await s3.put_bucket_tagging(
                Bucket=self.container,
                Tagging={"TagSet": [
                    {"Key": "max-object-size", "Value": str(self.config.max_object_size)},
                    {"Key": "allowed-content-types", "Value": self.config.content_type},
                ]},
            )
        except ClientError as e:
            logger.error(f"Failed to apply policy to container '{self.container}': {e}")
            raise

    # Archive operations

    async def prepare(self) -> None:
        await self.ensure_container()

    def _check_policy(self, archive_name: str, size: int) -> str:
        content_type = ARCHIVE_MIME_TYPE if Path(archive_name).suffix == f".{ARCHIVE_EXTENSION}" else None
        if content_type != self.config.content_type:
            raise BackendTransferError(
                f"Content type {content_type} is not allowed in container '{self.container}'"
            )
        if size > self.config.max_object_size:
            raise BackendTransferError(
                f"Archive of {size} bytes exceeds the {self.config.max_object_size} byte limit "
                f"of container '{self.container}'"
            )
        return content_type

    async def put(self, owner_id: str, archive_path: Path) -> StoredArchive:
        """Upload a staged archive, overwriting any object at the same key."""
        archive_path = Path(archive_path)
        key = self._key(owner_id, archive_path.name)

        try:
            body = await asyncio.to_thread(archive_path.read_bytes)
        except OSError as e:
            raise ArchiveIOError(f"Failed to read staged archive {archive_path.name}: {e}") from e
        content_type = self._check_policy(archive_path.name, len(body))

        logger.info(f"Uploading {key} to container '{self.container}' ({format_size(len(body))})...")
        await self._with_retries(self._upload, key, body, content_type)
        logger.info(f"Upload successful: {key}")

        archive_path.unlink(missing_ok=True)
        return StoredArchive(stored_id=archive_path.name, size_bytes=len(body))

    async def _upload(self, key: str, body: bytes, content_type: str) -> None:
        async def _do():
            async with self._client() as s3:
                await s3.put_object(
                    Bucket=self.container,
                    Key=key,
                    Body=body,
                    ContentType=content_type,
                    ContentLength=len(body),
                )

        try:
            await self._bounded(_do())
        except asyncio.TimeoutError as e:
            raise BackendTransferError(f"Upload of {key} timed out") from e
        except (ClientError, BotoCoreError) as e:
            raise BackendTransferError(f"Upload of {key} failed: {e}") from e

    async def list(self, owner_id: str) -> List[BackupRecord]:
        """List the owner's archives, newest first, capped at the page size."""
        prefix = f"{validate_path_component(owner_id, 'owner id')}/"

        async def _do() -> List[BackupRecord]:
            records = []
            async with self._client() as s3:
                paginator = s3.get_paginator("list_objects_v2")
                async for page in paginator.paginate(Bucket=self.container, Prefix=prefix):
                    for item in page.get("Contents", []):
                        name = item["Key"][len(prefix):]
                        # Only direct children of the owner prefix
                        if not name or "/" in name:
                            continue
                        records.append(BackupRecord(
                            id=name,
                            name=name,
                            size_bytes=item.get("Size") or 0,
                            created_at=item["LastModified"],
                        ))
            return records

        try:
            records = await self._bounded(_do())
        except asyncio.TimeoutError as e:
            raise BackendTransferError(f"Listing {prefix} timed out") from e
        except (ClientError, BotoCoreError) as e:
            raise BackendTransferError(f"Listing {prefix} failed: {e}") from e

        records.sort(key=lambda r: (r.created_at, r.name), reverse=True)
        return records[:self.config.list_page_size]

    async def get(self, owner_id: str, stored_id: str) -> bytes:
        """Download an archive.

        Raises:
            BackupNotFoundError: If no object exists at the key
            BackendTransferError: If the download fails after retries
        """
        key = self._key(owner_id, stored_id)
        return await self._with_retries(self._download, owner_id, stored_id, key)

    async def _download(self, owner_id: str, stored_id: str, key: str) -> bytes:
        async def _do() -> bytes:
            async with self._client() as s3:
                response = await s3.get_object(Bucket=self.container, Key=key)
                async with response["Body"] as stream:
                    return await stream.read()

        try:
            return await self._bounded(_do())
        except asyncio.TimeoutError as e:
            raise BackendTransferError(f"Download of {key} timed out") from e
        except ClientError as e:
            if _error_code(e) in MISSING_OBJECT_CODES:
                raise BackupNotFoundError(owner_id, stored_id) from e
            raise BackendTransferError(f"Download of {key} failed: {e}") from e
        except BotoCoreError as e:
            raise BackendTransferError(f"Download of {key} failed: {e}") from e

    @asynccontextmanager
    async def restore_source(self, owner_id: str, stored_id: str) -> AsyncIterator[Path]:
        """Download into a private temp directory that is removed on exit."""
        data = await self.get(owner_id, stored_id)

        if self.staging_dir is not None:
            self.staging_dir.mkdir(parents=True, exist_ok=True)
        download_dir = Path(tempfile.mkdtemp(prefix="restore_", dir=self.staging_dir))
        try:
            archive_path = download_dir / stored_id
            await asyncio.to_thread(archive_path.write_bytes, data)
            logger.info(f"Downloaded {stored_id} for restore ({format_size(len(data))})")
            yield archive_path
        finally:
            shutil.rmtree(download_dir, ignore_errors=True)
