"""Remote object storage for voice note audio."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO
from urllib.parse import quote

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.config import Settings, get_settings

logger = logging.getLogger(__name__)

# Audio is stored under the same resource class the storage provider uses for video.
AUDIO_RESOURCE_KIND = "video"
DEFAULT_CONTENT_TYPE = "audio/wav"


class ObjectStoreError(Exception):
    """Raised when the object store cannot complete an operation."""


@dataclass(frozen=True)
class UploadOptions:
    target_id: str
    folder: str
    resource_kind: str = AUDIO_RESOURCE_KIND
    content_type: str = DEFAULT_CONTENT_TYPE


@dataclass(frozen=True)
class StoredObject:
    remote_url: str
    remote_object_id: str


class ObjectStore(ABC):
    """Upload/delete contract for the remote object store.

    Implementations bound every network call with their own timeout and raise
    ``ObjectStoreError`` on any failure.
    """

    @abstractmethod
    def upload(self, stream: BinaryIO, options: UploadOptions) -> StoredObject:
        """Store the stream under ``options.folder/options.target_id``."""

    @abstractmethod
    def delete(self, remote_object_id: str, resource_kind: str = AUDIO_RESOURCE_KIND) -> None:
        """Delete the object addressed by ``remote_object_id``."""


class S3ObjectStore(ObjectStore):
    """S3-compatible object store backed by boto3."""

    def __init__(self, settings: Settings, client=None) -> None:
        self.bucket = settings.STORAGE_BUCKET
        self.region = settings.STORAGE_REGION
        self.endpoint_url = settings.STORAGE_ENDPOINT_URL or None
        self.public_base_url = settings.STORAGE_PUBLIC_BASE_URL.rstrip("/")
        self._boto_config = Config(
            region_name=self.region,
            connect_timeout=settings.STORAGE_TIMEOUT_SECONDS,
            read_timeout=settings.STORAGE_TIMEOUT_SECONDS,
            retries={"max_attempts": settings.STORAGE_MAX_RETRIES, "mode": "standard"},
        )
        self._client = client

    @property
    def client(self):
        """Get or create the S3 client."""
        if self._client is None:
            session = boto3.session.Session(region_name=self.region)
            self._client = session.client("s3", endpoint_url=self.endpoint_url, config=self._boto_config)
        return self._client

    def _require_bucket(self) -> None:
        if not self.bucket:
            raise ObjectStoreError("Object storage is not configured (STORAGE_BUCKET is empty)")

    def public_url(self, key: str) -> str:
        quoted = quote(key)
        if self.public_base_url:
            return f"{self.public_base_url}/{quoted}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{quoted}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{quoted}"

    def upload(self, stream: BinaryIO, options: UploadOptions) -> StoredObject:
        self._require_bucket()
        key = f"{options.folder.strip('/')}/{options.target_id}" if options.folder else options.target_id
        try:
            self.client.upload_fileobj(
                stream,
                self.bucket,
                key,
                ExtraArgs={
                    "ContentType": options.content_type,
                    "Metadata": {"resource-kind": options.resource_kind},
                },
            )
        except (BotoCoreError, ClientError) as e:
            raise ObjectStoreError(str(e)) from e

        logger.info("Stored object s3://%s/%s", self.bucket, key)
        return StoredObject(remote_url=self.public_url(key), remote_object_id=key)

    def delete(self, remote_object_id: str, resource_kind: str = AUDIO_RESOURCE_KIND) -> None:
        self._require_bucket()
        try:
            self.client.delete_object(Bucket=self.bucket, Key=remote_object_id)
        except (BotoCoreError, ClientError) as e:
            raise ObjectStoreError(str(e)) from e
        logger.info("Deleted object s3://%s/%s (%s)", self.bucket, remote_object_id, resource_kind)


def create_object_store(settings: Settings | None = None) -> ObjectStore:
    """Build the configured object store."""
    return S3ObjectStore(settings or get_settings())
