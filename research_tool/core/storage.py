"""
File storage abstraction. S3 OR local filesystem. Controlled by FF_USE_S3 flag.
"""

import asyncio
import logging
import mimetypes
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from .config import Settings, get_settings
from .errors import MissingCredentialsError
from .flags import get_flags
from ..models.document import StorageRef

logger = logging.getLogger(__name__)


class StorageBackend(ABC):
    provider: str = ""

    @abstractmethod
    async def upload(self, file_bytes: bytes, filename: str, content_type: str = "") -> StorageRef:
        """Upload file. Returns a reference to the stored object."""
        ...

    @abstractmethod
    async def download(self, ref: StorageRef) -> bytes:
        """Read back a previously uploaded object."""
        ...


class S3Storage(StorageBackend):
    provider = "s3"

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings or get_settings()
        self._client = None

    def _get_client(self):
        settings = self._settings
        if not (settings.s3_bucket_name and settings.aws_access_key_id and settings.aws_secret_access_key):
            raise MissingCredentialsError("S3 credentials are missing in environment variables")

        if self._client is None:
            import boto3

            self._client = boto3.client(
                "s3",
                region_name=settings.aws_region,
                aws_access_key_id=settings.aws_access_key_id,
                aws_secret_access_key=settings.aws_secret_access_key,
            )
        return self._client

    async def upload(self, file_bytes: bytes, filename: str, content_type: str = "") -> StorageRef:
        settings = self._settings
        client = self._get_client()
        key = _build_key(settings.storage_folder, filename)

        await asyncio.to_thread(
            client.put_object,
            Bucket=settings.s3_bucket_name,
            Key=key,
            Body=file_bytes,
            ContentType=content_type or _guess_content_type(filename),
        )

        url = f"https://{settings.s3_bucket_name}.s3.{settings.aws_region}.amazonaws.com/{key}"
        logger.info("Uploaded to S3: %s", key)
        return StorageRef(provider=self.provider, url=url, key=key)

    async def download(self, ref: StorageRef) -> bytes:
        client = self._get_client()
        response = await asyncio.to_thread(
            client.get_object, Bucket=self._settings.s3_bucket_name, Key=ref.key
        )
        return await asyncio.to_thread(response["Body"].read)


class LocalStorage(StorageBackend):
    provider = "local"

    def __init__(self, base_path: str = "./local_storage", folder: str = ""):
        self.base_path = Path(base_path)
        self.folder = folder

    async def upload(self, file_bytes: bytes, filename: str, content_type: str = "") -> StorageRef:
        key = _build_key(self.folder, filename)
        file_path = self.base_path / key
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_bytes(file_bytes)

        logger.info("Saved locally: %s", file_path)
        return StorageRef(provider=self.provider, url=str(file_path), key=key)

    async def download(self, ref: StorageRef) -> bytes:
        return (self.base_path / ref.key).read_bytes()


def get_storage(settings: Optional[Settings] = None) -> StorageBackend:
    """Return the active storage backend based on feature flags."""
    settings = settings or get_settings()
    if get_flags().use_s3:
        return S3Storage(settings)
    return LocalStorage(settings.local_storage_path, settings.storage_folder)


def _build_key(folder: str, filename: str) -> str:
    ext = Path(filename).suffix.lower()
    unique = f"{uuid.uuid4().hex[:12]}{ext}"
    return f"{folder.strip('/')}/{unique}" if folder.strip("/") else unique


def _guess_content_type(filename: str) -> str:
    ct, _ = mimetypes.guess_type(filename)
    return ct or "application/octet-stream"
