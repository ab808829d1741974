"""
Object storage service backed by the local filesystem.
Buckets are top-level directories under the upload root; public URLs are served by the media route.
"""

from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional
from urllib.parse import urlparse
import aiofiles
import logging

from flowestate.config import get_settings
from flowestate.utils.exceptions import BadRequestError, NotFoundError

logger = logging.getLogger(__name__)

PROPERTY_PHOTOS_BUCKET = "property-photos"
WATERMARKS_BUCKET = "watermarks"
AGENT_CARDS_BUCKET = "agent-cards"
PUBLIC_ASSETS_BUCKET = "public-assets"

BUCKETS = (
    PROPERTY_PHOTOS_BUCKET,
    WATERMARKS_BUCKET,
    AGENT_CARDS_BUCKET,
    PUBLIC_ASSETS_BUCKET,
)

MEDIA_ROUTE = "/media"


class StorageService:
    """
    Bucketed file storage.
    Object keys are relative POSIX paths such as "<agent_id>/<timestamp>-0.jpg".
    """

    def __init__(self, base_dir: Optional[Path] = None, public_base_url: Optional[str] = None):
        settings = get_settings()
        self.base_dir = Path(base_dir or settings.upload_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.public_base_url = (public_base_url or settings.public_base_url).rstrip("/")

    def resolve(self, bucket: str, key: str) -> Path:
        """
        Map a bucket and object key onto a path under the storage root.

        Args:
            bucket: Bucket name
            key: Object key

        Returns:
            Absolute filesystem path

        Raises:
            BadRequestError: If the bucket is unknown or the key escapes the bucket
        """
        if bucket not in BUCKETS:
            raise BadRequestError(f"Unknown storage bucket: {bucket}")

        parts = PurePosixPath(key).parts
        if not parts or key.startswith("/") or ".." in parts:
            raise BadRequestError(f"Invalid object key: {key}")

        return self.base_dir.joinpath(bucket, *parts)

    def public_url(self, bucket: str, key: str) -> str:
        return f"{self.public_base_url}{MEDIA_ROUTE}/{bucket}/{key}"

    def key_from_url(self, url: str, bucket: str) -> Optional[str]:
        """
        Recover the object key from a public URL.

        Args:
            url: Public URL previously returned by upload
            bucket: Bucket the object is expected in

        Returns:
            Object key, or None when the URL does not point into the bucket
        """
        path = urlparse(url).path
        prefix = f"{MEDIA_ROUTE}/{bucket}/"
        if prefix not in path:
            return None
        return path.split(prefix, 1)[1] or None

    async def upload(self, bucket: str, key: str, content: bytes) -> str:
        """
        Store an object, replacing any existing object with the same key.

        Args:
            bucket: Bucket name
            key: Object key
            content: Object bytes

        Returns:
            Public URL of the stored object
        """
        path = self.resolve(bucket, key)
        path.parent.mkdir(parents=True, exist_ok=True)

        async with aiofiles.open(path, "wb") as f:
            await f.write(content)

        logger.debug(f"Stored {len(content)} bytes at {bucket}/{key}")
        return self.public_url(bucket, key)

    def open_path(self, bucket: str, key: str) -> Path:
        """
        Path of an existing object, for serving.

        Raises:
            NotFoundError: If the object does not exist
        """
        path = self.resolve(bucket, key)
        if not path.is_file():
            raise NotFoundError("File", f"{bucket}/{key}")
        return path

    async def read(self, bucket: str, key: str) -> bytes:
        path = self.open_path(bucket, key)
        async with aiofiles.open(path, "rb") as f:
            return await f.read()

    def delete(self, bucket: str, key: str) -> bool:
        """
        Delete one object.

        Returns:
            True if the object existed and was removed
        """
        path = self.resolve(bucket, key)
        if not path.exists():
            return False
        path.unlink()
        logger.debug(f"Deleted {bucket}/{key}")
        return True

    def delete_many(self, bucket: str, keys: Iterable[str]) -> List[str]:
        """
        Delete several objects, continuing past individual failures.

        Args:
            bucket: Bucket name
            keys: Object keys to delete

        Returns:
            Keys that were deleted
        """
        deleted = []
        for key in keys:
            try:
                if self.delete(bucket, key):
                    deleted.append(key)
                else:
                    logger.warning(f"Storage object {bucket}/{key} was already gone")
            except Exception as e:
                logger.error(f"Failed to delete {bucket}/{key}: {e}")
        return deleted

    def delete_urls(self, bucket: str, urls: Iterable[str]) -> List[str]:
        """
        Delete objects referenced by public URLs, skipping foreign URLs.

        Returns:
            Keys that were deleted
        """
        keys = []
        for url in urls:
            key = self.key_from_url(url, bucket)
            if key is None:
                logger.warning(f"Skipping delete of non-storage URL: {url}")
                continue
            keys.append(key)
        return self.delete_many(bucket, keys)
