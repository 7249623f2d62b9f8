"""Google Cloud Storage bucket holding uploaded resume files.

Only provisioning and listing live here; the listing feeds the admin storage
summary. The client library is synchronous, so calls run in worker threads.
"""

import asyncio
import logging
from collections import Counter

from google.api_core.exceptions import Conflict, GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud import storage

from talentpulse.core.config import Settings
from talentpulse.models.schemas import RecentFile, StorageStats, StoredFile

logger = logging.getLogger(__name__)

RECENT_FILES_LIMIT = 10


class StorageError(RuntimeError):
    """Bucket provisioning or listing failure."""


class ObjectStore:
    def __init__(self, settings: Settings, client: storage.Client | None = None):
        self.bucket_name = settings.storage_bucket
        self._project = settings.gcp_project or None
        self._location = settings.provisioning_location
        self._storage_class = settings.storage_class
        self._client = client

    @property
    def client(self) -> storage.Client:
        if self._client is None:
            self._client = storage.Client(project=self._project)
        return self._client

    def _provision(self) -> None:
        client = self.client
        if client.lookup_bucket(self.bucket_name) is not None:
            return
        bucket = client.bucket(self.bucket_name)
        bucket.storage_class = self._storage_class
        bucket.iam_configuration.uniform_bucket_level_access_enabled = True
        try:
            client.create_bucket(bucket, location=self._location)
        except Conflict:
            logger.info("Storage bucket %s was created concurrently", self.bucket_name)
            return
        logger.info("Created storage bucket: %s", self.bucket_name)

    async def ensure_ready(self) -> str:
        """Create the bucket if it doesn't exist. Returns the bucket name."""
        try:
            await asyncio.to_thread(self._provision)
        except (GoogleAPIError, GoogleAuthError, OSError) as exc:
            raise StorageError(f"Failed to provision bucket {self.bucket_name}: {exc}") from exc
        return self.bucket_name

    def _scan(self, prefix: str) -> list[StoredFile]:
        files = []
        for blob in self.client.list_blobs(self.bucket_name, prefix=prefix or None):
            files.append(StoredFile(
                name=blob.name,
                size=int(blob.size or 0),
                content_type=blob.content_type,
                time_created=blob.time_created,
                updated=blob.updated or blob.time_created,
            ))
        return files

    async def list_files(self, prefix: str = "") -> list[StoredFile]:
        await self.ensure_ready()
        try:
            return await asyncio.to_thread(self._scan, prefix)
        except (GoogleAPIError, GoogleAuthError, OSError) as exc:
            raise StorageError(f"Failed to list bucket {self.bucket_name}: {exc}") from exc


def compute_storage_stats(files: list[StoredFile]) -> StorageStats:
    """Reduce a bucket listing to the admin storage summary."""
    file_types = Counter(f.content_type or "unknown" for f in files)
    newest = sorted(files, key=lambda f: f.time_created, reverse=True)[:RECENT_FILES_LIMIT]
    return StorageStats(
        total_files=len(files),
        total_size=sum(f.size for f in files),
        file_types=dict(file_types),
        recent_files=[
            RecentFile(name=f.name, size=f.size, content_type=f.content_type, created=f.time_created)
            for f in newest
        ],
    )
