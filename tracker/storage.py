import os
import shutil
import logging
from typing import BinaryIO, Optional

logger = logging.getLogger(__name__)

TEAM_LOGOS_BUCKET = 'team-logos'
SCREENSHOTS_BUCKET = 'match-screenshots'

BUCKETS = (TEAM_LOGOS_BUCKET, SCREENSHOTS_BUCKET)


class StorageError(Exception):
    def __init__(self, bucket: str, path: str, reason: str = None):
        self.bucket = bucket
        self.path = path
        self.reason = reason or f"Storage operation failed for {bucket}/{path}"
        super().__init__(self.reason)


class StorageManager:
    """
    Object storage for team logos and match screenshots.

    Two backends:
    - local: files under a root directory, served by the app at /storage/<bucket>/<path>
    - gcs: Google Cloud Storage, one bucket per logical bucket (optionally prefixed)
    """

    def __init__(
        self,
        backend: str = 'local',
        local_root: str = None,
        public_base_url: str = 'http://localhost:5000/storage',
        bucket_prefix: str = ''
    ):
        self.backend = backend
        self.local_root = local_root or os.path.join(os.getcwd(), 'uploads')
        self.public_base_url = public_base_url.rstrip('/')
        self.bucket_prefix = bucket_prefix
        self._client = None

        if self.is_local:
            logger.info(f"StorageManager using local directory {self.local_root}")

    @classmethod
    def from_config(cls, config) -> 'StorageManager':
        return cls(
            backend=config.get('STORAGE_BACKEND', 'local'),
            local_root=config.get('STORAGE_LOCAL_ROOT'),
            public_base_url=config.get('STORAGE_PUBLIC_URL', 'http://localhost:5000/storage'),
            bucket_prefix=config.get('GCS_BUCKET_PREFIX', '')
        )

    @property
    def is_local(self) -> bool:
        return self.backend == 'local'

    @property
    def client(self):
        """Lazy-load the Cloud Storage client."""
        if self._client is None:
            from google.cloud import storage
            self._client = storage.Client()
        return self._client

    def _check_bucket(self, bucket: str):
        if bucket not in BUCKETS:
            raise StorageError(bucket, '', f"Unknown bucket: {bucket}")

    def _gcs_bucket_name(self, bucket: str) -> str:
        return f"{self.bucket_prefix}{bucket}"

    def local_path(self, bucket: str, path: str) -> str:
        """Resolve a bucket path on disk, refusing paths that escape the bucket."""
        bucket_root = os.path.abspath(os.path.join(self.local_root, bucket))
        full_path = os.path.abspath(os.path.join(bucket_root, path))
        if not full_path.startswith(bucket_root + os.sep):
            raise StorageError(bucket, path, f"Invalid storage path: {path}")
        return full_path

    def public_url(self, bucket: str, path: str) -> str:
        if self.is_local:
            return f"{self.public_base_url}/{bucket}/{path}"
        return f"https://storage.googleapis.com/{self._gcs_bucket_name(bucket)}/{path}"

    def upload(self, bucket: str, path: str, stream: BinaryIO, content_type: Optional[str] = None) -> str:
        """Store a file and return its public URL."""
        self._check_bucket(bucket)

        try:
            if self.is_local:
                full_path = self.local_path(bucket, path)
                os.makedirs(os.path.dirname(full_path), exist_ok=True)
                with open(full_path, 'wb') as f:
                    shutil.copyfileobj(stream, f)
            else:
                blob = self.client.bucket(self._gcs_bucket_name(bucket)).blob(path)
                blob.upload_from_file(stream, content_type=content_type)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(bucket, path, f"Failed to upload {bucket}/{path}: {e}") from e

        logger.debug(f"Stored {bucket}/{path}")
        return self.public_url(bucket, path)

    def remove(self, bucket: str, path: str) -> bool:
        """Delete a stored file. Returns False if it did not exist."""
        self._check_bucket(bucket)

        try:
            if self.is_local:
                full_path = self.local_path(bucket, path)
                if not os.path.exists(full_path):
                    return False
                os.remove(full_path)
            else:
                blob = self.client.bucket(self._gcs_bucket_name(bucket)).blob(path)
                if not blob.exists():
                    return False
                blob.delete()
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(bucket, path, f"Failed to remove {bucket}/{path}: {e}") from e

        return True
