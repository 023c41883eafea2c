"""Object storage for generated assets (QR images) on Supabase or S3."""

from functools import lru_cache
from typing import Any, Optional

from libs.common.config import Settings, get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)


class StorageService:
    """Uploads bytes and returns a public URL.

    Clients are created on first upload so importing a service never needs
    storage credentials.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.backend = self.settings.STORAGE_BACKEND
        self.bucket = self.settings.QR_BUCKET
        self._client: Any = None

    def _get_client(self) -> Any:
        if self._client is not None:
            return self._client
        if self.backend == "supabase":
            from supabase import create_client

            self._client = create_client(
                self.settings.SUPABASE_URL, self.settings.SUPABASE_SERVICE_ROLE_KEY
            )
        elif self.backend == "s3":
            import boto3

            self._client = boto3.client(
                "s3",
                aws_access_key_id=self.settings.AWS_ACCESS_KEY_ID,
                aws_secret_access_key=self.settings.AWS_SECRET_ACCESS_KEY,
                region_name=self.settings.AWS_REGION,
            )
        else:
            raise ValueError(f"Unknown storage backend: {self.backend}")
        return self._client

    async def upload_bytes(self, path: str, data: bytes, content_type: str) -> str:
        """Store ``data`` at ``path`` (overwriting) and return its public URL."""
        if self.backend == "supabase":
            return self._upload_supabase(path, data, content_type)
        if self.backend == "s3":
            return self._upload_s3(path, data, content_type)
        raise ValueError(f"Unknown storage backend: {self.backend}")

    def _upload_supabase(self, path: str, data: bytes, content_type: str) -> str:
        bucket = self._get_client().storage.from_(self.bucket)
        bucket.upload(
            path=path,
            file=data,
            file_options={"content-type": content_type, "upsert": "true"},
        )
        return bucket.get_public_url(path)

    def _upload_s3(self, path: str, data: bytes, content_type: str) -> str:
        self._get_client().put_object(
            Bucket=self.bucket, Key=path, Body=data, ContentType=content_type
        )
        return f"https://{self.bucket}.s3.{self.settings.AWS_REGION}.amazonaws.com/{path}"


@lru_cache
def get_storage_service() -> StorageService:
    return StorageService()
