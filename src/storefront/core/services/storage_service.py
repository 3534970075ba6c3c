"""Local filesystem object storage.

Objects live under ``storage.root/<bucket>/<folder>/<name>``. Public buckets
are served by the ``/media`` static mount; private buckets are only reachable
through admin routes.
"""

import time
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from loguru import logger

from src.storefront.core.errors import PermissionDenied, StorageError, ValidationFailed
from src.storefront.core.security import generate_secure_token
from src.storefront.runtime.config.config_data import StorageConfig
from src.storefront.runtime.context import get_config

PRODUCT_IMAGES = "product-images"
PAYMENT_PROOFS = "payment-proofs"


@dataclass(frozen=True)
class Bucket:
    name: str
    public: bool
    content_types: dict[str, str]  # content type -> file extension
    type_error: str


BUCKETS: dict[str, Bucket] = {
    PRODUCT_IMAGES: Bucket(
        name=PRODUCT_IMAGES,
        public=True,
        content_types={
            "image/jpeg": "jpg",
            "image/jpg": "jpg",
            "image/png": "png",
            "image/webp": "webp",
        },
        type_error="Invalid file type. Please upload a JPG, PNG, or WebP image.",
    ),
    PAYMENT_PROOFS: Bucket(
        name=PAYMENT_PROOFS,
        public=False,
        content_types={
            "image/jpeg": "jpg",
            "image/jpg": "jpg",
            "image/png": "png",
            "application/pdf": "pdf",
        },
        type_error="Invalid file type. Please upload a JPG, PNG, or PDF file.",
    ),
}


@dataclass(frozen=True)
class StoredObject:
    bucket: str
    key: str
    url: str
    size: int


class StorageService:
    def __init__(self, config: StorageConfig | None = None):
        self._config = config or get_config().storage
        self._root = Path(self._config.root).resolve()

    @property
    def root(self) -> Path:
        return self._root

    def ensure_buckets(self) -> None:
        for bucket in BUCKETS:
            (self._root / bucket).mkdir(parents=True, exist_ok=True)

    def _bucket(self, name: str) -> Bucket:
        try:
            return BUCKETS[name]
        except KeyError:
            raise StorageError(f"Unknown storage bucket: {name}") from None

    def _base_url(self, bucket: Bucket) -> str:
        base = self._config.public_base_url if bucket.public else self._config.private_base_url
        return base.rstrip("/")

    def url_for(self, bucket_name: str, key: str) -> str:
        bucket = self._bucket(bucket_name)
        return f"{self._base_url(bucket)}/{bucket.name}/{key}"

    def save(
        self,
        bucket_name: str,
        content: bytes,
        content_type: str | None,
        *,
        filename: str | None = None,
        folder: str | None = None,
        prefix: str | None = None,
    ) -> StoredObject:
        """Validate and store an upload under a freshly generated name."""
        bucket = self._bucket(bucket_name)
        content_type = (content_type or "").lower()
        if content_type not in bucket.content_types:
            raise ValidationFailed(bucket.type_error)
        if not content:
            raise ValidationFailed("Uploaded file is empty")
        if len(content) > self._config.max_upload_bytes:
            limit_mb = self._config.max_upload_bytes // (1024 * 1024)
            raise ValidationFailed(f"File size exceeds {limit_mb}MB limit.")

        extension = bucket.content_types[content_type]
        if filename and "." in filename:
            supplied = filename.rsplit(".", 1)[1].lower()
            if supplied in bucket.content_types.values() or supplied == "jpeg":
                extension = supplied

        name = f"{int(time.time() * 1000)}-{generate_secure_token(8).lower()}.{extension}"
        if prefix:
            name = f"{prefix}-{name}"
        key = f"{folder.strip('/')}/{name}" if folder else name

        path = self._path_for_key(bucket.name, key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as e:
            logger.bind(bucket=bucket.name, key=key).exception("Failed to store upload")
            raise StorageError("Failed to store uploaded file") from e

        logger.bind(bucket=bucket.name, key=key, size=len(content)).info("Stored upload")
        return StoredObject(
            bucket=bucket.name, key=key, url=self.url_for(bucket.name, key), size=len(content)
        )

    def _path_for_key(self, bucket_name: str, key: str) -> Path:
        relative = PurePosixPath(key)
        if relative.is_absolute() or ".." in relative.parts or not relative.parts:
            raise PermissionDenied("Invalid object key")
        return self._root / bucket_name / Path(*relative.parts)

    def locate(self, url: str | None) -> tuple[str, str] | None:
        """Map a URL issued by this store back to ``(bucket, key)``."""
        if not url:
            return None
        for bucket in BUCKETS.values():
            marker = f"{self._base_url(bucket)}/{bucket.name}/"
            if url.startswith(marker):
                key = url[len(marker):]
                return (bucket.name, key) if key else None
        return None

    def path_for(self, bucket_name: str, key: str) -> Path | None:
        """Return the file behind ``key`` if it exists."""
        if bucket_name not in BUCKETS:
            return None
        try:
            path = self._path_for_key(bucket_name, key)
        except PermissionDenied:
            return None
        return path if path.is_file() else None

    def delete(self, url: str | None) -> bool:
        """Delete the object behind a URL; False for foreign or missing objects."""
        located = self.locate(url)
        if located is None:
            logger.debug("Not deleting {}: not a stored object URL", url)
            return False
        path = self.path_for(*located)
        if path is None:
            return False
        try:
            path.unlink()
        except OSError:
            logger.bind(url=url).exception("Failed to delete stored object")
            return False
        logger.bind(url=url).info("Deleted stored object")
        return True

    def delete_many(self, urls: list[str]) -> int:
        return sum(1 for url in urls if self.delete(url))
