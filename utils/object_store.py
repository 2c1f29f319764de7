import uuid
import mimetypes
import logging
from pathlib import Path
from typing import Optional

from config.settings import settings
from core.exceptions import UploadError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp"}

def build_storage_key(user_id, filename: Optional[str], content_type: Optional[str] = None) -> str:
    """
    Derive a collision-resistant key under the user's namespace:
    ``<user_id>/<random hex>.<ext>``. The extension comes from the original
    filename, falling back to the content type.
    """
    ext = ""
    if filename and "." in filename:
        ext = filename.rsplit(".", 1)[1].lower()
    if not ext.isalnum() and content_type:
        guessed = mimetypes.guess_extension(content_type.split(";")[0].strip()) or ""
        ext = guessed.lstrip(".")
    if not ext.isalnum():
        ext = ""

    token = uuid.uuid4().hex
    name = f"{token}.{ext}" if ext else token
    return f"{user_id}/{name}"

class LocalObjectStore:
    """Filesystem-backed bucket whose files are served under ``/storage``"""

    def __init__(self, base_dir: Path, public_base_url: str, bucket: str):
        self.base_dir = Path(base_dir)
        self.public_base_url = public_base_url.rstrip("/")
        self.bucket = bucket
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        if not key or key.startswith("/") or ".." in key.split("/"):
            raise UploadError(f"Invalid storage key: {key!r}")
        return self.base_dir / key

    def upload(self, key: str, data: bytes) -> str:
        """Write the object and return its key"""
        path = self._path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "wb") as f:
                f.write(data)
        except OSError as e:
            logger.error(f"Failed to store object {key}: {e}")
            raise UploadError(f"Failed to store file: {e}")

        logger.info(f"Stored object {key} ({len(data)} bytes)")
        return key

    def exists(self, key: str) -> bool:
        return self._path_for(key).is_file()

    def get_public_url(self, key: str) -> str:
        """Public URL of a stored object; stable once uploaded"""
        return f"{self.public_base_url}/storage/{self.bucket}/{key}"

# Global instance
object_store = LocalObjectStore(
    base_dir=settings.bucket_directory,
    public_base_url=settings.PUBLIC_BASE_URL,
    bucket=settings.STORAGE_BUCKET
)

def get_object_store() -> LocalObjectStore:
    return object_store

def is_image_upload(filename: Optional[str], content_type: Optional[str]) -> bool:
    """Accept JPEG, PNG or WebP by declared type, or by extension when untyped"""
    if content_type and content_type != "application/octet-stream":
        return content_type.split(";")[0].strip().lower() in ALLOWED_IMAGE_TYPES
    guessed, _ = mimetypes.guess_type(filename or "")
    return guessed in ALLOWED_IMAGE_TYPES
