import secrets
import time
from pathlib import Path
from typing import Optional

from config import get_settings

URL_PREFIX = "/uploads/"

ALLOWED_MIME_TYPES = frozenset(
    {
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/heic",
        "image/heif",
        "application/octet-stream",
    }
)
ALLOWED_EXTENSIONS = frozenset(
    {".jpg", ".jpeg", ".png", ".gif", ".webp", ".heic", ".heif"}
)


class UploadNotFound(ValueError):
    pass


class UploadStore:
    def __init__(self, root: Optional[Path] = None, max_bytes: Optional[int] = None) -> None:
        settings = get_settings()
        self.root = Path(root or settings.upload_dir)
        self.max_bytes = max_bytes if max_bytes is not None else settings.upload_max_bytes

    @staticmethod
    def is_allowed(filename: str, content_type: Optional[str]) -> bool:
        # either an accepted MIME type or an accepted extension is enough
        extension = Path(filename or "").suffix.lower()
        mime = (content_type or "").lower()
        return mime in ALLOWED_MIME_TYPES or extension in ALLOWED_EXTENSIONS

    @staticmethod
    def unique_name(filename: str) -> str:
        extension = Path(filename or "").suffix.lower()
        return f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{extension}"

    def save(self, filename: str, content_type: Optional[str], content: bytes) -> str:
        """Store an uploaded image and return the URL it is served under."""
        if not content:
            raise ValueError("No file uploaded")
        if not self.is_allowed(filename, content_type):
            raise ValueError("Invalid file type. Only images are allowed.")
        if len(content) > self.max_bytes:
            raise ValueError(
                f"File too large. Maximum size is {self.max_bytes // (1024 * 1024)} MB."
            )
        self.root.mkdir(parents=True, exist_ok=True)
        name = self.unique_name(filename)
        (self.root / name).write_bytes(content)
        return URL_PREFIX + name

    def path_for(self, name: str) -> Path:
        root = self.root.resolve()
        candidate = (root / name).resolve()
        if candidate.parent != root or not candidate.is_file():
            raise UploadNotFound("File not found")
        return candidate

    def path_for_url(self, image_url: str) -> Path:
        if not image_url.startswith(URL_PREFIX):
            raise UploadNotFound("Could not retrieve image for analysis")
        try:
            return self.path_for(image_url[len(URL_PREFIX):])
        except UploadNotFound as exc:
            raise UploadNotFound("Could not retrieve image for analysis") from exc
