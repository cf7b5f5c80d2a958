"""Photo files stored beside the JSON document.

Files get random names so they never need locking and can be cached forever
by clients. Removal is best-effort: a leaked file is logged, never raised.
"""
import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from uuid import uuid4

from fastapi import Request

from weighin.exceptions import EntryValidationError

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads/"

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass
class PhotoUpload:
    filename: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


def content_type_for(name: str) -> str:
    return CONTENT_TYPES.get(PurePosixPath(name).suffix.lower(), DEFAULT_CONTENT_TYPE)


class PhotoStorage:
    def __init__(self, root: Path | str, max_bytes: int):
        self.root = Path(root)
        self.max_bytes = max_bytes

    def check(self, upload: PhotoUpload | None, label: str = "Photo") -> None:
        if upload is not None and upload.size > self.max_bytes:
            limit_mb = self.max_bytes / (1024 * 1024)
            raise EntryValidationError(f"{label} must be smaller than {limit_mb:g} MB")

    async def save(self, upload: PhotoUpload) -> str:
        """Write the upload under a fresh name and return its ``/uploads/...`` reference."""
        extension = PurePosixPath(upload.filename).suffix.lower().lstrip(".") or "jpg"
        if not extension.isalnum():
            extension = "jpg"
        name = f"{uuid4().hex}.{extension}"
        await asyncio.to_thread(self._write, self.root / name, upload.content)
        logger.debug("Stored photo %s (%d bytes)", name, upload.size)
        return f"{URL_PREFIX}{name}"

    def resolve(self, reference: str) -> Path | None:
        """Map a reference or relative path to a file inside the root, or None."""
        relative = reference[len(URL_PREFIX):] if reference.startswith(URL_PREFIX) else reference
        relative = relative.lstrip("/")
        if not relative:
            return None
        root = self.root.resolve()
        candidate = (root / relative).resolve()
        if not candidate.is_relative_to(root) or candidate == root:
            return None
        return candidate

    async def discard(self, reference: str | None) -> None:
        """Remove a stored photo; failures are logged and ignored."""
        if not reference:
            return
        path = self.resolve(reference)
        if path is None:
            logger.warning("Refusing to remove photo outside uploads: %s", reference)
            return
        try:
            await asyncio.to_thread(path.unlink, True)
        except OSError as exc:
            logger.warning("Could not remove photo %s: %s", path, exc)

    def _write(self, path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)


def get_photos(request: Request) -> PhotoStorage:
    """Dependency for the photo storage owned by the running app."""
    return request.app.state.photos
