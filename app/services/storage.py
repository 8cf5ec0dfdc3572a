"""Object storage for raw journal audio.

Blobs live in a bucket directory on local disk. Paths are relative to the
bucket root and use forward slashes, e.g.
``journal-audio/42/2026-10-19T08-15-02-123Z-recording.webm``.
"""

import logging
import os
from collections.abc import Iterator
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath

from app.config import get_settings

logger = logging.getLogger("voice_journal")

AUDIO_PREFIX = "journal-audio"

_EXTENSIONS = {
    "audio/webm": ".webm",
    "audio/ogg": ".ogg",
    "audio/mpeg": ".mp3",
    "audio/mp4": ".m4a",
    "audio/x-m4a": ".m4a",
    "audio/wav": ".wav",
    "audio/x-wav": ".wav",
    "audio/flac": ".flac",
}


class StorageError(Exception):
    """Raised when a blob cannot be written, read or removed."""


def extension_for(content_type: str | None, filename: str | None = None) -> str:
    """Pick a file extension from the MIME type, falling back to the upload name."""
    if content_type:
        base = content_type.split(";", 1)[0].strip().lower()
        if base in _EXTENSIONS:
            return _EXTENSIONS[base]
    if filename:
        suffix = PurePosixPath(filename).suffix.lower()
        if suffix:
            return suffix
    return ".webm"


def build_audio_path(user_id: int, content_type: str | None, filename: str | None = None, now: datetime | None = None) -> str:
    """Storage key for a new recording, unique per user and instant."""
    now = now or datetime.now(timezone.utc)
    timestamp = now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    timestamp = timestamp.replace(":", "-").replace(".", "-")
    return f"{AUDIO_PREFIX}/{user_id}/{timestamp}-recording{extension_for(content_type, filename)}"


class ObjectStorage:
    """Write-once blob store rooted at ``STORAGE_DIR/STORAGE_BUCKET``."""

    def __init__(self, root: str | Path | None = None) -> None:
        if root is None:
            settings = get_settings()
            root = Path(settings.STORAGE_DIR) / settings.STORAGE_BUCKET
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        relative = PurePosixPath(path)
        if relative.is_absolute() or ".." in relative.parts:
            raise StorageError(f"Invalid storage path '{path}'")
        return self.root.joinpath(*relative.parts)

    def upload(self, path: str, data: bytes, content_type: str | None = None) -> str:
        """Store ``data`` under ``path``. Never overwrites; returns the stored path."""
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "xb") as f:
                f.write(data)
        except FileExistsError as e:
            raise StorageError(f"Object already exists: {path}") from e
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e

        logger.debug("Stored %d bytes at %s (%s)", len(data), path, content_type or "unknown type")
        return path

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def modified_at(self, path: str) -> datetime:
        """Last write time of a blob as naive UTC, comparable with row timestamps."""
        try:
            mtime = self._resolve(path).stat().st_mtime
        except OSError as e:
            raise StorageError(f"Object not found: {path}") from e
        return datetime.fromtimestamp(mtime, timezone.utc).replace(tzinfo=None)

    def local_path(self, path: str) -> Path:
        """Filesystem path of an existing blob, for streaming responses."""
        target = self._resolve(path)
        if not target.is_file():
            raise StorageError(f"Object not found: {path}")
        return target

    def delete(self, path: str) -> None:
        target = self._resolve(path)
        try:
            os.remove(target)
        except FileNotFoundError:
            return
        except OSError as e:
            raise StorageError(f"Failed to delete {path}: {e}") from e

    def list_paths(self, prefix: str = AUDIO_PREFIX) -> Iterator[str]:
        """Yield every stored path under ``prefix``."""
        base = self._resolve(prefix)
        if not base.exists():
            return
        for file_path in sorted(base.rglob("*")):
            if file_path.is_file():
                yield file_path.relative_to(self.root).as_posix()


_storage: ObjectStorage | None = None


def get_object_storage() -> ObjectStorage:
    """Get singleton object storage instance."""
    global _storage
    if _storage is None:
        _storage = ObjectStorage()
    return _storage
