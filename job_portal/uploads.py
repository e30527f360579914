"""
Avatar and resume uploads.

Files are written under a per-field subdirectory of the upload root and
served back from /uploads/<subdir>/<name>. The declared MIME type and the
file extension are checked against an allow-list before anything is
written; the size ceiling is enforced while the stream is copied, and a
file that crosses it is removed.
"""

import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Dict, FrozenSet, Optional

from werkzeug.utils import secure_filename

from .errors import UploadError

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 5 * 1024 * 1024
CHUNK_SIZE = 64 * 1024

AVATARS_DIR = "avatars"
RESUMES_DIR = "resumes"

IMAGE_TYPES = frozenset({"image/jpeg", "image/png", "image/gif"})

ALLOWED_TYPES: Dict[str, FrozenSet[str]] = {
    AVATARS_DIR: IMAGE_TYPES,
    RESUMES_DIR: frozenset({"image/jpeg", "image/png", "application/pdf"}),
}

EXTENSIONS_BY_TYPE: Dict[str, FrozenSet[str]] = {
    "image/jpeg": frozenset({".jpg", ".jpeg"}),
    "image/png": frozenset({".png"}),
    "image/gif": frozenset({".gif"}),
    "application/pdf": frozenset({".pdf"}),
}


@dataclass
class StoredFile:
    """
    A file accepted by the upload handler.

    Attributes:
        path: Location on disk
        url: Relative URL stored on the owning record
        size: Bytes written
    """
    path: Path
    url: str
    size: int


class UploadHandler:
    """Validates uploads and persists them to disk."""

    def __init__(self, upload_root: Path, max_bytes: int = MAX_UPLOAD_BYTES):
        self.upload_root = Path(upload_root)
        self.max_bytes = max_bytes
        self._lock = threading.Lock()
        self._last_stamp = 0

    @staticmethod
    def subdir_for(field_name: str) -> str:
        return RESUMES_DIR if field_name == "resume" else AVATARS_DIR

    def _next_stamp(self) -> int:
        """Millisecond timestamp, strictly increasing within this handler."""
        with self._lock:
            stamp = max(int(time.time() * 1000), self._last_stamp + 1)
            self._last_stamp = stamp
            return stamp

    def stored_name(self, filename: str) -> str:
        """Collision-resistant, path-safe name: <millis>-<sanitized original>."""
        extension = Path(filename or "").suffix.lower()
        safe_name = secure_filename(filename or "")
        if not safe_name.lower().endswith(extension) or safe_name.lower() == extension.lstrip("."):
            # Sanitizing stripped the stem or the extension (e.g. non-ASCII names)
            safe_name = f"upload{extension}"
        return f"{self._next_stamp()}-{safe_name}"

    def check_type(self, field_name: str, mimetype: Optional[str], filename: str) -> None:
        """
        Check the declared MIME type and extension against the allow-list.

        Raises:
            UploadError: If either is not permitted for this field
        """
        allowed = ALLOWED_TYPES[self.subdir_for(field_name)]
        mimetype = (mimetype or "").split(";")[0].strip().lower()
        if mimetype not in allowed:
            raise UploadError("Invalid file type", field_name=field_name)

        extension = Path(filename or "").suffix.lower()
        if extension not in EXTENSIONS_BY_TYPE[mimetype]:
            raise UploadError("Invalid file type", field_name=field_name)

    def accept(
        self,
        field_name: str,
        stream: BinaryIO,
        mimetype: Optional[str],
        filename: str,
    ) -> StoredFile:
        """
        Validate and store an uploaded file.

        Args:
            field_name: Form field the file came from ("avatar", "resume", ...)
            stream: Readable binary stream of the file body
            mimetype: Declared content type
            filename: Original client filename

        Returns:
            The stored file

        Raises:
            UploadError: Disallowed type or size over the ceiling. Nothing
                is left on disk in either case.
        """
        self.check_type(field_name, mimetype, filename)

        subdir = self.subdir_for(field_name)
        directory = self.upload_root / subdir
        directory.mkdir(parents=True, exist_ok=True)

        name = self.stored_name(filename)
        path = directory / name
        written = 0
        try:
            with open(path, "wb") as out:
                while True:
                    chunk = stream.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self.max_bytes:
                        raise UploadError("File too large", field_name=field_name)
                    out.write(chunk)
        except BaseException:
            path.unlink(missing_ok=True)
            raise

        logger.info(f"Stored {field_name} upload as {subdir}/{name} ({written} bytes)")
        return StoredFile(path=path, url=f"/uploads/{subdir}/{name}", size=written)

    def accept_file(self, field_name: str, file_storage) -> Optional[StoredFile]:
        """
        Accept a werkzeug FileStorage from request.files.

        Returns None when the form field was left empty.
        """
        if file_storage is None or not file_storage.filename:
            return None
        return self.accept(
            field_name,
            file_storage.stream,
            file_storage.mimetype,
            file_storage.filename,
        )
