from __future__ import annotations

import logging
import secrets
import time
from pathlib import Path

from resume_organizer.errors import StorageFailure
from resume_organizer.parsing.parse import extension_from_filename

logger = logging.getLogger(__name__)

STORED_NAME_PREFIX = "resume"


class LocalBlobStore:
    """Stores uploaded files under a single directory on local disk."""

    def __init__(self, root_dir: str | Path):
        self.root_dir = Path(root_dir)

    def _ensure_root(self) -> None:
        self.root_dir.mkdir(parents=True, exist_ok=True)

    def _unique_name(self, suggested_name: str) -> str:
        suffix = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9):09d}"
        return f"{STORED_NAME_PREFIX}-{suffix}{extension_from_filename(suggested_name)}"

    def path_for(self, stored_file_name: str) -> Path:
        name = (stored_file_name or "").strip()
        if not name or name in {".", ".."} or "/" in name or "\\" in name:
            raise ValueError(f"Invalid stored file name: '{stored_file_name}'")
        return self.root_dir / name

    def store(self, content: bytes, suggested_name: str) -> str:
        try:
            self._ensure_root()
            stored_file_name = self._unique_name(suggested_name)
            path = self.path_for(stored_file_name)
            # "xb" fails instead of overwriting on the unlikely name collision.
            with path.open("xb") as handle:
                handle.write(content)
        except OSError as exc:
            logger.error("blob_store_failed root=%s error=%s", self.root_dir, exc, exc_info=True)
            raise StorageFailure(f"Failed to store file in '{self.root_dir}'.") from exc
        logger.debug("blob_stored name=%s bytes=%s", stored_file_name, len(content))
        return stored_file_name

    def exists(self, stored_file_name: str) -> bool:
        try:
            return self.path_for(stored_file_name).is_file()
        except ValueError:
            return False

    def delete(self, stored_file_name: str) -> bool:
        """Remove a stored file. Returns False when it was already gone."""
        path = self.path_for(stored_file_name)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            logger.error("blob_delete_failed name=%s error=%s", stored_file_name, exc, exc_info=True)
            raise StorageFailure(f"Failed to delete stored file '{stored_file_name}'.") from exc
        return True
