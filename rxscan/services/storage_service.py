"""
Storage Service - local blob storage for uploads and generated reports
"""
import logging
import os
import random
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from rxscan.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlobReference:
    """Where a stored file lives on disk and how it is served"""
    path: Path
    url: str


class StorageService:
    """Writes blobs under the upload directory and serves them by URL"""

    def __init__(self, root: Path = None, url_prefix: str = None):
        self.root = Path(root or settings.UPLOAD_DIR)
        self.url_prefix = (url_prefix or settings.UPLOAD_URL_PREFIX).rstrip('/')

    def _unique_name(self, suggested_name: str) -> str:
        ext = os.path.splitext(suggested_name or "")[1].lower()
        return f"{int(time.time() * 1000)}-{random.randint(0, 10 ** 9)}{ext}"

    def store_blob(self, content: bytes, suggested_name: str) -> BlobReference:
        """Persist bytes under a collision-resistant name derived from the suggestion"""
        self.root.mkdir(parents=True, exist_ok=True)
        filename = self._unique_name(suggested_name)
        path = self.root / filename
        path.write_bytes(content)
        logger.info(f"Stored {len(content)} bytes as {filename}")
        return BlobReference(path=path, url=f"{self.url_prefix}/{filename}")

    def resolve(self, url: str) -> Optional[Path]:
        """Map a served URL back to its file, if it belongs to this store"""
        if not url or not url.startswith(self.url_prefix + '/'):
            return None
        return self.root / os.path.basename(url)

    def delete_blob(self, url: str) -> bool:
        path = self.resolve(url)
        if path is None or not path.exists():
            return False
        path.unlink()
        logger.info(f"Deleted blob {path.name}")
        return True


storage_service = StorageService()
