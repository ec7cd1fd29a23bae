"""
Uploaded document model
"""
import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional

IMAGE_EXTENSIONS = {'.png', '.jpg', '.jpeg', '.tiff', '.tif', '.bmp', '.webp', '.gif'}


class MediaType(str, Enum):
    IMAGE = "image"
    PDF = "pdf"


class UnsupportedMediaTypeError(ValueError):
    """Upload is neither an image nor a PDF"""


@dataclass(frozen=True)
class RawDocument:
    """Uploaded bytes plus their declared media type"""
    content: bytes
    media_type: MediaType
    filename: str = "upload"

    @property
    def extension(self) -> str:
        ext = os.path.splitext(self.filename or "")[1].lower()
        if ext:
            return ext
        return ".pdf" if self.media_type == MediaType.PDF else ".png"

    @classmethod
    def from_upload(cls, content: bytes, content_type: Optional[str],
                    filename: Optional[str] = None) -> "RawDocument":
        """Classify an upload by MIME type, falling back to its extension"""
        filename = filename or "upload"
        content_type = (content_type or "").lower()

        if content_type == "application/pdf":
            return cls(content, MediaType.PDF, filename)
        if content_type.startswith("image/"):
            return cls(content, MediaType.IMAGE, filename)

        ext = os.path.splitext(filename)[1].lower()
        if ext == ".pdf":
            return cls(content, MediaType.PDF, filename)
        if ext in IMAGE_EXTENSIONS:
            return cls(content, MediaType.IMAGE, filename)

        raise UnsupportedMediaTypeError("Only image and PDF files allowed")
