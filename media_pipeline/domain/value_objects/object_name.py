"""Storage object name value object."""

from __future__ import annotations

import re
import time
from uuid import uuid4

from pydantic import BaseModel, Field

from media_pipeline.domain.models.media_asset import MediaKind

# Characters kept from client filenames; everything else becomes "-"
UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

MAX_FILENAME_LENGTH = 120

# Folder per kind. Only the public/ prefix is anonymously readable.
KIND_FOLDERS: dict[MediaKind, str] = {
    MediaKind.VIDEO: "videos",
    MediaKind.AUDIO: "audio",
    MediaKind.IMAGE: "public/images",
    MediaKind.DOCUMENT: "public/documents",
}

DIRECT_UPLOAD_FOLDER = "direct-uploads"

def safe_filename(filename: str) -> str:
    """Reduce a client filename to a storage-safe basename.

    Examples:
        >>> safe_filename("Sabbath Sermon (final).mp4")
        'Sabbath-Sermon-final-.mp4'
        >>> safe_filename("../../etc/passwd")
        'passwd'
    """
    basename = filename.replace("\\", "/").rsplit("/", 1)[-1]
    cleaned = UNSAFE_CHARS.sub("-", basename).strip(".-") or "upload"
    if len(cleaned) <= MAX_FILENAME_LENGTH:
        return cleaned
    stem, dot, ext = cleaned.rpartition(".")
    if dot and len(ext) < 10:
        return f"{stem[: MAX_FILENAME_LENGTH - len(ext) - 1]}.{ext}"
    return cleaned[:MAX_FILENAME_LENGTH]

class ObjectName(BaseModel):
    """A unique key for one upload attempt.

    The millisecond timestamp keeps keys sortable; the random suffix keeps
    two uploads of the same file in the same millisecond apart.
    """

    value: str = Field(min_length=1, max_length=1024)

    def __str__(self) -> str:
        return self.value

    @classmethod
    def generate(cls, kind: MediaKind, filename: str) -> ObjectName:
        """Build ``<folder>/<epoch ms>-<random>-<safe filename>``."""
        stamp = int(time.time() * 1000)
        suffix = uuid4().hex[:8]
        return cls(value=f"{KIND_FOLDERS[kind]}/{stamp}-{suffix}-{safe_filename(filename)}")

    @classmethod
    def for_direct_upload(cls, upload_id: str) -> ObjectName:
        """Synthetic key for an upload that never touches object storage."""
        return cls(value=f"{DIRECT_UPLOAD_FOLDER}/{upload_id}")
