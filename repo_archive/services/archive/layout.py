"""Where things live in the archive repository.

Uploaded files:   diaries/<images|videos|audios|pdfs|attachments>/<unique name>
Archive documents: diaries/<YYYY>/<MM>/<DD>-<slug>.md
"""

import mimetypes
import re
import time
import unicodedata
import uuid
from datetime import datetime
from typing import Optional

from .models import MediaKind

ROOT_DIR = "diaries"
ARCHIVE_EXTENSION = ".md"

SUBDIRECTORIES = {
    MediaKind.IMAGE: "images",
    MediaKind.VIDEO: "videos",
    MediaKind.AUDIO: "audios",
    MediaKind.PDF: "pdfs",
    MediaKind.OTHER: "attachments",
}


def guess_mime_type(file_name: str) -> Optional[str]:
    """MIME type from the file extension, if recognizable."""
    mime_type, _ = mimetypes.guess_type(file_name)
    return mime_type


def kind_for_mime(mime_type: Optional[str]) -> MediaKind:
    """Classify a MIME type into a media kind."""
    mime_type = (mime_type or "").lower()
    if mime_type.startswith("image/"):
        return MediaKind.IMAGE
    if mime_type.startswith("video/"):
        return MediaKind.VIDEO
    if mime_type.startswith("audio/"):
        return MediaKind.AUDIO
    if mime_type == "application/pdf":
        return MediaKind.PDF
    return MediaKind.OTHER


def subdirectory_for_kind(kind: MediaKind) -> str:
    return SUBDIRECTORIES[MediaKind(kind)]


def generate_unique_file_name(original_name: str) -> str:
    """Collision-resistant storage name for an uploaded file.

    Format: <epoch millis>_<6-char token>_<sanitized base>[.<ext>]
    """
    timestamp = int(time.time() * 1000)
    token = uuid.uuid4().hex[:6]

    base, dot, extension = original_name.rpartition(".")
    if not dot or not base:
        base, extension = original_name, ""

    # Keep ASCII letters/digits and CJK ideographs
    clean_base = re.sub(r"[^a-zA-Z0-9\u4e00-\u9fa5]", "_", base)
    name = f"{timestamp}_{token}_{clean_base}"
    return f"{name}.{extension}" if extension else name


def upload_path(original_name: str, kind: MediaKind) -> str:
    """Repository path for a newly uploaded file."""
    return f"{ROOT_DIR}/{subdirectory_for_kind(kind)}/{generate_unique_file_name(original_name)}"


def slugify(text: str) -> str:
    """Convert a title to a filesystem and URL safe slug."""
    slug = unicodedata.normalize("NFD", str(text))
    slug = "".join(ch for ch in slug if not unicodedata.combining(ch))
    slug = slug.lower().strip()
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"[^\w-]+", "", slug, flags=re.ASCII)
    slug = re.sub(r"--+", "-", slug)
    return slug or "untitled"


def archive_path(title: str, created_at: datetime) -> str:
    """Repository path of the archive document for ``title``.

    The date directories use the local calendar day of ``created_at``;
    naive datetimes are taken as local time already.
    """
    local = created_at.astimezone()
    return (
        f"{ROOT_DIR}/{local.year}/{local.month:02d}/"
        f"{local.day:02d}-{slugify(title)}{ARCHIVE_EXTENSION}"
    )


def is_archive_document(name: str) -> bool:
    return name.endswith(ARCHIVE_EXTENSION)
