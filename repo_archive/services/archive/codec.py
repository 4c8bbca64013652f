"""Markdown encoding of archive documents.

An archive document looks like::

    # Trip

    Fun day

    *Archived on: Fri, 05 Jan 2024 10:00:00 GMT*

    ---

    ## beach.jpg

    ![beach.jpg](https://raw.githubusercontent.com/o/r/main/diaries/images/...)

Only the header (title, description, archived-on line) is edited after
creation; the link section below the ``---`` rule is carried verbatim.
"""

import logging
import re
from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import Optional

from repo_archive.lib.errors import CorruptArchiveDocumentError
from repo_archive.services.github.models import RepoLocation

from .layout import ROOT_DIR
from .models import ArchiveHeader, FileLink, MediaKind

logger = logging.getLogger(__name__)

ARCHIVED_ON_MARKER = "*Archived on:"
SEPARATOR = "\n---\n"

_HEADING = re.compile(r"^#+\s*")
_LINK_LINE = re.compile(r"^(!?)\[(?P<text>[^\]]*)\]\((?P<url>[^)]*)\)\s*$")

LINK_LABELS = {
    MediaKind.VIDEO: "Watch video",
    MediaKind.AUDIO: "Listen to audio",
}
DEFAULT_LINK_LABEL = "View file on GitHub"


def format_archived_on(created_at: datetime) -> str:
    """RFC 1123 timestamp line, always in GMT."""
    if created_at.tzinfo is None:
        created_at = created_at.astimezone()
    stamp = format_datetime(created_at.astimezone(timezone.utc), usegmt=True)
    return f"{ARCHIVED_ON_MARKER} {stamp}*"


def parse_archived_on(line: str) -> Optional[datetime]:
    """Timestamp of an archived-on line, or None if it cannot be read."""
    stamp = line.strip()[len(ARCHIVED_ON_MARKER):].strip().rstrip("*").strip()
    try:
        return parsedate_to_datetime(stamp)
    except (TypeError, ValueError):
        return None


def render_link(link: FileLink, location: RepoLocation) -> str:
    """Content line for one file, depending on its kind."""
    if link.kind == MediaKind.IMAGE:
        return f"![{link.display_name}]({location.raw_url(link.stored_path)})"
    label = LINK_LABELS.get(MediaKind(link.kind), DEFAULT_LINK_LABEL)
    return f"[{label}: {link.display_name}]({location.blob_url(link.stored_path)})"


def _render_header(title: str, description: str, archived_on_line: Optional[str]) -> str:
    header = f"# {title}\n\n"
    if description:
        header += f"{description}\n\n"
    if archived_on_line:
        header += f"{archived_on_line}\n"
    return header


def encode(
    title: str,
    description: str,
    created_at: datetime,
    file_links: list[FileLink],
    *,
    location: RepoLocation,
) -> str:
    """Render an archive document.

    Args:
        title: Archive title (level-1 heading)
        description: Optional free text below the title
        created_at: Creation time, rendered in GMT
        file_links: Uploaded files, in display order
        location: Repository used to build raw/blob URLs

    Returns:
        Markdown text
    """
    text = _render_header(title, description, format_archived_on(created_at))
    text += "\n---\n\n"
    for link in file_links:
        text += f"## {link.display_name}\n\n"
        text += f"{render_link(link, location)}\n\n"
    return text


def decode(text: str) -> ArchiveHeader:
    """Parse the header of an archive document.

    A document without an archived-on line is read leniently: everything
    after the title becomes the description.
    """
    lines = text.split("\n")
    title = _HEADING.sub("", lines[0]).strip()

    start = 1
    if len(lines) > 1 and not lines[1].strip():
        start = 2

    description_lines = []
    created_at = None
    for line in lines[start:]:
        if line.startswith(ARCHIVED_ON_MARKER):
            created_at = parse_archived_on(line)
            break
        description_lines.append(line)

    return ArchiveHeader(
        title=title,
        description="\n".join(description_lines).strip(),
        created_at=created_at,
    )


def _split_sections(text: str) -> tuple[str, Optional[str]]:
    """Split a document into header and link section.

    The separator is searched after the archived-on line so that a ``---``
    inside the description is not mistaken for it.
    """
    search_from = 0
    marker = text.find("\n" + ARCHIVED_ON_MARKER)
    if marker != -1:
        search_from = marker + 1

    index = text.find(SEPARATOR, search_from)
    if index == -1:
        return text, None
    return text[:index], text[index + len(SEPARATOR):]


def reencode(
    old_text: str,
    new_title: str,
    new_description: str,
    *,
    strict: bool = False,
) -> str:
    """Replace the title and description of an existing document.

    The archived-on line and the link section are kept byte for byte.

    Args:
        old_text: Current document
        new_title: Replacement title
        new_description: Replacement description (may be empty)
        strict: Raise instead of dropping the link section when the
            separator is missing

    Raises:
        CorruptArchiveDocumentError: In strict mode, if no separator is found
    """
    header, files_section = _split_sections(old_text)
    if files_section is None:
        if strict:
            raise CorruptArchiveDocumentError(
                "Archive document has no '---' separator before its file links"
            )
        logger.warning("Archive document has no separator; file links dropped")
        files_section = ""

    archived_on_line = next(
        (line for line in header.split("\n") if line.startswith(ARCHIVED_ON_MARKER)),
        None,
    )
    new_header = _render_header(new_title, new_description, archived_on_line)
    return f"{new_header}{SEPARATOR}{files_section}"


def _kind_for_link(is_image: bool, text: str, stored_path: str) -> MediaKind:
    if is_image:
        return MediaKind.IMAGE
    for kind, label in LINK_LABELS.items():
        if text.startswith(f"{label}:"):
            return kind
    if "/pdfs/" in stored_path:
        return MediaKind.PDF
    return MediaKind.OTHER


def decode_file_links(text: str) -> list[FileLink]:
    """Best-effort parse of the link section back into FileLinks.

    Sections whose content line is not a recognizable link are skipped.
    """
    _, files_section = _split_sections(text)
    if not files_section:
        return []

    links = []
    display_name = None
    for line in files_section.split("\n"):
        if line.startswith("## "):
            display_name = line[3:].strip()
            continue
        match = _LINK_LINE.match(line.strip())
        if display_name is None or match is None:
            continue

        url = match.group("url")
        root = url.find(f"/{ROOT_DIR}/")
        if root == -1:
            continue
        stored_path = url[root + 1:]
        links.append(
            FileLink(
                display_name=display_name,
                stored_path=stored_path,
                kind=_kind_for_link(bool(match.group(1)), match.group("text"), stored_path),
            )
        )
        display_name = None

    return links
