"""
Storage paths for generated documents.

Each student has one current object per document kind, addressed by a
path derived from the display name, so regeneration overwrites in place.
"""

import re

from portal.modules.students.models import DocumentKind

MAX_NAME_LENGTH = 150
FALLBACK_NAME = "SinNombre"

_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')

_PATH_TEMPLATES: dict[DocumentKind, str] = {
    DocumentKind.RECORD: "expedientes/Expediente Digital - {name}.pdf",
    DocumentKind.CARD: "carnets/Carnet Digital - {name}.pdf",
}


def sanitize_file_name(name: str | None) -> str:
    """
    Make a display name safe to use inside an object key.

    Collapses whitespace, replaces characters that break file systems or
    URLs with dashes, trims stray dashes and caps the length.
    """
    if not name:
        return FALLBACK_NAME

    cleaned = re.sub(r"\s+", " ", name.strip())
    cleaned = _UNSAFE_CHARS.sub("-", cleaned)
    cleaned = re.sub(r"-+", "-", cleaned)
    cleaned = cleaned.strip("-")

    if len(cleaned) > MAX_NAME_LENGTH:
        cleaned = cleaned[:MAX_NAME_LENGTH].strip()

    return cleaned or FALLBACK_NAME


def document_path(kind: DocumentKind, full_name: str | None) -> str:
    """Object key for a student's document of the given kind."""
    return _PATH_TEMPLATES[kind].format(name=sanitize_file_name(full_name))
