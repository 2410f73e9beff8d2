"""Filename and extension helpers for MIME parts."""

from __future__ import annotations

import re
import time

from mms_extractor.core.parts import Part, sub_type

# MIME type → default file extension.
EXT: dict[str, str] = {
    "text/plain": "txt",
    "text/html": "html",
    "text/enriched": "txt",
    "text/x-vcard": "vcf",
    "text/x-vcalendar": "vcs",
    "application/smil": "smil",
    "application/pdf": "pdf",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/pjpeg": "jpg",
    "image/gif": "gif",
    "image/png": "png",
    "image/bmp": "bmp",
    "image/tiff": "tif",
    "image/vnd.wap.wbmp": "wbmp",
    "audio/amr": "amr",
    "audio/mpeg": "mp3",
    "audio/mp4": "m4a",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/midi": "mid",
    "audio/qcelp": "qcp",
    "video/3gpp": "3gp",
    "video/3gpp2": "3g2",
    "video/mp4": "mp4",
    "video/mpeg": "mpg",
    "video/quicktime": "mov",
    "video/x-msvideo": "avi",
}

# Extension → MIME type, for parts sent as application/octet-stream.
TYPE_FROM_EXT: dict[str, str] = {
    "txt": "text/plain",
    "htm": "text/html",
    "html": "text/html",
    "vcf": "text/x-vcard",
    "vcs": "text/x-vcalendar",
    "smil": "application/smil",
    "pdf": "application/pdf",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "png": "image/png",
    "bmp": "image/bmp",
    "tif": "image/tiff",
    "tiff": "image/tiff",
    "wbmp": "image/vnd.wap.wbmp",
    "amr": "audio/amr",
    "mp3": "audio/mpeg",
    "m4a": "audio/mp4",
    "wav": "audio/wav",
    "mid": "audio/midi",
    "qcp": "audio/qcelp",
    "3gp": "video/3gpp",
    "3g2": "video/3gpp2",
    "mp4": "video/mp4",
    "mpg": "video/mpeg",
    "mpeg": "video/mpeg",
    "mov": "video/quicktime",
    "avi": "video/x-msvideo",
}

_SHORT_EXTENSION = re.compile(r"\..{1,4}$")
_CONTENT_ID = re.compile(r"^<(.+)>$")


def default_ext(mime_type: str) -> str:
    """Default extension for a MIME type, falling back to its subtype."""
    return EXT.get(mime_type, sub_type(mime_type))


def type_from_filename(filename: str) -> str | None:
    if "." not in filename:
        return None
    return TYPE_FROM_EXT.get(filename.rsplit(".", 1)[1].lower())


def resolve_filename(part: Part) -> str:
    """Name for a part's content. Always returns a non-empty string.

    Tries, in order: the Content-Type ``name`` parameter, the
    Content-Disposition ``filename`` parameter, Content-Location, the
    Content-ID, and finally a timestamp. A name lacking a 1-4 character
    extension gets the default extension for the part's type.
    """
    mime_type = part.mime_type()
    name = (
        part.header_subvalue("content-type", "name")
        or part.header_subvalue("content-disposition", "filename")
        or (part.raw_header_value("content-location") or "").strip()
    )
    if not name:
        content_id = (part.raw_header_value("content-id") or "").strip()
        match = _CONTENT_ID.match(content_id)
        if match:
            name = match.group(1)
        elif content_id:
            name = content_id
        else:
            name = f"{time.time()}.{default_ext(mime_type)}"

    if _SHORT_EXTENSION.search(name):
        return name
    return f"{name}.{default_ext(mime_type)}"
