from __future__ import annotations

from io import BytesIO
import mimetypes
from zipfile import ZipFile

from app.services.errors import ExtractionFailed, UnsupportedKind

RESUME_CONTENT_TYPE_KINDS = {
    "application/pdf": "pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/msword": "doc",
    "text/plain": "txt",
}

SUPPORTED_EXTENSIONS = {"pdf", "docx", "doc", "txt"}

PDF_MAGIC = b"%PDF-"
ZIP_MAGICS = (b"PK\x03\x04", b"PK\x05\x06", b"PK\x07\x08")


def _is_zip_payload(content: bytes) -> bool:
    return any(content.startswith(prefix) for prefix in ZIP_MAGICS)


def _zip_has_paths(content: bytes, prefixes: tuple[str, ...]) -> bool:
    try:
        with ZipFile(BytesIO(content)) as archive:
            names = archive.namelist()
        return any(any(name.startswith(prefix) for prefix in prefixes) for name in names)
    except Exception:
        return False


def _is_probably_text_payload(content: bytes) -> bool:
    if not content:
        return False
    sample = content[:4096]
    if b"\x00" in sample:
        return False
    decoded = sample.decode("utf-8", errors="ignore")
    if not decoded:
        return False
    printable = sum(1 for char in decoded if char in "\t\n\r" or char.isprintable())
    return (printable / len(decoded)) >= 0.75


def extension_from_filename(filename: str) -> str:
    if "." not in (filename or ""):
        return ""
    return filename.rsplit(".", 1)[-1].strip().lower()[:20]


def resolve_kind(filename: str, content_type: str | None = None) -> str:
    """Map an upload's MIME type (preferred) or filename extension onto a document kind."""
    mime = (content_type or "").split(";")[0].strip().lower()
    if mime in RESUME_CONTENT_TYPE_KINDS:
        return RESUME_CONTENT_TYPE_KINDS[mime]

    ext = extension_from_filename(filename)
    if not ext and mime:
        ext = (mimetypes.guess_extension(mime) or "").lstrip(".").lower()
    if ext in SUPPORTED_EXTENSIONS:
        return ext
    raise UnsupportedKind(
        f"Unsupported file type '{mime or ext or 'unknown'}'. Allowed: PDF, DOC, DOCX or plain text."
    )


def validate_upload_signature(*, kind: str, content: bytes) -> None:
    if kind == "pdf":
        if not content.startswith(PDF_MAGIC):
            raise ExtractionFailed("File signature does not match .pdf content.")
        return

    if kind == "docx":
        if not _is_zip_payload(content) or not _zip_has_paths(content, ("word/",)):
            raise ExtractionFailed("File signature does not match .docx content.")
        return

    if kind == "txt":
        if not _is_probably_text_payload(content):
            raise ExtractionFailed("File signature does not match plain text content.")
        return

    # Legacy .doc has no reliable signature we can parse; extraction decides.
