from __future__ import annotations

from io import BytesIO
import logging
import re
import defusedxml.ElementTree as ET
from zipfile import BadZipFile, ZipFile

from app.services.errors import ExtractionFailed, UnsupportedKind

from .contact import extract_contact_info
from .models import ExtractedDocument
from .signatures import SUPPORTED_EXTENSIONS, validate_upload_signature

logger = logging.getLogger(__name__)

MIN_EXTRACTED_CHARS = 20
MIN_VALID_CHARS = 50
MIN_KEYWORD_HITS = 3

RESUME_KEYWORDS = (
    # section headers
    "experience",
    "education",
    "skills",
    "summary",
    "objective",
    "projects",
    "certifications",
    "achievements",
    "employment",
    "work history",
    "qualifications",
    "references",
    # role words
    "engineer",
    "developer",
    "manager",
    "analyst",
    "designer",
    "consultant",
    "intern",
    "specialist",
    "lead",
    "university",
    "degree",
    "bachelor",
    "master",
    # contact markers
    "email",
    "phone",
    "linkedin",
    "github",
    "@",
)

_HORIZONTAL_WS_RE = re.compile(r"[^\S\n]+")
_BLANK_LINES_RE = re.compile(r"\n\s*\n+")


def normalize_text(text: str) -> str:
    lines = [_HORIZONTAL_WS_RE.sub(" ", line).strip() for line in (text or "").replace("\r\n", "\n").split("\n")]
    collapsed = _BLANK_LINES_RE.sub("\n\n", "\n".join(lines))
    return collapsed.strip()


def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    if not keyword.replace(" ", "").isalpha():
        return re.compile(re.escape(keyword))
    # Whole words only, so "intern" does not match "international".
    return re.compile(r"\b" + re.escape(keyword).replace(r"\ ", r"\s+") + r"(?:s|es)?\b")


_KEYWORD_PATTERNS = tuple(_keyword_pattern(keyword) for keyword in RESUME_KEYWORDS)


def count_resume_keywords(text: str) -> int:
    lower = (text or "").lower()
    return sum(1 for pattern in _KEYWORD_PATTERNS if pattern.search(lower))


def validate_content(text: str) -> bool:
    """Cheap plausibility check that the text reads like a resume."""
    if len(text or "") < MIN_VALID_CHARS:
        return False
    return count_resume_keywords(text) >= MIN_KEYWORD_HITS


def _decode_text(content: bytes) -> str:
    # NUL bytes are rejected upstream, so only single-byte fallbacks apply.
    for encoding in ("utf-8", "cp1252"):
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    return content.decode("latin-1")


def _extract_pdf_text(content: bytes) -> str:
    from pypdf import PdfReader

    reader = PdfReader(BytesIO(content))
    page_chunks: list[str] = []
    for page in reader.pages:
        page_text = page.extract_text() or ""
        if page_text.strip():
            page_chunks.append(page_text)
    return "\n\n".join(page_chunks)


def _extract_docx_text_fallback(content: bytes) -> str:
    with ZipFile(BytesIO(content)) as archive:
        raw = archive.read("word/document.xml")
    root = ET.fromstring(raw)
    paragraphs: list[str] = []
    for paragraph in root.iter():
        if not paragraph.tag.endswith("}p"):
            continue
        texts = [node.text.strip() for node in paragraph.iter() if node.tag.endswith("}t") and node.text and node.text.strip()]
        if texts:
            paragraphs.append(" ".join(texts))
    return "\n".join(paragraphs)


def _extract_word_text(content: bytes) -> str:
    try:
        from docx import Document

        document = Document(BytesIO(content))
        return "\n".join(p.text for p in document.paragraphs if p.text and p.text.strip())
    except Exception:
        logger.debug("python_docx_failed falling back to raw xml", exc_info=True)
        return _extract_docx_text_fallback(content)


def extract_document(content: bytes, kind: str) -> ExtractedDocument:
    """Turn uploaded resume bytes into normalized plain text.

    Raises UnsupportedKind for kinds outside pdf/doc/docx/txt and
    ExtractionFailed when the file cannot be parsed or yields fewer than
    MIN_EXTRACTED_CHARS characters of text.
    """
    if kind not in SUPPORTED_EXTENSIONS:
        raise UnsupportedKind(f"Unsupported document kind '{kind}'.")

    validate_upload_signature(kind=kind, content=content)

    try:
        if kind == "txt":
            raw_text = _decode_text(content)
        elif kind == "pdf":
            raw_text = _extract_pdf_text(content)
        else:
            raw_text = _extract_word_text(content)
    except (BadZipFile, KeyError, ET.ParseError) as exc:
        raise ExtractionFailed("Unable to extract text from this Word document.") from exc
    except Exception as exc:
        raise ExtractionFailed(f"Unable to extract text from this {kind.upper()} file.") from exc

    text = normalize_text(raw_text)
    if len(text) < MIN_EXTRACTED_CHARS:
        raise ExtractionFailed(
            f"Extracted only {len(text)} characters; the document looks empty, scanned or corrupt."
        )

    is_valid = validate_content(text)
    logger.info("resume_extracted kind=%s chars=%s valid=%s", kind, len(text), is_valid)
    return ExtractedDocument(
        text=text,
        is_valid=is_valid,
        kind=kind,
        contact=extract_contact_info(text),
    )
