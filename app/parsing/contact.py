from __future__ import annotations

import re

from .models import ContactInfo

_EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
_PHONE_RE = re.compile(r"(?:\+?1[-.\s]?)?\(?([0-9]{3})\)?[-.\s]?([0-9]{3})[-.\s]?([0-9]{4})")
_PHONE_LIKE_RE = re.compile(r"\d{3}[-.\s]?\d{3}[-.\s]?\d{4}")


def _guess_name(text: str) -> str | None:
    lines = [line.strip() for line in (text or "").splitlines() if line.strip()]
    # Names usually sit on one of the first few lines.
    for line in lines[:3]:
        if "@" in line or _PHONE_LIKE_RE.search(line) or len(line) >= 50:
            continue
        words = line.split()
        if 2 <= len(words) <= 4:
            return line
    return None


def extract_contact_info(text: str) -> ContactInfo:
    email_match = _EMAIL_RE.search(text or "")
    phone_match = _PHONE_RE.search(text or "")
    return ContactInfo(
        name=_guess_name(text),
        email=email_match.group(0) if email_match else None,
        phone=phone_match.group(0).strip() if phone_match else None,
    )
