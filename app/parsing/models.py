from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

DocumentKind = Literal["pdf", "docx", "doc", "txt"]


class ContactInfo(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None


class ExtractedDocument(BaseModel):
    text: str
    is_valid: bool
    kind: DocumentKind
    contact: ContactInfo = Field(default_factory=ContactInfo)
