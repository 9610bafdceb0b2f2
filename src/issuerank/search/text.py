"""Query and content text helpers shared by the scorer and the index."""

from __future__ import annotations

import re

from issuerank.config.constants import MIN_CONTENT_WORD_LENGTH
from issuerank.search.models import Record

_WHITESPACE = re.compile(r"\s+")
_NON_WORD = re.compile(r"[^\w\s]")


def normalize_query(text: str) -> str:
    """Lowercase and trim a raw query."""
    return text.lower().strip()


def tokenize_query(text: str) -> list[str]:
    """Split a query into ordered, non-empty, lowercased terms."""
    return [term for term in _WHITESPACE.split(normalize_query(text)) if term]


def preprocess_text(text: str) -> str:
    """Lowercase, collapse whitespace and trim text before encoding."""
    return _WHITESPACE.sub(" ", text.lower()).strip()


def searchable_content(record: Record) -> str:
    """Title, body and label names joined into one lowercased string."""
    labels = " ".join(record.labels)
    return f"{record.title or ''} {record.body or ''} {labels}".lower()


def content_words(content: str) -> list[str]:
    """Words of ``content`` with punctuation stripped, shorter words dropped."""
    cleaned = _NON_WORD.sub(" ", content.lower())
    return [w for w in cleaned.split() if len(w) >= MIN_CONTENT_WORD_LENGTH]
