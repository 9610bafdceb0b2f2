"""Shared fixtures for search tests."""

from __future__ import annotations

import hashlib
from typing import Any

import numpy as np
import pytest

from issuerank.search.embedding import EmbeddingIndex, EncoderHandle
from issuerank.search.engine import InMemoryRecordStore
from issuerank.search.models import Record


class HashingEncoder:
    """Deterministic bag-of-words encoder with non-negative vectors.

    Each word is hashed (md5, stable across processes) into one of ``dim``
    buckets, so texts sharing words have positive cosine similarity.
    Records every ``embed`` call for assertions.
    """

    def __init__(self, dim: int = 64) -> None:
        self.dim = dim
        self.calls: list[list[str]] = []

    def embed(self, documents: list[str], **_kwargs: Any) -> list[np.ndarray]:
        self.calls.append(list(documents))
        vectors = []
        for text in documents:
            vec = np.zeros(self.dim, dtype=np.float32)
            for word in text.split():
                bucket = int(hashlib.md5(word.encode()).hexdigest(), 16) % self.dim
                vec[bucket] += 1.0
            vectors.append(vec)
        return vectors


@pytest.fixture
def encoder() -> HashingEncoder:
    return HashingEncoder()


@pytest.fixture
def ready_index(encoder: HashingEncoder) -> EmbeddingIndex:
    return EmbeddingIndex(EncoderHandle.ready_with(encoder), batch_size=2)


@pytest.fixture
def records() -> list[Record]:
    return [
        Record(
            id=101,
            number=1,
            title="Login fails on Safari",
            body="Clicking login on Safari 17 shows a blank page.",
            labels=("bug", "browser"),
        ),
        Record(
            id=102,
            number=42,
            title="Add dark mode",
            body="Users want a dark theme.\n```css\nbody { background: black; }\n```",
            labels=("enhancement",),
        ),
        Record(
            id=103,
            number=7,
            title="Crash when exporting CSV",
            body=None,
            labels=("bug", "priority: high"),
        ),
    ]


@pytest.fixture
def store(records: list[Record]) -> InMemoryRecordStore:
    return InMemoryRecordStore(records)


@pytest.fixture
def make_encoder() -> type[HashingEncoder]:
    """The fake encoder class, for tests that need extra instances."""
    return HashingEncoder
