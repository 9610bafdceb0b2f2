"""Dense vector index over record text.

Uses fastembed (ONNX-based) for embedding computation and numpy for
storage and cosine similarity.

Model: sentence-transformers/all-MiniLM-L6-v2  (384-dim)

Encoder lifecycle is an explicit state machine owned by EncoderHandle:

    uninitialized -> initializing -> ready
                                  -> failed

Model loading is slow (first run downloads the model), so ``start()`` loads
it on a background thread and query-time callers check ``is_ready`` instead
of blocking.  Operations that need the encoder raise ``EncoderNotReady``.

Concurrency: writers (``index_batch``) build a new id -> vector mapping per
chunk and publish it under a write lock; readers grab the current mapping
reference and never see a partially written chunk.  Stored vectors are
read-only float32 arrays, L2-normalised, so cosine similarity is a dot
product.

Missing documents: ``similarity_to`` treats an unindexed id as similarity
0 (records indexed late must not fail a search), while
``document_similarity`` raises ``DocumentNotIndexed`` for callers that
expect the document to exist.
"""

from __future__ import annotations

import os
import threading
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType
from typing import Any, Protocol

import numpy as np
import structlog

from issuerank.config.models import EmbeddingConfig
from issuerank.core.errors import DocumentNotIndexed, EncoderNotReady, InternalError
from issuerank.search.text import preprocess_text

log = structlog.get_logger()

_MODEL_NAME = "sentence-transformers/all-MiniLM-L6-v2"
_EMBED_BATCH_SIZE = 32
_NORM_FLOOR = 1e-10

Vector = np.ndarray[Any, np.dtype[np.float32]]


class TextEncoder(Protocol):
    """Anything with fastembed's ``TextEmbedding.embed`` shape."""

    def embed(self, documents: list[str]) -> Iterable[Any]: ...


class EncoderState(StrEnum):
    """Embedding encoder lifecycle state."""

    uninitialized = "uninitialized"
    initializing = "initializing"
    ready = "ready"
    failed = "failed"


@dataclass(frozen=True, slots=True)
class Document:
    """One record's searchable text, keyed by record id."""

    id: int
    content: str


def _detect_providers() -> list[str]:
    """Detect available ONNX Runtime execution providers."""
    try:
        import onnxruntime as ort  # type: ignore[import-not-found]

        available = set(ort.get_available_providers())
    except Exception:
        return []

    providers: list[str] = []
    if "CUDAExecutionProvider" in available:
        providers.append("CUDAExecutionProvider")
    providers.append("CPUExecutionProvider")
    return providers


def load_fastembed_encoder(model_name: str = _MODEL_NAME, threads: int | None = None) -> TextEncoder:
    """Load a fastembed TextEmbedding model with GPU auto-detect."""
    from fastembed import TextEmbedding  # type: ignore[import-not-found]

    kwargs: dict[str, Any] = {
        "model_name": model_name,
        "threads": threads or max(1, (os.cpu_count() or 4) // 2),
    }
    providers = _detect_providers()
    if providers:
        kwargs["providers"] = providers
    return TextEmbedding(**kwargs)  # type: ignore[no-any-return]


def _normalize_rows(matrix: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(matrix, axis=1, keepdims=True)
    norms = np.maximum(norms, _NORM_FLOOR)
    return matrix / norms


def _clamped_cosine(a: Vector, b: Vector) -> float:
    """Dot product of two unit vectors, clamped to [0, 1]."""
    return float(min(1.0, max(0.0, float(np.dot(a, b)))))


class EncoderHandle:
    """Owns the encoder and its initialization state machine."""

    def __init__(
        self,
        loader: Callable[[], TextEncoder] | None = None,
        *,
        model_name: str = _MODEL_NAME,
    ) -> None:
        self._loader = loader or (lambda: load_fastembed_encoder(model_name))
        self._model_name = model_name
        self._encoder: TextEncoder | None = None
        self._state = EncoderState.uninitialized
        self._error: str | None = None
        self._lock = threading.Lock()
        self._settled = threading.Event()  # set on ready or failed

    @classmethod
    def from_config(cls, config: EmbeddingConfig) -> EncoderHandle:
        return cls(
            lambda: load_fastembed_encoder(config.model_name, config.threads),
            model_name=config.model_name,
        )

    @classmethod
    def ready_with(cls, encoder: TextEncoder, *, model_name: str = "injected") -> EncoderHandle:
        """Handle around an already constructed encoder."""
        handle = cls(lambda: encoder, model_name=model_name)
        handle.initialize()
        return handle

    @property
    def state(self) -> EncoderState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is EncoderState.ready

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def model_name(self) -> str:
        return self._model_name

    def start(self) -> None:
        """Begin loading on a background thread.  No-op unless uninitialized."""
        if not self._begin():
            return
        thread = threading.Thread(
            target=self._load,
            name="issuerank-encoder-init",
            daemon=True,
        )
        thread.start()

    def initialize(self) -> bool:
        """Load synchronously (or wait for an in-flight load).  True when ready."""
        if self._begin():
            self._load()
        else:
            self._settled.wait()
        return self.is_ready

    def wait_ready(self, timeout: float | None = None) -> bool:
        """Block until the encoder settles or ``timeout`` elapses."""
        if self._state is EncoderState.uninitialized:
            return False
        self._settled.wait(timeout)
        return self.is_ready

    def require(self) -> TextEncoder:
        """Return the encoder or raise ``EncoderNotReady``."""
        encoder = self._encoder
        if self._state is not EncoderState.ready or encoder is None:
            raise EncoderNotReady.in_state(self._state.value, self._error)
        return encoder

    def _begin(self) -> bool:
        with self._lock:
            if self._state is not EncoderState.uninitialized:
                return False
            self._state = EncoderState.initializing
            return True

    def _load(self) -> None:
        start = time.monotonic()
        try:
            encoder = self._loader()
        except ImportError:
            self._fail("fastembed is not installed (pip install fastembed)")
            return
        except Exception as e:
            log.debug("encoder.load_error", model=self._model_name, exc_info=True)
            self._fail(f"{type(e).__name__}: {e}")
            return

        with self._lock:
            self._encoder = encoder
            self._state = EncoderState.ready
        self._settled.set()
        log.info(
            "encoder.ready",
            model=self._model_name,
            elapsed_s=round(time.monotonic() - start, 2),
        )

    def _fail(self, reason: str) -> None:
        with self._lock:
            self._error = reason
            self._state = EncoderState.failed
        self._settled.set()
        log.error(
            "encoder.unavailable",
            model=self._model_name,
            reason=reason,
            hint="vector similarity will score 0 for every record",
        )


class EmbeddingIndex:
    """In-memory record id -> unit vector index."""

    def __init__(self, encoder: EncoderHandle, *, batch_size: int = _EMBED_BATCH_SIZE) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self._encoder = encoder
        self._batch_size = batch_size
        self._vectors: dict[int, Vector] = {}
        self._write_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: EmbeddingConfig) -> EmbeddingIndex:
        return cls(EncoderHandle.from_config(config), batch_size=config.batch_size)

    @property
    def encoder(self) -> EncoderHandle:
        return self._encoder

    @property
    def is_ready(self) -> bool:
        return self._encoder.is_ready

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def count(self) -> int:
        return len(self._vectors)

    def has_document(self, record_id: int) -> bool:
        return record_id in self._vectors

    def vectors(self) -> MappingProxyType[int, Vector]:
        """Read-only view of the current snapshot."""
        return MappingProxyType(self._vectors)

    # ------------------------------------------------------------------
    # Indexing
    # ------------------------------------------------------------------

    def index_batch(
        self,
        documents: Sequence[Document],
        *,
        on_progress: Callable[[int, int], None] | None = None,
        cancel: threading.Event | None = None,
    ) -> int:
        """Encode, normalise and store documents, overwriting existing ids.

        Documents are encoded ``batch_size`` at a time; each chunk is
        published atomically.  ``cancel`` is checked between chunks and
        already published chunks are kept.

        Returns the number of documents stored.

        Raises:
            EncoderNotReady: encoder not initialized (or failed).
            InternalError: encoder output does not match the chunk.
        """
        encoder = self._encoder.require()
        total = len(documents)
        stored = 0
        start = time.monotonic()

        for offset in range(0, total, self._batch_size):
            if cancel is not None and cancel.is_set():
                log.info("embedding.index_batch_cancelled", stored=stored, total=total)
                break

            chunk = documents[offset : offset + self._batch_size]
            texts = [preprocess_text(doc.content) for doc in chunk]
            raw = np.asarray(list(encoder.embed(texts)), dtype=np.float32)
            if raw.ndim != 2 or raw.shape[0] != len(chunk):
                raise InternalError.unexpected(
                    "encoder output does not match the chunk",
                    shape=list(raw.shape),
                    documents=len(chunk),
                )
            matrix = _normalize_rows(raw).astype(np.float32)

            with self._write_lock:
                updated = dict(self._vectors)
                for doc, row in zip(chunk, matrix, strict=True):
                    vec = row.copy()
                    vec.flags.writeable = False
                    updated[doc.id] = vec
                self._vectors = updated

            stored += len(chunk)
            if on_progress is not None:
                on_progress(stored, total)

        log.info(
            "embedding.index_batch",
            documents=stored,
            total=total,
            batch_size=self._batch_size,
            elapsed_ms=round((time.monotonic() - start) * 1000),
        )
        return stored

    def remove(self, record_ids: Iterable[int]) -> int:
        """Drop stored vectors.  Returns how many were present."""
        drop = set(record_ids)
        with self._write_lock:
            updated = {rid: vec for rid, vec in self._vectors.items() if rid not in drop}
            removed = len(self._vectors) - len(updated)
            self._vectors = updated
        return removed

    def clear(self) -> None:
        with self._write_lock:
            self._vectors = {}

    # ------------------------------------------------------------------
    # Query API
    # ------------------------------------------------------------------

    def query_vector(self, query_terms: Sequence[str]) -> Vector:
        """Encode each term separately, sum, and L2-normalise.

        Multi-term queries accumulate per-term semantics rather than asking
        the encoder to interpret the joined phrase.
        """
        if not query_terms:
            raise ValueError("query_terms must not be empty")
        encoder = self._encoder.require()
        raw = np.asarray(
            list(encoder.embed([preprocess_text(term) for term in query_terms])),
            dtype=np.float32,
        )
        summed = raw.sum(axis=0, keepdims=True)
        return _normalize_rows(summed)[0].astype(np.float32)

    def similarity_to_vector(self, record_id: int, query: Vector) -> float:
        """Clamped cosine between a prepared query vector and a stored one (0 if absent)."""
        stored = self._vectors.get(record_id)
        if stored is None:
            return 0.0
        return _clamped_cosine(query, stored)

    def similarity_to(self, record_id: int, query_terms: Sequence[str]) -> float:
        """Similarity of the combined query terms to a record, in [0, 1].

        Returns 0 without touching the encoder when the record has no
        stored vector or there are no terms.

        Raises:
            EncoderNotReady: a score needs the encoder and it is not ready.
        """
        stored = self._vectors.get(record_id)
        if stored is None or not query_terms:
            return 0.0
        return _clamped_cosine(self.query_vector(query_terms), stored)

    def document_similarity(self, record_id: int, query_terms: Sequence[str]) -> float:
        """Strict variant of ``similarity_to``.

        Raises:
            DocumentNotIndexed: the record has no stored vector.
            EncoderNotReady: a score needs the encoder and it is not ready.
        """
        stored = self._vectors.get(record_id)
        if stored is None:
            raise DocumentNotIndexed.for_id(record_id)
        if not query_terms:
            return 0.0
        return _clamped_cosine(self.query_vector(query_terms), stored)

    def top_k(self, query_text: str, k: int = 5) -> list[tuple[int, float]]:
        """Highest-similarity records for the whole query encoded as one string.

        Returns ``[(record_id, similarity), ...]`` sorted descending, ties by
        ascending id, at most ``k`` entries.

        Raises:
            EncoderNotReady: encoder not initialized (or failed).
        """
        encoder = self._encoder.require()
        vectors = self._vectors
        if k <= 0 or not vectors:
            return []

        ids = sorted(vectors)
        matrix = np.stack([vectors[rid] for rid in ids])
        raw = np.asarray(list(encoder.embed([preprocess_text(query_text)])), dtype=np.float32)
        query = _normalize_rows(raw)[0].astype(np.float32)

        scores = np.clip(matrix @ query, 0.0, 1.0)
        ranked = sorted(
            ((rid, float(score)) for rid, score in zip(ids, scores, strict=True)),
            key=lambda x: (-x[1], x[0]),
        )
        return ranked[:k]
