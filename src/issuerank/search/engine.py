"""Relevance engine: combines signal scores into per-record search results.

Scoring a query is embarrassingly parallel: each record reads only itself,
the query terms, the embedding snapshot and the frozen config.  Every
per-record computation is joined before the result mapping is built, so
callers never observe a partially populated mapping.
"""

from __future__ import annotations

import math
import threading
import time
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol

import structlog

from issuerank.config.models import ScoringConfig
from issuerank.core.errors import EncoderNotReady, RecordNotFound
from issuerank.search.embedding import Document, EmbeddingIndex, Vector
from issuerank.search.models import Record, SearchResult
from issuerank.search.scoring import SignalScorer
from issuerank.search.text import searchable_content, tokenize_query

log = structlog.get_logger()


class RecordStore(Protocol):
    """Backing store the engine resolves record ids against."""

    def get_record(self, record_id: int) -> Record | None: ...


class InMemoryRecordStore:
    """Ordered record collection keyed by id."""

    def __init__(self, records: Iterable[Record] = ()) -> None:
        self._records: dict[int, Record] = {}
        self.replace(records)

    def replace(self, records: Iterable[Record]) -> None:
        self._records = {record.id: record for record in records}

    def records(self) -> list[Record]:
        return list(self._records.values())

    def get_record(self, record_id: int) -> Record | None:
        return self._records.get(record_id)

    def require(self, record_id: int) -> Record:
        record = self._records.get(record_id)
        if record is None:
            raise RecordNotFound.for_id(record_id)
        return record

    def __len__(self) -> int:
        return len(self._records)


# ===================================================================
# Ranking diagnostics
# ===================================================================


def _dcg(scores: Sequence[float]) -> float:
    return sum((2.0**score - 1.0) / math.log2(rank + 2) for rank, score in enumerate(scores))


def ndcg(scores: Sequence[float], reference: Sequence[float] | None = None) -> float:
    """Normalized discounted cumulative gain of ``scores`` in the given order.

    Gain is ``2**score - 1`` and the discount ``log2(rank + 2)``.  The ideal
    DCG comes from ``reference`` when given, otherwise from ``scores``
    sorted descending.  Returns 0 for an empty list or a zero ideal DCG.
    """
    if not scores:
        return 0.0
    ideal = sorted(reference if reference is not None else scores, reverse=True)
    idcg = _dcg(ideal)
    if idcg == 0:
        return 0.0
    return _dcg(scores) / idcg


def ranking_quality(results: Mapping[int, SearchResult]) -> float:
    """NDCG over the visible scores sorted descending.

    The list is compared with its own ideal ordering, so any self-consistent
    result set scores 1.0; the value only becomes informative once an
    independent reference ranking is supplied to ``ndcg``.
    """
    scores = sorted((r.score for r in results.values() if r.visible), reverse=True)
    return ndcg(scores)


def ranked_ids(results: Mapping[int, SearchResult]) -> list[int]:
    """Visible record ids, highest score first, ties by ascending id."""
    visible = [(rid, r.score) for rid, r in results.items() if r.visible]
    return [rid for rid, _score in sorted(visible, key=lambda x: (-x[1], x[0]))]


# ===================================================================
# RelevanceEngine
# ===================================================================


class RelevanceEngine:
    """Hybrid lexical, fuzzy, metadata and embedding relevance scorer."""

    def __init__(
        self,
        store: RecordStore,
        index: EmbeddingIndex | None = None,
        config: ScoringConfig | None = None,
    ) -> None:
        self._store = store
        self._index = index
        self._config = config or ScoringConfig()
        self._scorer = SignalScorer(self._config)

    @property
    def config(self) -> ScoringConfig:
        return self._config

    @property
    def index(self) -> EmbeddingIndex | None:
        return self._index

    @property
    def vector_signal_available(self) -> bool:
        return self._index is not None and self._index.is_ready

    def index_records(
        self,
        records: Iterable[Record],
        *,
        cancel: threading.Event | None = None,
    ) -> int:
        """Build or refresh embeddings for ``records``.  Returns count stored.

        Raises:
            EncoderNotReady: encoder not initialized (or failed).
        """
        if self._index is None:
            return 0
        documents = [Document(id=r.id, content=searchable_content(r)) for r in records]
        return self._index.index_batch(documents, cancel=cancel)

    def search(self, query_text: str, record_ids: Iterable[int]) -> dict[int, SearchResult]:
        """Score every requested record against ``query_text``.

        An empty query returns the neutral browse result for every id.
        Unresolvable ids and per-record failures yield an invisible
        zero-score result; they never abort the batch.
        """
        ids = list(dict.fromkeys(record_ids))
        terms = tokenize_query(query_text)

        if not terms:
            return {rid: SearchResult.empty() for rid in ids}

        start = time.monotonic()
        query_vec = self._prepare_query_vector(terms)

        if self._config.max_workers > 1 and len(ids) > 1:
            with ThreadPoolExecutor(
                max_workers=self._config.max_workers,
                thread_name_prefix="issuerank-score",
            ) as executor:
                scored = list(executor.map(lambda rid: self._score_id(rid, terms, query_vec), ids))
        else:
            scored = [self._score_id(rid, terms, query_vec) for rid in ids]

        results = dict(zip(ids, scored, strict=True))

        summary: dict[str, object] = {
            "terms": len(terms),
            "records": len(ids),
            "visible": sum(1 for r in scored if r.visible),
            "vector_signal": query_vec is not None,
            "elapsed_ms": round((time.monotonic() - start) * 1000, 2),
        }
        if self._config.compute_ranking_quality:
            summary["ndcg"] = ranking_quality(results)
        log.debug("search.completed", **summary)
        return results

    def _prepare_query_vector(self, terms: list[str]) -> Vector | None:
        """Encode the query once per search; None when embeddings are unavailable."""
        if self._index is None or self._config.weights.vector == 0:
            return None
        if not self._index.is_ready:
            log.debug("search.vector_signal_skipped", encoder=self._index.encoder.state.value)
            return None
        try:
            return self._index.query_vector(terms)
        except EncoderNotReady:
            log.debug("search.vector_signal_skipped", encoder=self._index.encoder.state.value)
            return None
        except Exception:
            log.warning("search.query_encoding_failed", terms=len(terms), exc_info=True)
            return None

    def _resolve(self, record_id: int) -> Record | None:
        try:
            return self._store.get_record(record_id)
        except RecordNotFound:
            return None

    def _score_id(self, record_id: int, terms: list[str], query_vec: Vector | None) -> SearchResult:
        try:
            record = self._resolve(record_id)
            if record is None:
                log.debug("search.record_not_found", record_id=record_id)
                return SearchResult.empty(visible=False)
            return self._score_record(record, terms, query_vec)
        except Exception:
            log.warning("search.record_failed", record_id=record_id, exc_info=True)
            return SearchResult.empty(visible=False)

    def _score_record(self, record: Record, terms: list[str], query_vec: Vector | None) -> SearchResult:
        scores, evidence = self._scorer.score(record, terms)
        vector = 0.0
        if query_vec is not None and self._index is not None:
            vector = self._index.similarity_to_vector(record.id, query_vec)

        w = self._config.weights
        total = (
            w.title * scores.title
            + w.body * scores.body
            + w.fuzzy * scores.fuzzy
            + w.metadata * scores.metadata
            + w.vector * vector
        )
        visible = total > 0 or evidence.number_match
        return SearchResult(
            visible=visible,
            score=total if visible else 0.0,
            evidence=evidence.freeze(similarity_score=vector),
        )
