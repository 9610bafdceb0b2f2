"""Hybrid relevance search over issue records."""

from issuerank.search.embedding import (
    Document,
    EmbeddingIndex,
    EncoderHandle,
    EncoderState,
    TextEncoder,
)
from issuerank.search.engine import (
    InMemoryRecordStore,
    RecordStore,
    RelevanceEngine,
    ndcg,
    ranked_ids,
    ranking_quality,
)
from issuerank.search.models import FuzzyMatch, MatchEvidence, Record, SearchResult
from issuerank.search.scoring import SignalScorer, SignalScores
from issuerank.search.similarity import levenshtein, similarity

__all__ = [
    # Embeddings
    "Document",
    "EmbeddingIndex",
    "EncoderHandle",
    "EncoderState",
    "TextEncoder",
    # Engine
    "InMemoryRecordStore",
    "RecordStore",
    "RelevanceEngine",
    "ndcg",
    "ranked_ids",
    "ranking_quality",
    # Models
    "FuzzyMatch",
    "MatchEvidence",
    "Record",
    "SearchResult",
    # Scoring
    "SignalScorer",
    "SignalScores",
    "levenshtein",
    "similarity",
]
