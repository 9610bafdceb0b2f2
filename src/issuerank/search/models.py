"""Search domain models: records, match evidence and results.

No I/O, no scoring logic.  Every model is immutable; a result is built
once per query and never mutated afterwards.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from issuerank.config.constants import NEUTRAL_SCORE, SCORE_DISPLAY_PRECISION


@dataclass(frozen=True, slots=True)
class Record:
    """An issue-like searchable item.

    ``id`` is the unique key used by the store and the embedding index;
    ``number`` is the human-facing issue number matched by numeric terms.
    """

    id: int
    number: int
    title: str
    body: str | None = None
    labels: tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Record:
        """Build a record from a GitHub-style issue mapping.

        Labels may be plain strings or objects with a ``name`` key; labels
        without a usable name are dropped.
        """
        labels: list[str] = []
        for label in data.get("labels") or ():
            if isinstance(label, str):
                labels.append(label)
            elif isinstance(label, Mapping) and label.get("name"):
                labels.append(str(label["name"]))
        return cls(
            id=int(data["id"]),
            number=int(data.get("number", data["id"])),
            title=str(data.get("title") or ""),
            body=data.get("body"),
            labels=tuple(labels),
        )


@dataclass(frozen=True, slots=True)
class FuzzyMatch:
    """Best fuzzy pairing for one query term."""

    original: str
    matched: str
    score: float


@dataclass(frozen=True, slots=True)
class MatchEvidence:
    """Which terms and labels matched a record, and how.

    Purely diagnostic: presenters may use it for tooltips or highlighting.
    """

    title_matches: tuple[str, ...] = ()
    body_matches: tuple[str, ...] = ()
    label_matches: tuple[str, ...] = ()
    number_match: bool = False
    similarity_score: float = 0.0
    fuzzy_matches: tuple[FuzzyMatch, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "title_matches": list(self.title_matches),
            "body_matches": list(self.body_matches),
            "label_matches": list(self.label_matches),
            "number_match": self.number_match,
            "similarity_score": self.similarity_score,
            "fuzzy_matches": [
                {"original": m.original, "matched": m.matched, "score": m.score}
                for m in self.fuzzy_matches
            ],
        }


@dataclass(slots=True)
class EvidenceBuilder:
    """Mutable evidence accumulator owned by a single record's scoring pass."""

    title_matches: list[str] = field(default_factory=list)
    body_matches: list[str] = field(default_factory=list)
    label_matches: list[str] = field(default_factory=list)
    number_match: bool = False
    fuzzy_matches: list[FuzzyMatch] = field(default_factory=list)

    def freeze(self, similarity_score: float = 0.0) -> MatchEvidence:
        return MatchEvidence(
            title_matches=tuple(self.title_matches),
            body_matches=tuple(self.body_matches),
            label_matches=tuple(self.label_matches),
            number_match=self.number_match,
            similarity_score=similarity_score,
            fuzzy_matches=tuple(self.fuzzy_matches),
        )


@dataclass(frozen=True, slots=True)
class SearchResult:
    """Relevance verdict for one requested record id."""

    visible: bool
    score: float
    evidence: MatchEvidence = field(default_factory=MatchEvidence)

    @classmethod
    def empty(cls, visible: bool = True) -> SearchResult:
        """Result carrying no evidence.

        ``visible=True`` is the browse state used for an empty query
        (neutral score); ``visible=False`` marks a record that could not be
        resolved (score 0).
        """
        return cls(visible=visible, score=NEUTRAL_SCORE if visible else 0.0)

    @property
    def display_score(self) -> str:
        return f"{self.score:.{SCORE_DISPLAY_PRECISION}f}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "visible": self.visible,
            "score": round(self.score, SCORE_DISPLAY_PRECISION),
            "evidence": self.evidence.to_dict(),
        }
