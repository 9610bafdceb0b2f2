"""Signal scoring: four independent lexical/metadata sub-scores per record.

Turns one record and the query terms into sub-scores plus match evidence.
The evidence builder passed in belongs to a single record's scoring pass.
Absent fields contribute zero; nothing here raises for missing data.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from issuerank.config.constants import (
    BODY_OCCURRENCE_DIVISOR,
    BODY_SCORE_CAP,
    CODE_BLOCK_BONUS,
    FUZZY_SCORE_CAP,
    LABEL_MATCH_BONUS,
    NUMBER_MATCH_BONUS,
    TITLE_PHRASE_BONUS,
    TITLE_PREFIX_BONUS,
    TITLE_SCORE_CAP,
)
from issuerank.config.models import ScoringConfig
from issuerank.search.models import EvidenceBuilder, FuzzyMatch, Record
from issuerank.search.similarity import similarity
from issuerank.search.text import content_words, searchable_content

_CODE_BLOCK = re.compile(r"```[\s\S]*?```")


@dataclass(frozen=True, slots=True)
class SignalScores:
    """Unweighted sub-scores for one record."""

    title: float = 0.0
    body: float = 0.0
    fuzzy: float = 0.0
    metadata: float = 0.0


class SignalScorer:
    """Computes the title, body, metadata and fuzzy sub-scores."""

    def __init__(self, config: ScoringConfig | None = None) -> None:
        self._config = config or ScoringConfig()

    @property
    def config(self) -> ScoringConfig:
        return self._config

    def score(self, record: Record, terms: list[str]) -> tuple[SignalScores, EvidenceBuilder]:
        """Score one record against the query terms.

        Returns the sub-scores and the evidence accumulated while computing
        them; the caller freezes the evidence once the vector score is known.
        """
        evidence = EvidenceBuilder()
        scores = SignalScores(
            title=self.title_score(record, terms, evidence),
            body=self.body_score(record, terms, evidence),
            fuzzy=self.fuzzy_score(searchable_content(record), terms, evidence),
            metadata=self.metadata_score(record, terms, evidence),
        )
        return scores, evidence

    def title_score(self, record: Record, terms: list[str], evidence: EvidenceBuilder) -> float:
        """Substring containment in the title, with prefix and phrase bonuses."""
        score = 0.0
        title = (record.title or "").lower()

        for term in terms:
            if term in title:
                evidence.title_matches.append(term)
                score += self._config.exact_match_bonus
                if title.startswith(term):
                    score += TITLE_PREFIX_BONUS

        if len(terms) > 1 and " ".join(terms) in title:
            score += TITLE_PHRASE_BONUS

        return min(score, TITLE_SCORE_CAP)

    def body_score(self, record: Record, terms: list[str], evidence: EvidenceBuilder) -> float:
        """Occurrence counts in the body plus fenced code block hits."""
        score = 0.0
        body = (record.body or "").lower()
        if not body:
            return 0.0

        code_blocks = _CODE_BLOCK.findall(body)
        for term in terms:
            # literal match, terms are raw user input
            count = len(re.findall(re.escape(term), body, flags=re.IGNORECASE))
            if count > 0:
                evidence.body_matches.append(term)
                score += min(count / BODY_OCCURRENCE_DIVISOR, 1.0)
            for block in code_blocks:
                if term in block:
                    score += CODE_BLOCK_BONUS

        return min(score, BODY_SCORE_CAP)

    def metadata_score(self, record: Record, terms: list[str], evidence: EvidenceBuilder) -> float:
        """Exact issue-number match and label-name containment."""
        score = 0.0
        number = str(record.number)

        if any(term.isdigit() and term.isascii() and term == number for term in terms):
            evidence.number_match = True
            score += NUMBER_MATCH_BONUS

        for term in terms:
            for label in record.labels:
                if term in label.lower():
                    evidence.label_matches.append(label)
                    score += LABEL_MATCH_BONUS

        return score

    def fuzzy_score(self, content: str, terms: list[str], evidence: EvidenceBuilder) -> float:
        """Best single fuzzy match per term across all content words.

        Weak matches on other words do not add up.  The threshold
        comparison is strict.
        """
        score = 0.0
        words = content_words(content)
        threshold = self._config.fuzzy_threshold

        for term in terms:
            best_word = ""
            best_score = 0.0
            for word in words:
                sim = similarity(term, word)
                if sim > threshold and sim > best_score:
                    best_word, best_score = word, sim
            if best_score > 0:
                evidence.fuzzy_matches.append(
                    FuzzyMatch(original=term, matched=best_word, score=best_score)
                )
                score += best_score * self._config.fuzzy_match_weight

        return min(score, FUZZY_SCORE_CAP)
