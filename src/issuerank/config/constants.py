"""Scoring constants.

These are fixed parts of the scoring model and are NOT user-configurable.
For configurable weights and thresholds, see models.py (ScoringConfig).
"""

# =============================================================================
# Sub-score caps
# =============================================================================

TITLE_SCORE_CAP = 3.0
BODY_SCORE_CAP = 2.0
FUZZY_SCORE_CAP = 2.0

# =============================================================================
# Per-match bonuses
# =============================================================================

TITLE_PREFIX_BONUS = 0.5
"""Extra title score when the title starts with the term."""

TITLE_PHRASE_BONUS = 1.0
"""Extra title score when a multi-term query appears verbatim in the title."""

BODY_OCCURRENCE_DIVISOR = 2.0
"""Body occurrences are divided by this and capped at 1.0 per term."""

CODE_BLOCK_BONUS = 0.5
"""Per fenced code block containing the term."""

NUMBER_MATCH_BONUS = 2.0
LABEL_MATCH_BONUS = 0.5

# =============================================================================
# Results
# =============================================================================

NEUTRAL_SCORE = 1.0
"""Score of every record when the query is empty (browse state)."""

SCORE_DISPLAY_PRECISION = 3
"""Decimal places presenters render scores with."""

# =============================================================================
# Tokenization
# =============================================================================

MIN_CONTENT_WORD_LENGTH = 3
"""Fuzzy matching ignores content words shorter than this."""
