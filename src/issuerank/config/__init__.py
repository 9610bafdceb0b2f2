"""Config module exports."""

from issuerank.config.loader import load_config
from issuerank.config.models import (
    EmbeddingConfig,
    IssueRankConfig,
    LoggingConfig,
    LogOutputConfig,
    ScoringConfig,
    SearchWeights,
)

__all__ = [
    "load_config",
    "EmbeddingConfig",
    "IssueRankConfig",
    "LoggingConfig",
    "LogOutputConfig",
    "ScoringConfig",
    "SearchWeights",
]
