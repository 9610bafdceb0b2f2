"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (ISSUERANK__SECTION__KEY)
3. Explicit YAML file (--config / load_config(config_path=...))
4. Global YAML (~/.config/issuerank/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    ISSUERANK__<SECTION>__<KEY>=<VALUE>

Examples:
    ISSUERANK__LOGGING__LEVEL=DEBUG
    ISSUERANK__SCORING__FUZZY_THRESHOLD=0.8
    ISSUERANK__SCORING__WEIGHTS__VECTOR=0
    ISSUERANK__EMBEDDING__ENABLED=false

All models are frozen: weights and thresholds cannot change for the
lifetime of an engine built from them.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    model_config = ConfigDict(frozen=True)

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        ISSUERANK__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    model_config = ConfigDict(frozen=True)

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs one event per scored record.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class SearchWeights(BaseModel):
    """Per-signal weights for the weighted relevance sum.

    The weights are not required to sum to 1.0; the caller controls the
    scale of the total score.

    Env vars:
        ISSUERANK__SCORING__WEIGHTS__TITLE (etc.)
    """

    model_config = ConfigDict(frozen=True)

    title: float = Field(default=0.3, ge=0.0, description="Weight of the lexical title signal.")
    body: float = Field(default=0.2, ge=0.0, description="Weight of the lexical body signal.")
    fuzzy: float = Field(default=0.2, ge=0.0, description="Weight of the fuzzy token signal.")
    metadata: float = Field(
        default=0.1,
        ge=0.0,
        description="Weight of the number/label metadata signal.",
    )
    vector: float = Field(
        default=0.2,
        ge=0.0,
        description="Weight of the embedding similarity signal. "
        "Set to 0 to ignore embeddings even when they are available.",
    )

    @property
    def total(self) -> float:
        return self.title + self.body + self.fuzzy + self.metadata + self.vector


class ScoringConfig(BaseModel):
    """Relevance scoring thresholds and weights.

    Env vars:
        ISSUERANK__SCORING__FUZZY_THRESHOLD: Minimum similarity for a fuzzy hit (exclusive)
        ISSUERANK__SCORING__EXACT_MATCH_BONUS: Per-term bonus for title containment
        ISSUERANK__SCORING__FUZZY_MATCH_WEIGHT: Multiplier for the best fuzzy similarity
        ISSUERANK__SCORING__MAX_WORKERS: Threads used to score records
    """

    model_config = ConfigDict(frozen=True)

    fuzzy_threshold: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="A content word must be strictly more similar than this to count. "
        "TRADEOFF: Lower values match more typos but also unrelated words.",
    )
    exact_match_bonus: float = Field(
        default=1.0,
        ge=0.0,
        description="Added to the title sub-score for each term found in the title.",
    )
    fuzzy_match_weight: float = Field(
        default=0.7,
        ge=0.0,
        description="Multiplier applied to each term's best fuzzy similarity.",
    )
    weights: SearchWeights = Field(default_factory=SearchWeights)
    max_workers: int = Field(
        default=1,
        ge=1,
        description="Threads used to score records. 1 scores inline. "
        "Results are identical for any value.",
    )
    compute_ranking_quality: bool = Field(
        default=False,
        description="Compute and log the NDCG diagnostic for each search.",
    )


class EmbeddingConfig(BaseModel):
    """Embedding encoder configuration.

    Env vars:
        ISSUERANK__EMBEDDING__ENABLED: Load the encoder at all
        ISSUERANK__EMBEDDING__MODEL_NAME: fastembed model name
        ISSUERANK__EMBEDDING__BATCH_SIZE: Documents encoded per chunk
    """

    model_config = ConfigDict(frozen=True)

    enabled: bool = Field(
        default=True,
        description="Load the embedding encoder. When false the vector signal is always 0.",
    )
    model_name: str = Field(
        default="sentence-transformers/all-MiniLM-L6-v2",
        description="fastembed model name (384-dim MiniLM by default).",
    )
    batch_size: int = Field(
        default=32,
        ge=1,
        description="Documents encoded per chunk. Bounds peak memory; "
        "does not change the stored vectors.",
    )
    threads: int | None = Field(
        default=None,
        ge=1,
        description="ONNX runtime threads. Default: half the CPU count.",
    )
    init_timeout_sec: float = Field(
        default=120.0,
        gt=0.0,
        description="How long the CLI waits for the model to load (first run downloads it).",
    )


class IssueRankConfig(BaseModel):
    """Root configuration for issuerank.

    All settings can be configured via:
    1. Environment variables: ISSUERANK__SECTION__KEY
    2. YAML config files
    3. Direct kwargs to load_config()
    """

    model_config = ConfigDict(frozen=True)

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
