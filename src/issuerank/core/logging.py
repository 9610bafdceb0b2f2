"""structlog setup for issuerank.

Events are produced with ``structlog.get_logger()`` in each module and
rendered by stdlib handlers through ``ProcessorFormatter``, one handler per
configured output.  Each CLI invocation gets a short request id that is
attached to every event it emits.

When an output writes to a file, its path is remembered so user-facing
errors can tell people where the full traceback went.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from issuerank.config.models import LoggingConfig, LogOutputConfig

# Third-party loggers that chatter at INFO while the model downloads.
_QUIET_LOGGERS = ("fastembed", "huggingface_hub", "onnxruntime")

_request_id: ContextVar[str | None] = ContextVar("issuerank_request_id", default=None)
_log_file: Path | None = None


def get_request_id() -> str | None:
    return _request_id.get()


def set_request_id(request_id: str | None = None) -> str:
    """Bind ``request_id`` (or a fresh 12-char id) to the current context."""
    rid = request_id or uuid4().hex[:12]
    _request_id.set(rid)
    return rid


def clear_request_id() -> None:
    _request_id.set(None)


def get_log_file_path() -> Path | None:
    """First file output of the active configuration, if any."""
    return _log_file


def _inject_request_id(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    rid = _request_id.get()
    if rid is not None:
        event_dict.setdefault("request_id", rid)
    return event_dict


def _numeric_level(name: str | None, fallback: int) -> int:
    if not name:
        return fallback
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else fallback


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
        _inject_request_id,  # type: ignore[list-item]
    ]


def _formatter(output: LogOutputConfig, pre_chain: list[structlog.types.Processor]) -> logging.Formatter:
    renderer: structlog.types.Processor
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        to_tty = output.destination == "stderr" and sys.stderr.isatty()
        renderer = structlog.dev.ConsoleRenderer(colors=to_tty, pad_event_to=0, pad_level=False)
    return structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain)


def _open_handler(destination: str) -> logging.Handler:
    if destination == "stderr":
        return logging.StreamHandler(sys.stderr)
    if destination == "stdout":
        return logging.StreamHandler(sys.stdout)
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a", encoding="utf-8")


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Install handlers for ``config.outputs``.

    Without a config a single stderr output is used, rendered as JSON when
    ``json_format`` is set.  Safe to call repeatedly: previous handlers are
    closed and replaced.
    """
    global _log_file
    from issuerank.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level.upper(),
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )

    root_level = _numeric_level(config.level, logging.INFO)
    pre_chain = _pre_chain()

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # level changes between calls must take effect
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
        old.close()
    root.setLevel(root_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _log_file = None
    for output in config.outputs:
        handler = _open_handler(output.destination)
        handler.setLevel(_numeric_level(output.level, root_level))
        handler.setFormatter(_formatter(output, pre_chain))
        root.addHandler(handler)
        if _log_file is None and isinstance(handler, logging.FileHandler):
            _log_file = Path(output.destination)
