"""
Structured logging setup.

Every line can carry the analysis context it belongs to: the contract, its
binding package, the network, and the source module / function being
scanned. Services pass that context with ``extra=``; the formatters render
it as ``[token-testnet]`` in development and as top-level JSON fields
otherwise, so one contract's run can be filtered out of a parallel
generation.
"""

import json
import logging
import sys
from datetime import datetime, timezone

# Record attributes set through ``logger.x(..., extra={...})``
CONTEXT_FIELDS = ("contract", "package", "network", "source_module", "function")


def record_context(record: logging.LogRecord) -> dict[str, str]:
    """The analysis context attached to *record*, in CONTEXT_FIELDS order."""
    return {
        name: str(getattr(record, name))
        for name in CONTEXT_FIELDS
        if getattr(record, name, None) not in (None, "")
    }


def _context_tag(context: dict[str, str]) -> str:
    # token-testnet / token@testnet / lib::transfer
    subject = context.get("package") or context.get("contract", "")
    if "network" in context and "package" not in context:
        subject = f"{subject}@{context['network']}"
    location = "::".join(
        context[k] for k in ("source_module", "function") if k in context
    )
    parts = [p for p in (subject, location) if p]
    return f"[{' '.join(parts)}] " if parts else ""


class JSONFormatter(logging.Formatter):
    """One JSON object per line, analysis context as top-level fields."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_obj.update(record_context(record))
        if record.exc_info and record.exc_info[0] is not None:
            log_obj["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_obj)


class DevFormatter(logging.Formatter):
    """Coloured single-line formatter for terminals."""

    COLORS = {
        "DEBUG": "\033[90m",
        "INFO": "\033[36m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[1;31m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        ts = datetime.now(timezone.utc).strftime("%H:%M:%S")
        tag = _context_tag(record_context(record))
        base = (
            f"{color}{ts} {record.levelname[0]}{self.RESET} "
            f"{record.name.removeprefix('methodscope.')}: {tag}{record.getMessage()}"
        )
        if record.exc_info and record.exc_info[0] is not None:
            base += "\n" + self.formatException(record.exc_info)
        return base


_configured = False

# Third-party loggers that would drown out per-contract lines
_QUIET = ("httpx", "httpcore", "uvicorn.access", "watchfiles", "multipart")


def _configure_root(is_dev: bool = True) -> None:
    global _configured
    if _configured:
        return
    _configured = True

    root = logging.getLogger()
    root.setLevel(logging.DEBUG if is_dev else logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(DevFormatter() if is_dev else JSONFormatter())
    root.handlers = [handler]

    for name in _QUIET:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a named logger, configuring the root logger on first use."""
    try:
        from methodscope.config import get_settings
        is_dev = get_settings().is_development
    except Exception:
        is_dev = True

    _configure_root(is_dev)
    return logging.getLogger(name)
