"""
Shared dependencies for the ShiftPlan API.
Logging, rate limiting, the plan store and the advisor client.
"""
import json
import logging
import logging.handlers
import os
import threading
import traceback
from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException
from shiftlib.advisor import AdvisorClient
from shiftlib.store import ScheduleStore
from slowapi import Limiter
from slowapi.util import get_remote_address


# ── Structured JSON logging ─────────────────────────────────────
class _JsonFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message[, exc]."""
    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry = {
            "timestamp": ts.strftime('%Y-%m-%dT%H:%M:%S.') + f"{int(record.msecs):03d}Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


SHIFTPLAN_LOG_FILE = os.environ.get('SHIFTPLAN_LOG_FILE', '/tmp/shiftplan-api.log')
SHIFTPLAN_LOG_LEVEL = getattr(logging, os.environ.get('SHIFTPLAN_LOG_LEVEL', 'INFO').upper(), logging.INFO)


def _configure_logging() -> logging.Logger:
    """Attach the rotating file and stderr handlers to the API and library loggers."""
    formatter = _JsonFormatter()
    file_handler = logging.handlers.RotatingFileHandler(
        SHIFTPLAN_LOG_FILE, maxBytes=10 * 1024 * 1024, backupCount=3, encoding='utf-8'
    )
    stderr_handler = logging.StreamHandler()
    for h in (file_handler, stderr_handler):
        h.setFormatter(formatter)
    # 'shiftlib' modules log via logging.getLogger(__name__)
    for name in ('shiftplan', 'shiftlib'):
        lg = logging.getLogger(name)
        lg.setLevel(SHIFTPLAN_LOG_LEVEL)
        if not lg.handlers:
            lg.addHandler(file_handler)
            lg.addHandler(stderr_handler)
    return logging.getLogger('shiftplan')


_logger = _configure_logging()

# ── Rate Limiter ─────────────────────────────────────────────────
limiter = Limiter(key_func=get_remote_address, default_limits=["200/minute"])

# ── Plan store ───────────────────────────────────────────────────
# One store per process, reopened whenever api.main.STATE_PATH changes.
_store: Optional[ScheduleStore] = None
_store_lock = threading.Lock()


def get_store() -> ScheduleStore:
    """Return the plan store for the current STATE_PATH from main module."""
    global _store
    import api.main as _main
    path = os.path.normpath(_main.STATE_PATH)
    with _store_lock:
        if _store is None or _store.state_file is None or _store.state_file.path != path:
            _logger.info("Opening plan state %s", path)
            _store = ScheduleStore.open(path)
        return _store


def reset_store() -> None:
    """Drop the cached store so the next get_store() reloads from disk."""
    global _store
    with _store_lock:
        _store = None


def get_advisor() -> AdvisorClient:
    return AdvisorClient()


def _check_year(year: int) -> None:
    if not (2000 <= year <= 2100):
        raise HTTPException(status_code=400, detail="Ungültiges Jahr: muss zwischen 2000 und 2100 liegen")


def _check_month(month: int) -> None:
    if not (1 <= month <= 12):
        raise HTTPException(status_code=400, detail="Ungültiger Monat: muss zwischen 1 und 12 liegen")


def _sanitize_500(e: Exception, context: str = '') -> HTTPException:
    """Log full exception, return sanitized 500."""
    _logger.error(
        "500 error context=%s type=%s msg=%s trace=%s",
        context, type(e).__name__, str(e),
        traceback.format_exc().splitlines()[-1],
    )
    return HTTPException(
        status_code=500,
        detail="Interner Serverfehler. Bitte versuche es erneut.",
    )
