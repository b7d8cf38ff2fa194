"""FastAPI application for ShiftPlan."""
import os
import sys
import time
import traceback
import uuid
from contextlib import asynccontextmanager
from dotenv import load_dotenv

_STARTED_AT = time.time()

# .env next to the backend directory, if any
load_dotenv(os.path.join(os.path.dirname(__file__), '..', '.env'))

# shiftlib lives beside api/
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi import FastAPI, Request  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402
from fastapi.responses import JSONResponse  # noqa: E402
from fastapi.exceptions import RequestValidationError  # noqa: E402
from slowapi import _rate_limit_exceeded_handler  # noqa: E402
from slowapi.errors import RateLimitExceeded  # noqa: E402

from .dependencies import get_store, _logger, limiter  # noqa: E402

# ── Config ──────────────────────────────────────────────────────
STATE_PATH = os.path.normpath(os.environ.get(
    'SHIFTPLAN_STATE_PATH',
    os.path.join(os.path.dirname(__file__), '..', 'data', 'shiftplan_state.json'),
))

ALLOWED_ORIGINS = [
    o.strip() for o in os.environ.get('ALLOWED_ORIGINS', '').split(',') if o.strip()
] or ['http://localhost:5173', 'http://localhost:8000']

_API_VERSION = "1.0.0"
_SERVICE_NAME = "ShiftPlan API"

_OPENAPI_TAGS = [
    {"name": "Health", "description": "Service status and version"},
    {"name": "Employees", "description": "Employees and their federal state"},
    {"name": "Shifts", "description": "Shift definitions"},
    {"name": "Holidays", "description": "Public holidays per federal state"},
    {"name": "Schedule", "description": "Per-day entries: shift, absence, hour override"},
    {"name": "Statistics", "description": "Hour accounts, weekend workload, vacation balance"},
    {"name": "Export", "description": "Spreadsheet downloads"},
    {"name": "State", "description": "Whole-plan snapshot, import and reset"},
    {"name": "Advisor", "description": "External text-generation service"},
    {"name": "Events", "description": "Server-sent change notifications"},
]

# pydantic error type -> German message shown to the user
_VALIDATION_MESSAGES = {
    "missing": "Pflichtfeld fehlt",
    "int_parsing": "Muss eine ganze Zahl sein",
    "float_parsing": "Muss eine Zahl sein",
    "date_parsing": "Muss ein Datum im Format YYYY-MM-DD sein",
    "date_from_datetime_parsing": "Muss ein Datum im Format YYYY-MM-DD sein",
    "enum": "Ungültiger Wert",
    "greater_than_equal": "Darf nicht negativ sein",
    "less_than_equal": "Wert zu groß",
    "string_too_short": "Eingabe zu kurz",
    "string_too_long": "Eingabe zu lang",
    "string_pattern_mismatch": "Ungültiges Format",
    "list_type": "Muss eine Liste sein",
    "model_type": "Muss ein Objekt sein",
}
_INTERNAL_ERROR = "Interner Serverfehler. Bitte versuche es erneut."


@asynccontextmanager
async def lifespan(app: FastAPI):
    # A corrupt state file must stop the service here, not on the first request
    store = get_store()
    _logger.info(
        "ShiftPlan API started: state=%s employees=%d shifts=%d entries=%d",
        STATE_PATH, len(store.list_employees()), len(store.list_shifts()), len(store.list_entries()),
    )
    yield
    _logger.info("ShiftPlan API stopped")


app = FastAPI(
    lifespan=lifespan,
    title=_SERVICE_NAME,
    description=(
        "Shift and absence planning with German public holidays per federal state.\n\n"
        "Only days that carry a shift, an absence or an hour override are stored. "
        "Hour accounts are recomputed on every request."
    ),
    version=_API_VERSION,
    openapi_tags=_OPENAPI_TAGS,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type"],
)


@app.middleware("http")
async def security_headers_middleware(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    """One log line per request with status, duration and a short request id."""
    req_id = uuid.uuid4().hex[:8]
    start = time.perf_counter()
    response = await call_next(request)
    _logger.info(
        "req_id=%s %s %s -> %d (%d ms)",
        req_id, request.method, request.url.path, response.status_code,
        round((time.perf_counter() - start) * 1000),
    )
    response.headers["X-Request-ID"] = req_id
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Flatten pydantic errors into one German message: ``field: reason; ...``."""
    parts = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        reason = _VALIDATION_MESSAGES.get(err.get("type", ""), err.get("msg") or "Ungültiger Wert")
        parts.append(f"{field}: {reason}" if field else reason)
    return JSONResponse(status_code=422, content={"detail": "; ".join(parts) or "Ungültige Eingabe"})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    _logger.error(
        "Unhandled %s on %s %s: %s",
        type(exc).__name__, request.method, request.url.path,
        traceback.format_exc().splitlines()[-1],
    )
    return JSONResponse(status_code=500, content={"detail": _INTERNAL_ERROR})


# ── Routers ─────────────────────────────────────────────────────
from .routers import employees, master_data, schedule, reports, admin, advisor, events  # noqa: E402

for _module in (employees, master_data, schedule, reports, admin, advisor, events):
    app.include_router(_module.router)


# ── Service info ────────────────────────────────────────────────

@app.get("/api/health", tags=["Health"], summary="Health check",
         description="Service status, version, uptime and whether the plan state could be read.")
def health():
    try:
        snap = get_store().snapshot()
        state = {"status": "loaded", "employees": len(snap.employees), "entries": len(snap.entries)}
    except Exception as e:
        _logger.error("Health check could not read plan state: %s", e)
        state = {"status": "error"}
    return {
        "status": "ok",
        "version": _API_VERSION,
        "uptime_seconds": round(time.time() - _STARTED_AT, 1),
        "state": state,
    }


@app.get("/api/version", tags=["Health"], summary="API version")
def version():
    return {"version": _API_VERSION, "service": _SERVICE_NAME}


@app.get("/api", tags=["Health"], summary="API root")
def root():
    return {"service": _SERVICE_NAME, "version": _API_VERSION, "backend": "json"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("api.main:app", host="0.0.0.0", port=int(os.environ.get('PORT', '8000')))
