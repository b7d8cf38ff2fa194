"""
Shared test fixtures for the ShiftPlan backend tests.
"""
import os
import sys
import pytest

# ── Python path setup ──────────────────────────────────────────────────────────
_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)


# ── Core fixtures ──────────────────────────────────────────────────────────────

@pytest.fixture
def store():
    """In-memory store seeded with the default employees and shifts, no state file."""
    from shiftlib.defaults import default_state
    from shiftlib.store import ScheduleStore
    return ScheduleStore.from_state(default_state())


@pytest.fixture
def empty_store():
    from shiftlib.models import PlanState
    from shiftlib.store import ScheduleStore
    return ScheduleStore.from_state(PlanState())


# ── HTTP fixtures ──────────────────────────────────────────────────────────────

@pytest.fixture(scope="session")
def app():
    """Return the FastAPI app with rate limiting switched off."""
    from api.main import app as _app
    from api.dependencies import limiter
    limiter.enabled = False
    return _app


@pytest.fixture
def state_path(tmp_path):
    """Function-scoped: fresh state file location, patched into api.main.STATE_PATH."""
    import api.main as main_module
    from api.dependencies import reset_store
    path = str(tmp_path / "data" / "shiftplan_state.json")
    original = main_module.STATE_PATH
    main_module.STATE_PATH = path
    reset_store()
    yield path
    main_module.STATE_PATH = original
    reset_store()


@pytest.fixture
def client(state_path, app):
    """Function-scoped TestClient against a freshly seeded plan."""
    from starlette.testclient import TestClient
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


@pytest.fixture
def lenient_client(state_path, app):
    """TestClient that turns server exceptions into 500 responses."""
    from starlette.testclient import TestClient
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
