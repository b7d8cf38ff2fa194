"""Plan state router: snapshot export, import, reset to seed data, backups."""
import os
import shutil
from datetime import datetime as _backup_dt
from fastapi import APIRouter, HTTPException
from fastapi.responses import Response
from shiftlib.models import PlanState
from ..dependencies import get_store, _logger, _sanitize_500
from .events import broadcast

router = APIRouter()

_BACKUP_MAX_COUNT = 7
_BACKUP_PREFIX = 'shiftplan_backup_'


def _get_backup_dir() -> str:
    store = get_store()
    if store.state_file is None:
        return ''
    backup_dir = os.path.join(os.path.dirname(store.state_file.path), 'backups')
    os.makedirs(backup_dir, exist_ok=True)
    return backup_dir


def _list_backups(backup_dir: str) -> list[str]:
    return sorted(
        [f for f in os.listdir(backup_dir) if f.startswith(_BACKUP_PREFIX) and f.endswith('.json')],
        reverse=True,
    )


def _rotate_backups(backup_dir: str, max_count: int = _BACKUP_MAX_COUNT):
    """Keep only the newest max_count backup files."""
    for old in _list_backups(backup_dir)[max_count:]:
        try:
            os.remove(os.path.join(backup_dir, old))
            _logger.info("Rotated old backup: %s", old)
        except OSError as e:
            _logger.warning("Could not remove old backup %s: %s", old, e)


def create_backup() -> str | None:
    """Copy the current state file into the backup dir. Returns the filename or None."""
    store = get_store()
    if store.state_file is None or not store.state_file.exists():
        return None
    backup_dir = _get_backup_dir()
    ts = _backup_dt.now().strftime('%Y%m%d_%H%M%S_%f')
    filename = f"{_BACKUP_PREFIX}{ts}.json"
    shutil.copy2(store.state_file.path, os.path.join(backup_dir, filename))
    _rotate_backups(backup_dir)
    _logger.info("Backup created: %s", filename)
    return filename


@router.get("/api/state", tags=["State"], summary="Full plan snapshot",
            description="Employees, shift definitions and all schedule entries in one document.")
def get_state():
    return get_store().snapshot()


@router.get("/api/state/download", tags=["State"], summary="Download plan snapshot as JSON file")
def download_state():
    data = get_store().snapshot().model_dump_json(indent=2)
    ts = _backup_dt.now().strftime('%Y%m%d_%H%M')
    return Response(
        content=data.encode('utf-8'),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="shiftplan_{ts}.json"'},
    )


@router.put("/api/state", tags=["State"], summary="Import plan snapshot",
            description=(
                "Replace the whole plan with the uploaded snapshot. The previous state file "
                "is kept as a backup. Entries without any content are dropped on import."
            ))
def import_state(body: PlanState):
    try:
        backup = create_backup()
    except OSError as e:
        raise _sanitize_500(e, "state import backup")
    try:
        get_store().replace_state(body)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    _logger.warning("Plan state replaced by import (backup=%s)", backup)
    broadcast("state_replaced", {"backup": backup})
    return {"ok": True, "backup": backup,
            "employees": len(body.employees), "shifts": len(body.shifts)}


@router.post("/api/state/reset", tags=["State"], summary="Reset plan to seed data")
def reset_state():
    try:
        backup = create_backup()
    except OSError as e:
        raise _sanitize_500(e, "state reset backup")
    get_store().reset()
    _logger.warning("Plan state reset to seed data (backup=%s)", backup)
    broadcast("state_replaced", {"backup": backup})
    return {"ok": True, "backup": backup}


@router.get("/api/state/backups", tags=["State"], summary="List state backups")
def list_backups():
    backup_dir = _get_backup_dir()
    if not backup_dir:
        return {"backups": []}
    result = []
    for fname in _list_backups(backup_dir):
        fpath = os.path.join(backup_dir, fname)
        result.append({
            "filename": fname,
            "size": os.path.getsize(fpath),
            "created": _backup_dt.fromtimestamp(os.path.getmtime(fpath)).isoformat(timespec='seconds'),
        })
    return {"backups": result}
