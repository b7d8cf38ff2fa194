"""
JSON state file for the plan (employees, shifts, entries).

The whole plan is rewritten on every mutation. A missing file means "no plan
yet"; a file that exists but cannot be parsed or validated is an error, never
silently replaced by defaults.
"""
import json
import logging
import os
import tempfile
from typing import Optional

from pydantic import ValidationError

from .models import PlanState

_logger = logging.getLogger(__name__)


class StateFileError(ValueError):
    """The state file exists but does not contain a valid plan."""


class StateFile:
    def __init__(self, path: str):
        self.path = os.path.normpath(path)

    def exists(self) -> bool:
        return os.path.exists(self.path)

    def load(self) -> Optional[PlanState]:
        if not self.exists():
            return None
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StateFileError(f"Planungsdatei {self.path} ist nicht lesbar: {e}") from e
        try:
            return PlanState.model_validate(raw)
        except ValidationError as e:
            raise StateFileError(
                f"Planungsdatei {self.path} hat eine ungültige Struktur: {e.error_count()} Fehler"
            ) from e

    def save(self, state: PlanState) -> None:
        """Write atomically: temp file in the same directory, then rename."""
        directory = os.path.dirname(self.path) or '.'
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix='.shiftplan-', suffix='.json', dir=directory)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(state.model_dump(mode='json'), f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
        _logger.debug("State saved to %s (%d entries)", self.path, len(state.entries))
