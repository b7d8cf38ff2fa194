"""
Client for the external text-generation service ("KI-Assistent").

The plan is handed over as JSON inside the prompt; the answer comes back as
free text and is passed through without interpretation.
"""
import json
import logging
import os
from typing import Optional

import requests

from .models import PlanState, Region

_logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = 'https://generativelanguage.googleapis.com/v1beta'
DEFAULT_MODEL = 'gemini-2.5-pro'
DEFAULT_TIMEOUT = 60.0
SEARCH_TOOLS = [{'google_search': {}}]

_ANALYSIS_TEMPLATE = (
    "Du bist ein erfahrener Personalplaner. Analysiere den folgenden Schichtplan "
    "und beantworte die Nutzeranfrage.\n\n"
    "PLAN-DATEN (JSON): {plan}\n"
    "NUTZERANFRAGE: {query}\n"
)

_HOLIDAY_TEMPLATE = (
    "Was sind die gesetzlichen Feiertage im Jahr {year} für das Bundesland {state} in Deutschland?"
)


class AdvisorError(RuntimeError):
    """The text-generation service could not produce an answer."""


class AdvisorNotConfigured(AdvisorError):
    pass


def build_analysis_prompt(state: PlanState, query: str) -> str:
    plan = json.dumps(state.model_dump(mode='json'), ensure_ascii=False)
    return _ANALYSIS_TEMPLATE.format(plan=plan, query=query.strip())


def build_holiday_prompt(year: int, region: Region) -> str:
    return _HOLIDAY_TEMPLATE.format(year=year, state=Region(region).display_name)


def _extract_text(payload: dict) -> str:
    parts = []
    for cand in payload.get('candidates') or []:
        for part in (cand.get('content') or {}).get('parts') or []:
            if part.get('text'):
                parts.append(part['text'])
        if parts:
            break
    return ''.join(parts)


class AdvisorClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key if api_key is not None else os.environ.get('ADVISOR_API_KEY', '')
        self.model = model or os.environ.get('ADVISOR_MODEL', DEFAULT_MODEL)
        self.base_url = (base_url or os.environ.get('ADVISOR_BASE_URL', DEFAULT_BASE_URL)).rstrip('/')
        self.timeout = timeout if timeout is not None else float(os.environ.get('ADVISOR_TIMEOUT', DEFAULT_TIMEOUT))
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def generate(self, prompt: str, tools: Optional[list] = None) -> str:
        if not self.configured:
            raise AdvisorNotConfigured("Kein API-Schlüssel für den KI-Assistenten konfiguriert")
        url = f"{self.base_url}/models/{self.model}:generateContent"
        body = {'contents': [{'parts': [{'text': prompt}]}]}
        if tools:
            body['tools'] = tools
        try:
            response = self.session.post(
                url,
                json=body,
                headers={'x-goog-api-key': self.api_key},
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            _logger.error("Advisor request timed out after %ss: %s", self.timeout, e)
            raise AdvisorError("Zeitüberschreitung beim KI-Assistenten") from e
        except requests.exceptions.RequestException as e:
            _logger.error("Advisor request failed: %s", e)
            raise AdvisorError("KI-Assistent nicht erreichbar") from e

        if response.status_code != 200:
            _logger.error("Advisor returned status %s: %s", response.status_code, response.text[:200])
            raise AdvisorError(f"KI-Assistent antwortete mit Status {response.status_code}")
        try:
            text = _extract_text(response.json())
        except ValueError as e:
            raise AdvisorError("Antwort des KI-Assistenten ist kein JSON") from e
        if not text:
            raise AdvisorError("KI-Assistent lieferte keine Antwort")
        return text

    def analyze_plan(self, state: PlanState, query: str) -> str:
        _logger.info("Advisor analysis: %d employees, %d entries, query=%d chars",
                     len(state.employees), len(state.entries), len(query))
        return self.generate(build_analysis_prompt(state, query))

    def describe_holidays(self, year: int, region: Region) -> str:
        # answer from a live web search, not only from model knowledge
        return self.generate(build_holiday_prompt(year, region), tools=SEARCH_TOOLS)
