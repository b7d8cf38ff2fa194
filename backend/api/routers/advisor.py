"""Advisor router: hand the plan to the external text-generation service."""
from fastapi import APIRouter, HTTPException, Query, Request, Depends
from pydantic import BaseModel, Field
from shiftlib.advisor import AdvisorClient, AdvisorError, AdvisorNotConfigured
from shiftlib.models import Region
from ..dependencies import get_advisor, get_store, _check_year, _logger, limiter

router = APIRouter()


class AnalyzeRequest(BaseModel):
    prompt: str = Field(..., min_length=1, max_length=4000)


def _ask(fn, *args) -> str:
    try:
        return fn(*args)
    except AdvisorNotConfigured as e:
        raise HTTPException(status_code=503, detail=str(e))
    except AdvisorError as e:
        _logger.error("Advisor failure: %s", e)
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/api/advisor/analyze", tags=["Advisor"], summary="Analyse the plan",
             description="Send the full plan and a free-text question to the text-generation service.")
@limiter.limit("5/minute")
def analyze_plan(request: Request, body: AnalyzeRequest, advisor: AdvisorClient = Depends(get_advisor)):
    if not body.prompt.strip():
        raise HTTPException(status_code=400, detail="Feld 'prompt' darf nicht leer sein")
    text = _ask(advisor.analyze_plan, get_store().snapshot(), body.prompt)
    return {"ok": True, "response": text}


@router.get("/api/advisor/holidays", tags=["Advisor"], summary="Ask about statutory holidays",
            description="Free-text answer about a federal state's holidays; use /api/holidays for the computed list.")
@limiter.limit("5/minute")
def describe_holidays(
    request: Request,
    year: int = Query(...),
    region: Region = Query(...),
    advisor: AdvisorClient = Depends(get_advisor),
):
    _check_year(year)
    return {"ok": True, "response": _ask(advisor.describe_holidays, year, region)}
