"""Reports router: monthly hour accounts, weekend workload, vacation balance, XLSX export."""
import io
from datetime import date as _date
from fastapi import APIRouter, Query, Request
from fastapi.responses import Response as _Response
from typing import Optional
import openpyxl
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from shiftlib.holidays import compute_holidays
from shiftlib.stats import monthly_report, vacation_overview
from ..dependencies import get_store, _check_month, _check_year, limiter

router = APIRouter()

_MONTH_NAMES_DE = ["Januar", "Februar", "März", "April", "Mai", "Juni",
                   "Juli", "August", "September", "Oktober", "November", "Dezember"]


def _xlsx_response(content: bytes, filename: str) -> _Response:
    return _Response(
        content=content,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _resolve_month(year: Optional[int], month: Optional[int]) -> tuple[int, int]:
    today = _date.today()
    year = today.year if year is None else year
    month = today.month if month is None else month
    _check_month(month)
    _check_year(year)
    return year, month


# ── Monthly statistics ───────────────────────────────────────
@router.get(
    "/api/statistics",
    tags=["Statistics"],
    summary="Monthly statistics",
    description=(
        "Return per-employee statistics for a given month.\n\n"
        "Each row contains target hours (8 h per weekday that is not a public holiday in the "
        "employee's federal state), actual hours, variance, vacation days and sick days. "
        "Defaults to the current year/month if not specified."
    ),
)
def get_statistics(
    year: Optional[int] = Query(None, description="Year (YYYY), defaults to current year"),
    month: Optional[int] = Query(None, description="Month (1-12), defaults to current month"),
):
    year, month = _resolve_month(year, month)
    report = monthly_report(get_store(), year, month)
    rows = []
    for emp in report['employees']:
        s = report['stats'][emp.id]
        rows.append({
            "employee_id": emp.id,
            "employee_name": emp.name,
            "region": emp.region.value,
            "target_hours": s.target_hours,
            "actual_hours": s.actual_hours,
            "variance": s.variance,
            "vacation_days": s.vacation_days,
            "sick_days": s.sick_days,
        })
    return rows


@router.get(
    "/api/statistics/weekend",
    tags=["Statistics"],
    summary="Weekend workload",
    description="Hours worked by all employees together on each Saturday and Sunday of the month.",
)
def get_weekend_hours(
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None),
):
    year, month = _resolve_month(year, month)
    weekend = monthly_report(get_store(), year, month)['weekend_hours']
    days = [{"date": d.isoformat(), "weekday": d.weekday(), "hours": h} for d, h in sorted(weekend.items())]
    return {"year": year, "month": month, "total_hours": sum(weekend.values()), "days": days}


@router.get(
    "/api/statistics/vacation",
    tags=["Statistics"],
    summary="Vacation balance",
    description="Vacation days taken in the year against each employee's yearly entitlement.",
)
def get_vacation_balance(year: Optional[int] = Query(None)):
    year = _date.today().year if year is None else year
    _check_year(year)
    state = get_store().snapshot()
    balances = vacation_overview(state.employees, state.entries, year)
    return [
        {**balances[emp.id].model_dump(), "employee_name": emp.name}
        for emp in state.employees
    ]


# ── Export ───────────────────────────────────────────────────
@router.get(
    "/api/export/statistics",
    tags=["Export"],
    summary="Export monthly statistics (XLSX)",
    description="Spreadsheet with target/actual hours per employee and the weekend workload row.",
)
@limiter.limit("10/minute")
def export_statistics(
    request: Request,
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None),
):
    year, month = _resolve_month(year, month)
    report = monthly_report(get_store(), year, month)

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = f"{_MONTH_NAMES_DE[month - 1]} {year}"
    thin = Side(border_style="thin", color="CBD5E1")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    header_font = Font(bold=True, color="FFFFFF", size=9)
    header_fill = PatternFill(fill_type="solid", fgColor="1E293B")

    headers = ["Mitarbeiter", "Bundesland", "Soll (h)", "Ist (h)", "+/-", "Urlaub", "Krank"]
    widths = [24, 22, 10, 10, 10, 8, 8]
    for c, (h, w) in enumerate(zip(headers, widths), start=1):
        cell = ws.cell(1, c, h)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal="left" if c <= 2 else "center")
        cell.border = border
        ws.column_dimensions[get_column_letter(c)].width = w

    negative = Font(color="DC2626", size=9)
    positive = Font(color="059669", size=9)
    for r, emp in enumerate(report['employees'], start=2):
        s = report['stats'][emp.id]
        values = [emp.name, emp.region.display_name, s.target_hours, s.actual_hours,
                  s.variance, s.vacation_days, s.sick_days]
        for c, v in enumerate(values, start=1):
            cell = ws.cell(r, c, v)
            cell.border = border
            if c > 2:
                cell.alignment = Alignment(horizontal="center")
        ws.cell(r, 5).font = positive if s.variance >= 0 else negative

    # Weekend workload on a second sheet
    ws2 = wb.create_sheet("Wochenendarbeit")
    for c, h in enumerate(["Datum", "Tag", "Stunden"], start=1):
        cell = ws2.cell(1, c, h)
        cell.font = header_font
        cell.fill = header_fill
        cell.border = border
    ws2.column_dimensions['A'].width = 12
    for r, (d, hours) in enumerate(sorted(report['weekend_hours'].items()), start=2):
        ws2.cell(r, 1, d.strftime('%d.%m.%Y')).border = border
        ws2.cell(r, 2, "Sa" if d.weekday() == 5 else "So").border = border
        ws2.cell(r, 3, hours).border = border

    # Holidays of every federal state represented in the plan
    ws3 = wb.create_sheet("Feiertage")
    for c, (title, w) in enumerate(zip(["Bundesland", "Datum", "Feiertag"], [22, 12, 28]), start=1):
        cell = ws3.cell(1, c, title)
        cell.font = header_font
        cell.fill = header_fill
        cell.border = border
        ws3.column_dimensions[get_column_letter(c)].width = w
    row = 2
    for region in sorted({emp.region for emp in report['employees']}, key=lambda r: r.value):
        for h in compute_holidays(year, region):
            if h.date.month != month:
                continue
            ws3.cell(row, 1, region.display_name).border = border
            ws3.cell(row, 2, h.date.strftime('%d.%m.%Y')).border = border
            ws3.cell(row, 3, h.name).border = border
            row += 1

    buf = io.BytesIO()
    wb.save(buf)
    return _xlsx_response(buf.getvalue(), f"statistik_{year:04d}-{month:02d}.xlsx")
