from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from datetime import date, datetime
from io import BytesIO
from typing import Optional
import logging
import re

from database import get_db
from crud import billing_reports as crud_billing_reports
from crud.app_config import get_reporting_timezone
from crud.billing_records import get_record_store
from schemas.billing_reports import Report, AnalyticsBundle, BillingOverview
from utils.periods import current_year_month
from utils.tenancy import get_tenant_id, get_now

router = APIRouter(
    prefix="/billing",
    tags=["Billing Reports"],
)
logger = logging.getLogger(__name__)


def get_report_timezone(db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    return get_reporting_timezone(db, tenant_id)


async def _run_report(coro):
    """Await an engine call and translate its failures into HTTP errors."""
    try:
        return await coro
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except crud_billing_reports.ReportTimeoutError as e:
        logger.error(f"Billing report timed out: {e}")
        raise HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail=str(e))
    except Exception:
        logger.exception("Billing report failed")
        raise


async def _build_report(report_type, year, month, tenant_id, store, tz, now, start_date=None, end_date=None) -> Report:
    default_year, default_month = current_year_month(now, tz)
    return await _run_report(crud_billing_reports.compute_report(
        store,
        tenant_id,
        report_type,
        default_year if year is None else year,
        (default_month if month is None else month) if report_type == "monthly" else None,
        start=start_date,
        end=end_date,
        tz=tz,
    ))


@router.get("/reports", response_model=Report)
async def get_billing_report(
    type: str = Query("monthly", pattern="^(monthly|yearly|custom)$"),
    year: Optional[int] = None,
    month: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    tenant_id: str = Depends(get_tenant_id),
    store=Depends(get_record_store),
    tz=Depends(get_report_timezone),
    now: datetime = Depends(get_now),
):
    return await _build_report(type, year, month, tenant_id, store, tz, now, start_date, end_date)


@router.get("/reports/export")
async def export_billing_report(
    type: str = Query("monthly", pattern="^(monthly|yearly|custom)$"),
    year: Optional[int] = None,
    month: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    tenant_id: str = Depends(get_tenant_id),
    store=Depends(get_record_store),
    tz=Depends(get_report_timezone),
    now: datetime = Depends(get_now),
):
    report = await _build_report(type, year, month, tenant_id, store, tz, now, start_date, end_date)
    sections = crud_billing_reports.flatten_for_export(report)

    wb = Workbook()
    ws = wb.active
    ws.title = "Billing Report"
    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(start_color="1F4E78", end_color="1F4E78", fill_type="solid")

    for section in sections:
        ws.append([section.title.upper()])
        for cell in ws[ws.max_row]:
            cell.font = header_font
            cell.fill = header_fill
        for row in section.rows:
            ws.append([row.label, row.value, row.count])
        ws.append([])

    for col_idx, width in enumerate((28, 22, 10), start=1):
        ws.column_dimensions[get_column_letter(col_idx)].width = width

    excel_file = BytesIO()
    wb.save(excel_file)
    excel_file.seek(0)

    slug = re.sub(r"[^A-Za-z0-9]+", "-", report.period.display_text).strip("-")
    filename = f"billing-report-{slug}.xlsx"
    headers = {
        'Content-Disposition': f'attachment; filename="{filename}"'
    }
    return StreamingResponse(excel_file, media_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet', headers=headers)


@router.get("/analytics", response_model=AnalyticsBundle)
async def get_billing_analytics(
    year: Optional[int] = None,
    month: Optional[int] = None,
    months: int = Query(12, ge=1, le=120),
    tenant_id: str = Depends(get_tenant_id),
    store=Depends(get_record_store),
    tz=Depends(get_report_timezone),
    now: datetime = Depends(get_now),
):
    default_year, default_month = current_year_month(now, tz)
    return await _run_report(crud_billing_reports.compute_analytics(
        store,
        tenant_id,
        default_year if year is None else year,
        default_month if month is None else month,
        months,
        tz=tz,
    ))


@router.get("/overview", response_model=BillingOverview)
async def get_billing_overview(
    tenant_id: str = Depends(get_tenant_id),
    store=Depends(get_record_store),
    tz=Depends(get_report_timezone),
    now: datetime = Depends(get_now),
):
    return await _run_report(crud_billing_reports.compute_overview(store, tenant_id, now, tz=tz))
