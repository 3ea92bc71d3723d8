from __future__ import annotations

from io import BytesIO
from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.api.deps import get_db, current_user_id
from app.core.errors import NotFound
from app.models.report import Report
from app.schemas.report import ReportCreate, ReportListItem, ReportOut
from app.services.excel_export import build_report_excel
from app.services.pdf_report import build_report_pdf
from app.services.report_generator import generate_report

router = APIRouter(prefix="/reports", tags=["Reports"])


def _get_report(db: Session, report_id: int) -> Report:
    report = db.get(Report, report_id)
    if not report:
        raise NotFound("Report not found")
    return report


@router.post("", response_model=ReportOut, status_code=201)
def create_report(
    payload: ReportCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
):
    return generate_report(
        db,
        start_date=payload.start_date,
        end_date=payload.end_date,
        generated_by=user_id,
        type=payload.type,
        include_zero_sales=payload.include_zero_sales,
    )


@router.get("", response_model=List[ReportListItem])
def list_reports(
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
):
    return db.query(Report).order_by(Report.generated_at.desc(), Report.id.desc()).all()


@router.get("/{report_id}", response_model=ReportOut)
def get_report(
    report_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
):
    return _get_report(db, report_id)


@router.get("/{report_id}/export.xlsx")
def export_report_excel(
    report_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
):
    report = _get_report(db, report_id)
    bio = BytesIO()
    build_report_excel(bio, report)
    bio.seek(0)
    return StreamingResponse(
        bio,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="report_{report_id}.xlsx"'},
    )


@router.get("/{report_id}/export.pdf")
def export_report_pdf(
    report_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
):
    report = _get_report(db, report_id)
    return StreamingResponse(
        build_report_pdf(report),
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="report_{report_id}.pdf"'},
    )
