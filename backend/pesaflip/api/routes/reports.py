"""Reports: yearly summary, monthly figures, expense breakdown, dashboard overview."""
import csv
import io
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from pesaflip.api.deps import get_db, get_current_user_id
from pesaflip.core.exceptions import success_response
from pesaflip.schemas.wallet import TransactionRecord
from pesaflip.services import report_service

router = APIRouter()

YearParam = Query(None, ge=2000, le=2100)


@router.get("/summary")
def summary(
    year: Optional[int] = YearParam,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return success_response(report_service.get_summary(db, user_id, year))


@router.get("/monthly")
def monthly(
    year: Optional[int] = YearParam,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return success_response(report_service.get_monthly(db, user_id, year))


@router.get("/monthly/export/csv")
def export_monthly_csv(
    year: Optional[int] = YearParam,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Export the monthly report as CSV file."""
    rows = report_service.get_monthly(db, user_id, year)
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(["Month", "Revenue", "Expenses", "Profit"])
    for row in rows:
        writer.writerow([row["month"], f"{row['revenue']:.2f}", f"{row['expenses']:.2f}", f"{row['profit']:.2f}"])

    output.seek(0)
    label = year or "current"
    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=monthly_report_{label}.csv"},
    )


@router.get("/expense-breakdown")
def expense_breakdown(
    year: Optional[int] = YearParam,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return success_response(report_service.get_expense_breakdown(db, user_id, year))


@router.get("/overview")
def overview(db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    data = report_service.get_overview(db, user_id)
    data["recent_transactions"] = [TransactionRecord.model_validate(t) for t in data["recent_transactions"]]
    return success_response(data)
