"""
Cash Register Reports Router

FastAPI router for the cash register report endpoints.
"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from app.common.exceptions import ValidationError
from app.database.database import get_db
from ..services.cash_registers import CashRegisterReportService
from ..schemas import (
    MultipleBranchesResponse,
    ClosingReportResponse,
    ClosingAuditResponse
)


router = APIRouter(prefix="/reports/cash-registers", tags=["Reports"])


def _validate_period(from_date: Optional[date], to_date: Optional[date]) -> None:
    if from_date and to_date and to_date < from_date:
        raise ValidationError("to_date must be greater than or equal to from_date")


@router.get("/multiple-branches", response_model=MultipleBranchesResponse)
async def get_multiple_branches_summary(
    branch_ids: List[UUID] = Query(..., description="Branches to consolidate"),
    from_date: Optional[date] = Query(None, description="Sessions opened from this date"),
    to_date: Optional[date] = Query(None, description="Sessions opened up to this date"),
    status: Optional[str] = Query(None, pattern="^(open|closed)$", description="Filter by status"),
    db: Session = Depends(get_db)
):
    """Consolidated balance, income and expenses across branches."""
    _validate_period(from_date, to_date)
    service = CashRegisterReportService(db=db, branch_ids=branch_ids)
    return service.get_multiple_branches_summary(
        from_date=from_date,
        to_date=to_date,
        status=status
    )


@router.get("/closing-audit", response_model=ClosingAuditResponse)
async def get_closing_audit(
    from_date: Optional[date] = Query(None, description="Closures from this date"),
    to_date: Optional[date] = Query(None, description="Closures up to this date"),
    branch_id: Optional[UUID] = Query(None, description="Filter by branch"),
    db: Session = Depends(get_db)
):
    """Closed registers with their reconciliation and accuracy summary."""
    _validate_period(from_date, to_date)
    service = CashRegisterReportService(
        db=db,
        branch_ids=[branch_id] if branch_id else None
    )
    return service.get_closing_audit(from_date=from_date, to_date=to_date)


@router.get("/{cash_register_id}/closing", response_model=ClosingReportResponse)
async def get_closing_report(
    cash_register_id: UUID = Path(..., description="Cash register ID"),
    db: Session = Depends(get_db)
):
    """Closing report of a cash register, recomputed from its movements."""
    service = CashRegisterReportService(db=db)
    return service.get_closing_report(cash_register_id)
