"""
Pydantic schemas for Reports module

Defines request and response models for the cash register report endpoints.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.modules.cash.schemas import CashRegisterReport, ReconciliationOut


# Multi-branch Report Schemas
class BranchBreakdownItem(BaseModel):
    """Per-branch figures in the consolidated report"""
    branch_id: UUID
    balance: Decimal
    income: Decimal
    expenses: Decimal
    net: Decimal
    movement_count: int
    session_count: int
    is_open: bool


class MultipleBranchesResponse(BaseModel):
    """Response for the consolidated multi-branch report"""
    period_start: Optional[date]
    period_end: Optional[date]
    total_balance: Decimal
    total_income: Decimal
    total_expenses: Decimal
    net: Decimal
    movement_count: int
    open_sessions: int
    closed_sessions: int
    open_branches: int
    branches: List[BranchBreakdownItem]


# Closing Report Schemas
class ClosingReportResponse(CashRegisterReport):
    """Closing report of a single cash register (recomputed on every call)"""
    generated_at: datetime


class ClosingAuditItem(BaseModel):
    """Individual closed session in the closing audit report"""
    cash_register_id: UUID
    branch_id: UUID
    opened_at: datetime
    closed_at: datetime
    initial_amount: Decimal
    movement_count: int
    reconciliation: ReconciliationOut


class ClosingAuditResponse(BaseModel):
    """Response for the closing audit report"""
    period_start: Optional[date]
    period_end: Optional[date]
    closures: List[ClosingAuditItem]
    total_closures: int
    matched_count: int
    surplus_count: int
    shortfall_count: int
    total_surplus: Decimal
    total_shortfall: Decimal
    total_absolute_difference: Decimal
    accuracy_rate: Decimal = Field(description="Percentage of matched closures")
