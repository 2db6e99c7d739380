"""
Base service class for Reports module

Provides common functionality for all report services including
database session management, branch filtering, and common queries.
"""

from datetime import date
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.modules.cash.models import CashRegister, CashMovement
from app.modules.cash.services import date_range_filter, resolve_cash_method_name


class BaseReportService:
    """Base service class for all report services"""

    def __init__(self, db: Session, branch_ids: Optional[Iterable[UUID]] = None):
        self.db = db
        self.branch_ids: Optional[List[UUID]] = (
            list(dict.fromkeys(branch_ids)) if branch_ids is not None else None
        )
        self._cash_method_name: Optional[str] = None

    @property
    def cash_method_name(self) -> str:
        """Cash bucket label, resolved once per report"""
        if self._cash_method_name is None:
            self._cash_method_name = resolve_cash_method_name(self.db)
        return self._cash_method_name

    def _get_base_cash_register_query(self):
        """Get base query for cash registers with branch filtering"""
        query = self.db.query(CashRegister)
        if self.branch_ids is not None:
            query = query.filter(CashRegister.branch_id.in_(self.branch_ids))
        return query

    def _get_base_cash_movement_query(self):
        """Get base query for cash movements of in-scope registers"""
        query = self.db.query(CashMovement).join(
            CashRegister, CashMovement.cash_register_id == CashRegister.id
        )
        if self.branch_ids is not None:
            query = query.filter(CashRegister.branch_id.in_(self.branch_ids))
        return query

    def _apply_date_filter(self, query, date_field, start_date: Optional[date],
                           end_date: Optional[date]):
        """Apply inclusive date range filter to a query"""
        for condition in date_range_filter(date_field, start_date, end_date):
            query = query.filter(condition)
        return query
