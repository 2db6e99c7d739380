"""
Services package for Reports module
"""

from .cash_registers import CashRegisterReportService

__all__ = [
    "CashRegisterReportService"
]
