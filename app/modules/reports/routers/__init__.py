"""
Routers package for Reports module
"""

from .cash_registers import router as cash_registers_router

__all__ = [
    "cash_registers_router"
]
