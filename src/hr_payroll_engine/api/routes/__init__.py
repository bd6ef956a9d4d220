"""API routes."""

from hr_payroll_engine.api.routes.compoffs import router as compoffs_router
from hr_payroll_engine.api.routes.employees import router as employees_router
from hr_payroll_engine.api.routes.health import router as health_router
from hr_payroll_engine.api.routes.leaves import router as leaves_router
from hr_payroll_engine.api.routes.payroll import router as payroll_router

__all__ = [
    "compoffs_router",
    "employees_router",
    "health_router",
    "leaves_router",
    "payroll_router",
]
