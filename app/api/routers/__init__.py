"""
app/api/routers package marker.
"""

from app.api.routers.automation import router as automation_router
from app.api.routers.console import router as console_router
from app.api.routers.dashboard import router as dashboard_router
from app.api.routers.imports import router as imports_router

__all__ = [
    "automation_router",
    "console_router",
    "dashboard_router",
    "imports_router",
]
