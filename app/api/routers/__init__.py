"""
app/api/routers package marker.
"""

from app.api.routers.descriptions import router as descriptions_router
from app.api.routers.export import router as export_router
from app.api.routers.validation import router as validation_router

__all__ = [
    "descriptions_router",
    "export_router",
    "validation_router",
]
