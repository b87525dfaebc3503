"""API routers."""

from .auth_routes import create_auth_routes
from .catalog_routes import create_catalog_routes
from .exam_routes import create_exam_routes
from .file_routes import create_file_routes
from .progress_routes import create_progress_routes
from .result_routes import create_result_routes

__all__ = [
    "create_auth_routes",
    "create_catalog_routes",
    "create_exam_routes",
    "create_file_routes",
    "create_progress_routes",
    "create_result_routes",
]
