"""
Utility modules for the GEO tracker
"""

from .database import (
    get_db,
    get_db_context,
    init_db,
    close_db,
)

__all__ = [
    # Database
    "get_db",
    "get_db_context",
    "init_db",
    "close_db",
]
