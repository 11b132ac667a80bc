"""
Database layer: local memory store and the export/import pipelines
"""

from .export_import import ExportManager, ImportManager, export_filename
from .sqlalchemy_manager import SQLAlchemyDatabaseManager
from .sqlalchemy_store import SQLAlchemyMemoryStore

__all__ = [
    "ExportManager",
    "ImportManager",
    "export_filename",
    "SQLAlchemyDatabaseManager",
    "SQLAlchemyMemoryStore",
]
