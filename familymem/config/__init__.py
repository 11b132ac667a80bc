"""Configuration system"""

from .manager import ConfigManager
from .settings import (
    DatabaseSettings,
    ExportSettings,
    FamilyMemSettings,
    ImportSettings,
    LoggingSettings,
    Mem0Settings,
)

__all__ = [
    "ConfigManager",
    "FamilyMemSettings",
    "DatabaseSettings",
    "Mem0Settings",
    "ImportSettings",
    "ExportSettings",
    "LoggingSettings",
]
