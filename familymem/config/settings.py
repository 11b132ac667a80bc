"""
Pydantic-based configuration settings for familymem
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from ..utils.pydantic_models import DuplicateMatch, ExportFormat, ImportMode


VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class DatabaseSettings(BaseModel):
    """Local memory store settings"""

    connection_string: str = Field(
        default="sqlite:///familymem.db", description="SQLAlchemy connection string"
    )
    echo_sql: bool = Field(default=False, description="Echo SQL statements to logs")

    @field_validator("connection_string")
    @classmethod
    def validate_connection_string(cls, v: str) -> str:
        if "://" not in v:
            raise ValueError(f"Invalid database connection string: {v}")
        return v


class Mem0Settings(BaseModel):
    """Remote Mem0 API settings"""

    api_url: Optional[str] = Field(default=None, description="Base URL of the Mem0 API")
    api_key: Optional[str] = Field(default=None, description="Bearer token")
    timeout: float = Field(default=5.0, gt=0, description="Request timeout in seconds")

    @property
    def is_configured(self) -> bool:
        return bool(self.api_url and self.api_key)


class ImportSettings(BaseModel):
    """Defaults for ImportOptions"""

    skip_duplicates: bool = True
    validate_before_import: bool = True
    import_mode: ImportMode = ImportMode.MERGE
    duplicate_match: DuplicateMatch = DuplicateMatch.EXACT


class ExportSettings(BaseModel):
    """Defaults for exports"""

    source: str = Field(default="mem0-dashboard", description="Envelope source tag")
    default_format: ExportFormat = ExportFormat.JSON_PRETTY
    output_dir: str = "."
    load_limit: Optional[int] = Field(
        default=None, ge=1, description="Cap on memories loaded for export, None loads all"
    )


class LoggingSettings(BaseModel):
    """Logging configuration"""

    level: str = Field(default="INFO", description="Logging level")
    log_to_file: bool = False
    log_file_path: str = "logs/familymem.log"
    log_rotation: str = "10 MB"
    log_retention: str = "30 days"
    structured_logging: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        if v.upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()


class FamilyMemSettings(BaseModel):
    """Main familymem configuration"""

    version: str = "1.0.0"
    user_id: str = Field(default="default_user", description="Owner of the memories")
    family: str = Field(default="mem0", description="AI family member id")

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    mem0: Mem0Settings = Field(default_factory=Mem0Settings)
    imports: ImportSettings = Field(default_factory=ImportSettings)
    exports: ExportSettings = Field(default_factory=ExportSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_env(cls, env_file: Optional[Union[str, Path]] = None) -> "FamilyMemSettings":
        """Load settings from environment variables (and a .env file if present)"""
        load_dotenv(dotenv_path=env_file)

        settings: Dict[str, Any] = {}

        if os.getenv("FAMILYMEM_USER_ID"):
            settings["user_id"] = os.getenv("FAMILYMEM_USER_ID")
        if os.getenv("FAMILYMEM_FAMILY"):
            settings["family"] = os.getenv("FAMILYMEM_FAMILY")

        database: Dict[str, Any] = {}
        if os.getenv("FAMILYMEM_DATABASE_URL"):
            database["connection_string"] = os.getenv("FAMILYMEM_DATABASE_URL")
        if os.getenv("FAMILYMEM_ECHO_SQL"):
            database["echo_sql"] = _env_bool("FAMILYMEM_ECHO_SQL")
        if database:
            settings["database"] = database

        mem0: Dict[str, Any] = {}
        if os.getenv("MEM0_API_URL"):
            mem0["api_url"] = os.getenv("MEM0_API_URL")
        if os.getenv("MEM0_API_KEY"):
            mem0["api_key"] = os.getenv("MEM0_API_KEY")
        if os.getenv("MEM0_TIMEOUT"):
            mem0["timeout"] = float(os.getenv("MEM0_TIMEOUT"))
        if mem0:
            settings["mem0"] = mem0

        imports: Dict[str, Any] = {}
        if os.getenv("FAMILYMEM_IMPORT_MODE"):
            imports["import_mode"] = os.getenv("FAMILYMEM_IMPORT_MODE").lower()
        if os.getenv("FAMILYMEM_SKIP_DUPLICATES"):
            imports["skip_duplicates"] = _env_bool("FAMILYMEM_SKIP_DUPLICATES")
        if os.getenv("FAMILYMEM_DUPLICATE_MATCH"):
            imports["duplicate_match"] = os.getenv("FAMILYMEM_DUPLICATE_MATCH").lower()
        if imports:
            settings["imports"] = imports

        if os.getenv("FAMILYMEM_EXPORT_SOURCE"):
            settings["exports"] = {"source": os.getenv("FAMILYMEM_EXPORT_SOURCE")}

        logging_settings: Dict[str, Any] = {}
        if os.getenv("FAMILYMEM_LOG_LEVEL"):
            logging_settings["level"] = os.getenv("FAMILYMEM_LOG_LEVEL")
        if os.getenv("FAMILYMEM_LOG_TO_FILE"):
            logging_settings["log_to_file"] = _env_bool("FAMILYMEM_LOG_TO_FILE")
        if logging_settings:
            settings["logging"] = logging_settings

        return cls(**settings)

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "FamilyMemSettings":
        """Load settings from a JSON file"""
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        return cls(**data)

    def to_file(self, config_path: Union[str, Path]) -> None:
        """Save settings as JSON"""
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2)


def _env_bool(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes", "on")
