"""
Configuration manager for familymem
"""

import os
from pathlib import Path
from typing import Any, Optional, Union

from loguru import logger

from ..utils.exceptions import ConfigurationError
from .settings import FamilyMemSettings


class ConfigManager:
    """Central configuration manager for familymem"""

    _instance: Optional["ConfigManager"] = None
    _settings: Optional[FamilyMemSettings] = None

    def __new__(cls) -> "ConfigManager":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._settings is None:
            self._settings = FamilyMemSettings()

    def load_from_file(self, config_path: Union[str, Path]) -> None:
        """Load configuration from a JSON file"""
        try:
            self._settings = FamilyMemSettings.from_file(config_path)
            logger.info(f"Configuration loaded from file: {config_path}")
        except FileNotFoundError as e:
            raise ConfigurationError(str(e), cause=e)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid configuration in {config_path}: {e}", cause=e
            )

    def load_from_env(self, env_file: Optional[Union[str, Path]] = None) -> None:
        """Load configuration from environment variables"""
        try:
            self._settings = FamilyMemSettings.from_env(env_file)
            logger.info("Configuration loaded from environment variables")
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid configuration in environment: {e}", cause=e
            )

    def auto_load(self) -> None:
        """
        Load configuration from the first source that exists:

        1. FAMILYMEM_CONFIG_PATH
        2. ./familymem.json
        3. ~/.familymem/config.json
        4. environment variables
        """
        candidates = []
        env_path = os.getenv("FAMILYMEM_CONFIG_PATH")
        if env_path:
            candidates.append(Path(env_path))
        candidates.append(Path.cwd() / "familymem.json")
        candidates.append(Path.home() / ".familymem" / "config.json")

        for path in candidates:
            if path.exists():
                self.load_from_file(path)
                return

        logger.debug("No configuration file found, using environment")
        self.load_from_env()

    def get_settings(self) -> FamilyMemSettings:
        if self._settings is None:
            self._settings = FamilyMemSettings()
        return self._settings

    def update_setting(self, key_path: str, value: Any) -> None:
        """
        Update a single setting using dot notation (e.g. "imports.import_mode")
        """
        data = self.get_settings().model_dump()
        target = data
        keys = key_path.split(".")
        for key in keys[:-1]:
            if key not in target or not isinstance(target[key], dict):
                raise ConfigurationError(f"Unknown setting: {key_path}")
            target = target[key]
        if keys[-1] not in target:
            raise ConfigurationError(f"Unknown setting: {key_path}")
        target[keys[-1]] = value

        try:
            self._settings = FamilyMemSettings(**data)
        except ValueError as e:
            raise ConfigurationError(f"Invalid value for {key_path}: {e}", cause=e)

    def reset(self) -> None:
        """Restore defaults"""
        self._settings = FamilyMemSettings()
