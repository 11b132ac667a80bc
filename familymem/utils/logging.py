"""
Centralized logging configuration for familymem
"""

import sys
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from .exceptions import ConfigurationError


class LoggingManager:
    """Configures loguru sinks from LoggingSettings"""

    _initialized = False
    _current_config: Optional[Any] = None

    @classmethod
    def setup_logging(cls, settings: Any, verbose: bool = False) -> None:
        """
        Setup logging configuration

        Args:
            settings: LoggingSettings instance
            verbose: Force DEBUG level on the console sink
        """
        try:
            logger.remove()

            level = "DEBUG" if verbose else settings.level.upper()

            if settings.structured_logging:
                logger.add(sys.stderr, level=level, serialize=True)
            else:
                logger.add(
                    sys.stderr,
                    level=level,
                    format=(
                        "<green>{time:HH:mm:ss}</green> | "
                        "<level>{level: <8}</level> | "
                        "<cyan>{name}</cyan> - <level>{message}</level>"
                    ),
                    colorize=True,
                )

            if settings.log_to_file:
                log_path = Path(settings.log_file_path)
                log_path.parent.mkdir(parents=True, exist_ok=True)
                logger.add(
                    str(log_path),
                    level=settings.level.upper(),
                    rotation=settings.log_rotation,
                    retention=settings.log_retention,
                    serialize=settings.structured_logging,
                    encoding="utf-8",
                )

            cls._initialized = True
            cls._current_config = settings
            logger.debug(f"Logging configured at level {level}")

        except (ValueError, TypeError) as e:
            raise ConfigurationError(f"Failed to setup logging: {e}", cause=e)

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._initialized

    @classmethod
    def set_level(cls, level: str) -> None:
        """Change the level, keeping the rest of the current configuration"""
        if cls._current_config is None:
            raise ConfigurationError("Logging has not been set up yet")
        settings = cls._current_config.model_copy(update={"level": level})
        cls.setup_logging(settings)


def get_logger(name: str = "familymem"):
    """Get a logger bound to a component name"""
    return logger.bind(name=name)
