"""Configuration management for Settlr."""

from .config_manager import ConfigurationManager
from .log_setup import configure_logging
from .models import (
    ConfigurationError,
    PromptTemplate,
    Settings,
    ValidationResult,
)

__all__ = [
    "ConfigurationManager",
    "configure_logging",
    "ConfigurationError",
    "PromptTemplate",
    "Settings",
    "ValidationResult",
]
