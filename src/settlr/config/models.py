"""Data models for configuration management."""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from ..storage.database import get_database_url


SUPPORTED_LLM_PROVIDERS = ("openai", "azure")


@dataclass
class PromptTemplate:
    """
    Override of the built-in system prompt for one document type.

    Loaded through ConfigurationManager; the last enabled template for a
    document type wins.
    """
    id: str
    document_type: str  # DocumentType value
    system_prompt: str
    temperature: Optional[float] = None
    enabled: bool = True
    description: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ValidationResult:
    """Result of configuration validation."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        """Add an error message."""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        """Add a warning message."""
        self.warnings.append(message)

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        """Merge another validation result into this one."""
        return ValidationResult(
            is_valid=self.is_valid and other.is_valid,
            errors=self.errors + other.errors,
            warnings=self.warnings + other.warnings
        )


class ConfigurationError(Exception):
    """Exception raised for configuration errors."""

    def __init__(self, message: str, validation_result: Optional[ValidationResult] = None):
        super().__init__(message)
        self.message = message
        self.validation_result = validation_result


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


@dataclass
class Settings:
    """
    Runtime settings for the Settlr service.

    Build with ``Settings.from_env()``; tests construct it directly.
    """
    database_url: str = "sqlite:///settlr.db"

    # Language model
    llm_provider: str = "openai"
    openai_api_key: str = ""
    azure_openai_base_url: str = ""
    azure_openai_api_key: str = ""
    llm_model: str = "gpt-4.1"
    llm_temperature: float = 0.7

    # Identity provider
    firebase_api_key: str = ""
    firebase_credentials: Optional[str] = None
    session_max_age_days: int = 5
    secure_cookies: bool = False

    # Files
    upload_dir: str = "data/uploads"
    export_dir: str = "data/exports"
    max_upload_mb: int = 20

    # Prompt template overrides (JSON file)
    prompt_config_path: Optional[str] = None

    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        """
        Read settings from environment variables, loading ``.env`` first.

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed.
        """
        load_dotenv(env_file)
        return cls(
            database_url=get_database_url(),
            llm_provider=os.environ.get("SETTLR_LLM_PROVIDER", "openai").lower(),
            openai_api_key=os.environ.get("OPENAI_API_KEY", ""),
            azure_openai_base_url=os.environ.get("AZURE_OPENAI_BASE_URL", ""),
            azure_openai_api_key=os.environ.get("AZURE_OPENAI_API_KEY", ""),
            llm_model=os.environ.get("SETTLR_LLM_MODEL", "gpt-4.1"),
            llm_temperature=_env_float("SETTLR_LLM_TEMPERATURE", 0.7),
            firebase_api_key=os.environ.get("FIREBASE_API_KEY", ""),
            firebase_credentials=os.environ.get("FIREBASE_CREDENTIALS") or None,
            session_max_age_days=_env_int("SETTLR_SESSION_MAX_AGE_DAYS", 5),
            secure_cookies=os.environ.get("SETTLR_SECURE_COOKIES", "").strip().lower()
            in {"1", "true", "yes", "y"},
            upload_dir=os.environ.get("SETTLR_UPLOAD_DIR", "data/uploads"),
            export_dir=os.environ.get("SETTLR_EXPORT_DIR", "data/exports"),
            max_upload_mb=_env_int("SETTLR_MAX_UPLOAD_MB", 20),
            prompt_config_path=os.environ.get("SETTLR_PROMPT_CONFIG") or None,
            log_level=os.environ.get("SETTLR_LOG_LEVEL", "INFO").upper(),
        )

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    def validate(self) -> ValidationResult:
        """Check settings for values that would fail at request time."""
        result = ValidationResult(is_valid=True)

        if self.llm_provider not in SUPPORTED_LLM_PROVIDERS:
            result.add_error(
                f"Unsupported LLM provider '{self.llm_provider}'. "
                f"Use one of {list(SUPPORTED_LLM_PROVIDERS)}"
            )
        elif self.llm_provider == "openai" and not self.openai_api_key:
            result.add_error("OPENAI_API_KEY is required for the openai provider")
        elif self.llm_provider == "azure":
            if not self.azure_openai_api_key:
                result.add_error("AZURE_OPENAI_API_KEY is required for the azure provider")
            if not self.azure_openai_base_url:
                result.add_error("AZURE_OPENAI_BASE_URL is required for the azure provider")

        if not 0.0 <= self.llm_temperature <= 2.0:
            result.add_error("LLM temperature must be between 0 and 2")

        if self.max_upload_mb <= 0:
            result.add_error("Maximum upload size must be positive")

        if self.session_max_age_days <= 0:
            result.add_error("Session max age must be positive")

        if not self.firebase_api_key:
            result.add_warning("FIREBASE_API_KEY is not set; password sign-in will fail")

        return result
