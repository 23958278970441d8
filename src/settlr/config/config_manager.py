"""Configuration Manager for Settlr prompt templates.

Loads, validates and serves overrides for the system prompts used when
drafting escrow documents.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..models.enums import DocumentType
from .models import ConfigurationError, PromptTemplate, ValidationResult


logger = logging.getLogger(__name__)

_DOCUMENT_TYPES = [t.value for t in DocumentType]


class ConfigurationManager:
    """
    Manager for prompt template configuration.

    Handles loading, validation, and lookup of per-document-type system
    prompt overrides.
    """

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Optional JSON file loaded immediately.
        """
        self._config_path = Path(config_path) if config_path else None
        self._templates: List[PromptTemplate] = []
        self._is_loaded = False
        if self._config_path is not None:
            self.load_prompt_templates(self._config_path)

    @property
    def templates(self) -> List[PromptTemplate]:
        return list(self._templates)

    @property
    def is_loaded(self) -> bool:
        """Check if configuration has been loaded."""
        return self._is_loaded

    def load_prompt_templates(
        self,
        source: Union[str, Path, Dict[str, Any], List[Dict[str, Any]]]
    ) -> ValidationResult:
        """
        Load and validate prompt templates.

        Supports loading from:
        - JSON file path
        - Dictionary with a "templates" key, or a single template
        - List of template dictionaries

        Args:
            source: File path, dictionary, or list of dictionaries.

        Returns:
            ValidationResult indicating success, with any warnings.

        Raises:
            ConfigurationError: If validation fails; nothing is applied.
        """
        raw_data = self._parse_source(source)

        if isinstance(raw_data, dict):
            if "templates" in raw_data:
                templates_data = raw_data["templates"]
            else:
                templates_data = [raw_data]
        else:
            templates_data = raw_data

        if not isinstance(templates_data, list):
            raise ConfigurationError("Prompt templates must be a list")

        result = ValidationResult(is_valid=True)
        templates: List[PromptTemplate] = []

        for i, template_dict in enumerate(templates_data):
            template_result, template = self._validate_prompt_template(template_dict, index=i)
            result = result.merge(template_result)
            if template:
                templates.append(template)

        ids = [t.id for t in templates]
        duplicates = [id for id in ids if ids.count(id) > 1]
        if duplicates:
            result.add_error(f"Duplicate prompt template IDs found: {set(duplicates)}")

        enabled_types = [t.document_type for t in templates if t.enabled]
        for doc_type in sorted(set(enabled_types)):
            if enabled_types.count(doc_type) > 1:
                result.add_warning(
                    f"Multiple enabled templates target '{doc_type}'; the last one wins"
                )

        if not result.is_valid:
            raise ConfigurationError(
                "Prompt template validation failed",
                validation_result=result
            )

        self._templates = templates
        self._is_loaded = True
        logger.info(f"Loaded {len(templates)} prompt templates")

        return result

    def _validate_prompt_template(
        self,
        data: Dict[str, Any],
        index: int = 0
    ) -> tuple[ValidationResult, Optional[PromptTemplate]]:
        """Validate a single prompt template dictionary."""
        result = ValidationResult(is_valid=True)
        prefix = f"Prompt template [{index}]"

        if not isinstance(data, dict):
            result.add_error(f"{prefix}: must be an object")
            return result, None

        required_fields = ["id", "document_type", "system_prompt"]
        for field in required_fields:
            if field not in data:
                result.add_error(f"{prefix}: Missing required field '{field}'")

        if not result.is_valid:
            return result, None

        if not isinstance(data["id"], str) or not data["id"].strip():
            result.add_error(f"{prefix}: 'id' must be a non-empty string")

        if data["document_type"] not in _DOCUMENT_TYPES:
            result.add_error(
                f"{prefix}: 'document_type' must be one of {_DOCUMENT_TYPES}"
            )

        if not isinstance(data["system_prompt"], str) or not data["system_prompt"].strip():
            result.add_error(f"{prefix}: 'system_prompt' must be a non-empty string")

        temperature = data.get("temperature")
        if temperature is not None:
            if not isinstance(temperature, (int, float)) or isinstance(temperature, bool):
                result.add_error(f"{prefix}: 'temperature' must be a number")
            elif not 0.0 <= temperature <= 2.0:
                result.add_error(f"{prefix}: 'temperature' must be between 0 and 2")

        if "enabled" in data and not isinstance(data["enabled"], bool):
            result.add_error(f"{prefix}: 'enabled' must be a boolean")

        if not result.is_valid:
            return result, None

        template = PromptTemplate(
            id=data["id"].strip(),
            document_type=data["document_type"],
            system_prompt=data["system_prompt"].strip(),
            temperature=float(temperature) if temperature is not None else None,
            enabled=data.get("enabled", True),
            description=data.get("description"),
            metadata=data.get("metadata", {}),
        )

        return result, template

    def get_template(self, document_type: DocumentType) -> Optional[PromptTemplate]:
        """Return the active override for a document type, if any."""
        active = None
        for template in self._templates:
            if template.enabled and template.document_type == document_type.value:
                active = template
        return active

    def get_template_by_id(self, template_id: str) -> Optional[PromptTemplate]:
        for template in self._templates:
            if template.id == template_id:
                return template
        return None

    def _parse_source(
        self,
        source: Union[str, Path, Dict[str, Any], List[Dict[str, Any]]]
    ) -> Union[Dict[str, Any], List[Dict[str, Any]]]:
        """Parse configuration source to raw data."""
        if isinstance(source, (str, Path)):
            path = Path(source)
            if not path.exists():
                raise ConfigurationError(f"Configuration file not found: {path}")

            try:
                with open(path, "r", encoding="utf-8") as f:
                    return json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Invalid JSON in {path}: {e}")

        return source

    def export_configuration(self, path: Optional[Union[str, Path]] = None) -> None:
        """
        Save current prompt templates to a JSON file.

        Args:
            path: File to write. Uses the load path if None.
        """
        target = Path(path) if path else self._config_path
        if not target:
            raise ConfigurationError("No configuration path specified")

        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)

    def reset(self) -> None:
        """Reset configuration to empty state."""
        self._templates = []
        self._is_loaded = False

    def to_dict(self) -> Dict[str, Any]:
        """Export current configuration as a dictionary."""
        return {
            "templates": [
                {
                    "id": t.id,
                    "document_type": t.document_type,
                    "system_prompt": t.system_prompt,
                    "temperature": t.temperature,
                    "enabled": t.enabled,
                    "description": t.description,
                    "metadata": t.metadata,
                }
                for t in self._templates
            ],
        }
