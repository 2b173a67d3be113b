"""Generation settings and their YAML loader."""

import logging
from enum import Enum
from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError

from api_param_resolver.errors import ConfigurationError

logger = logging.getLogger(__name__)


class EnumHandling(str, Enum):
    INTEGER = "integer"
    STRING = "string"


class PropertyNameHandling(str, Enum):
    DEFAULT = "default"
    CAMEL_CASE = "camel_case"
    SNAKE_CASE = "snake_case"


class GenerationSettings(BaseModel):
    """Flags controlling how operation parameters are bound.

    complex_query_binding selects the alternate convention: unmarked complex
    parameters are read from the query string and expanded into one parameter
    per property, and legacy custom-binding markers are not consulted.
    """

    complex_query_binding: bool = False
    add_missing_path_parameters: bool = False
    default_enum_handling: EnumHandling = EnumHandling.INTEGER
    default_property_name_handling: PropertyNameHandling = PropertyNameHandling.DEFAULT


def load_settings(file_path: Path) -> GenerationSettings:
    """Load settings from a YAML file. An empty file yields the defaults."""
    text = file_path.read_text(encoding="utf-8")

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid settings file {file_path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file {file_path} must contain a mapping")

    try:
        settings = GenerationSettings(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings in {file_path}: {e}") from e

    logger.debug("Loaded settings from %s: %s", file_path, settings.model_dump())
    return settings
