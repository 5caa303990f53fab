"""
Configuration Settings
======================

Configuration dataclasses for the RichText converter, loadable from YAML
or JSON.
"""

from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional, List
import json
import logging

import yaml

from richtext_core.exceptions import ConfigurationError
from richtext_core.transform.xslt import StylesheetSpec

logger = logging.getLogger(__name__)

RESOURCES_DIR = Path(__file__).resolve().parent.parent / "resources"
STYLESHEETS_DIR = RESOURCES_DIR / "stylesheets"
SCHEMAS_DIR = RESOURCES_DIR / "schemas"

MAIN_STYLESHEET = STYLESHEETS_DIR / "xmltext_to_docbook.xsl"
BASE_STYLESHEET = STYLESHEETS_DIR / "xmltext_to_docbook_core.xsl"
BASE_STYLESHEET_PRIORITY = 99
CORE_SCHEMA = SCHEMAS_DIR / "richtext.rng"
CORE_SCHEMATRON = SCHEMAS_DIR / "richtext.schematron.xsl"


@dataclass
class TransformConfig:
    """Stylesheets added on top of the built-in base stylesheet."""

    custom_stylesheets: List[StylesheetSpec] = field(default_factory=list)


@dataclass
class ValidationConfig:
    """Schema resources run between the core schema and core schematron."""

    custom_validators: List[str] = field(default_factory=list)


@dataclass
class EmbedConfig:
    """Embed classification configuration."""

    image_content_types: List[int] = field(default_factory=list)
    repository_file: str = ""  # Empty means no repository lookups


@dataclass
class ConverterConfig:
    """
    Complete converter configuration.

    Example:
        config = load_config(Path("richtext.yaml"))
        config.embeds.image_content_types = [5, 7]
        save_config(config, Path("richtext.yaml"))
    """

    transform: TransformConfig = field(default_factory=TransformConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    embeds: EmbedConfig = field(default_factory=EmbedConfig)

    check_duplicate_ids: bool = False
    check_id_values: bool = False
    log_level: str = "INFO"

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'transform': {
                'custom_stylesheets': [s.to_dict() for s in self.transform.custom_stylesheets],
            },
            'validation': asdict(self.validation),
            'embeds': asdict(self.embeds),
            'check_duplicate_ids': self.check_duplicate_ids,
            'check_id_values': self.check_id_values,
            'log_level': self.log_level,
        }

    @classmethod
    def from_dict(cls, data: dict, base_dir: Optional[Path] = None) -> 'ConverterConfig':
        """
        Create from dictionary.

        Args:
            data: Parsed configuration mapping
            base_dir: Directory that relative resource paths are resolved against
        """
        config = cls()

        try:
            if 'transform' in data:
                config.transform = TransformConfig(custom_stylesheets=[
                    StylesheetSpec.from_value(s)
                    for s in data['transform'].get('custom_stylesheets', [])
                ])
            if 'validation' in data:
                config.validation = ValidationConfig(**data['validation'])
            if 'embeds' in data:
                config.embeds = EmbedConfig(**data['embeds'])
                config.embeds.image_content_types = [
                    int(t) for t in config.embeds.image_content_types
                ]
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

        if 'check_duplicate_ids' in data:
            config.check_duplicate_ids = bool(data['check_duplicate_ids'])
        if 'check_id_values' in data:
            config.check_id_values = bool(data['check_id_values'])
        if 'log_level' in data:
            config.log_level = data['log_level']

        if base_dir is not None:
            config.resolve_paths(base_dir)

        return config

    def resolve_paths(self, base_dir: Path) -> None:
        """Make relative stylesheet, validator and repository paths absolute."""
        def resolve(value: str) -> str:
            path = Path(value)
            return str(path if path.is_absolute() else (base_dir / path).resolve())

        self.transform.custom_stylesheets = [
            StylesheetSpec(resolve(s.path), s.priority) for s in self.transform.custom_stylesheets
        ]
        self.validation.custom_validators = [resolve(v) for v in self.validation.custom_validators]
        if self.embeds.repository_file:
            self.embeds.repository_file = resolve(self.embeds.repository_file)


def load_config(config_path: Path) -> ConverterConfig:
    """
    Load configuration from file.

    Supports JSON and YAML formats based on file extension. Relative paths
    inside the file are resolved against the file's directory.

    Args:
        config_path: Path to config file

    Returns:
        ConverterConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigurationError: If file format is not supported or content is invalid
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    suffix = config_path.suffix.lower()

    with open(config_path, 'r', encoding='utf-8') as f:
        if suffix in ['.yaml', '.yml']:
            data = yaml.safe_load(f)
        elif suffix == '.json':
            data = json.load(f)
        else:
            raise ConfigurationError(f"Unsupported config format: {suffix}")

    logger.info(f"Loaded configuration from {config_path}")
    return ConverterConfig.from_dict(data or {}, base_dir=config_path.resolve().parent)


def save_config(config: ConverterConfig, config_path: Path) -> None:
    """
    Save configuration to file.

    Supports JSON and YAML formats based on file extension.

    Args:
        config: ConverterConfig to save
        config_path: Path to save config file

    Raises:
        ConfigurationError: If file format is not supported
    """
    suffix = config_path.suffix.lower()
    data = config.to_dict()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, 'w', encoding='utf-8') as f:
        if suffix in ['.yaml', '.yml']:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
        elif suffix == '.json':
            json.dump(data, f, indent=2)
        else:
            raise ConfigurationError(f"Unsupported config format: {suffix}")

    logger.info(f"Saved configuration to {config_path}")


def get_default_config() -> ConverterConfig:
    """Get default configuration."""
    return ConverterConfig()
