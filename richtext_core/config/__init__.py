"""
Configuration Management
========================

Configuration utilities and built-in resource locations.
"""

from richtext_core.config.settings import (
    ConverterConfig,
    TransformConfig,
    ValidationConfig,
    EmbedConfig,
    load_config,
    save_config,
    get_default_config,
    MAIN_STYLESHEET,
    BASE_STYLESHEET,
    BASE_STYLESHEET_PRIORITY,
    CORE_SCHEMA,
    CORE_SCHEMATRON,
)

__all__ = [
    "ConverterConfig",
    "TransformConfig",
    "ValidationConfig",
    "EmbedConfig",
    "load_config",
    "save_config",
    "get_default_config",
    "MAIN_STYLESHEET",
    "BASE_STYLESHEET",
    "BASE_STYLESHEET_PRIORITY",
    "CORE_SCHEMA",
    "CORE_SCHEMATRON",
]
