"""Configuration management for panesd.

Loads and validates YAML-based configuration with Pydantic models.
Supports environment variable overrides for deployment-specific values
like the browser's debugging port.
"""

from panesd.config.settings import ConfigurationError, Settings, load_settings

__all__ = ["ConfigurationError", "Settings", "load_settings"]
