"""
Runtime Configuration Module

Provides configuration loading and management for the claims core.
"""

from .runtime import (
    AdmissionConfig,
    HashingConfig,
    LoggingConfig,
    RuntimeConfig,
    get_default_config,
    get_default_config_template,
    set_default_config,
)

__all__ = [
    "AdmissionConfig",
    "HashingConfig",
    "LoggingConfig",
    "RuntimeConfig",
    "get_default_config",
    "get_default_config_template",
    "set_default_config",
]
