"""
AceTasm v0.1.0

Configuration management for AceTasm.

Author: AceTasm Development Team
License: MIT - See LICENSE
"""

from .schema import (
    ACE_VARIANTS,
    DEFAULT_CONFIG,
    CodecSettings,
    ConfigValidationError,
    load_config,
    save_config_template,
    validate_config,
)

__all__ = [
    "ACE_VARIANTS",
    "DEFAULT_CONFIG",
    "CodecSettings",
    "ConfigValidationError",
    "load_config",
    "save_config_template",
    "validate_config",
]
