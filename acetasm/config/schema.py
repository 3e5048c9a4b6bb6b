"""
AceTasm v0.1.0

Configuration schema for AceTasm.

Defines the codec settings with defaults, YAML loading and validation.

Author: AceTasm Development Team
License: MIT - See LICENSE
"""

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


ACE_VARIANTS = ('consed', '454')
LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


# Default configuration values
DEFAULT_CONFIG = {
    # ========================================================================
    # ACE codec
    # ========================================================================
    'ace': {
        'line_width': 50,  # Sequence and quality line width on output
        'default_quality': 20,  # Score written when a contig has no quality
        'variant': 'consed',  # 'consed' (reference ACE) or '454' (Newbler)
    },

    # ========================================================================
    # TIGR tasm codec
    # ========================================================================
    'tigr': {
        'default_quality': 20,
        'decimal_format': '%.2f',  # redundancy and perc_N
    },

    # ========================================================================
    # Output
    # ========================================================================
    'output': {
        'include_singlets': True,

        # Logging
        'logging': {
            'level': 'INFO',  # 'DEBUG', 'INFO', 'WARNING', 'ERROR'
        },
    },
}


@dataclass
class CodecSettings:
    """Settings handed to a reader or writer at construction."""
    line_width: int = 50
    default_quality: int = 20
    variant: str = 'consed'
    decimal_format: str = '%.2f'
    include_singlets: bool = True

    def __post_init__(self):
        """Validate settings."""
        self.variant = str(self.variant).lower()
        if self.variant not in ACE_VARIANTS:
            raise ValueError(
                f"Not a valid ACE variant: {self.variant} (expected one of {', '.join(ACE_VARIANTS)})"
            )
        if self.line_width < 1:
            raise ValueError(f"line_width must be >= 1, got {self.line_width}")
        if self.default_quality < 0:
            raise ValueError(f"default_quality must be >= 0, got {self.default_quality}")

    @classmethod
    def from_config(cls, config: Dict[str, Any], fmt: str = 'ace') -> 'CodecSettings':
        """
        Build settings for one codec from a configuration dictionary.

        Args:
            config: Configuration (as returned by load_config)
            fmt: 'ace' or 'tigr'

        Returns:
            CodecSettings
        """
        section = config.get(fmt, {})
        output = config.get('output', {})
        return cls(
            line_width=section.get('line_width', DEFAULT_CONFIG['ace']['line_width']),
            default_quality=section.get('default_quality', DEFAULT_CONFIG['ace']['default_quality']),
            variant=section.get('variant', DEFAULT_CONFIG['ace']['variant']),
            decimal_format=section.get('decimal_format', DEFAULT_CONFIG['tigr']['decimal_format']),
            include_singlets=output.get('include_singlets', True),
        )


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from file or return defaults.

    Args:
        config_path: Path to YAML config file (None = use defaults)

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If config_path does not exist
        ConfigValidationError: If the file is not valid YAML
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_path:
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path) as f:
                user_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigValidationError(f"Invalid YAML in config file {config_path}: {e}")

        if user_config:
            # Deep merge user config into defaults
            config = _deep_merge(config, user_config)

    return config


def _deep_merge(base: Dict, override: Dict) -> Dict:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Override dictionary

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def save_config_template(output_path: Path, variant: str = 'consed'):
    """
    Save a configuration template to file.

    Args:
        output_path: Output file path
        variant: ACE variant written into the template
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    config['ace']['variant'] = variant

    with open(output_path, 'w') as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate configuration dictionary.

    Args:
        config: Configuration to validate

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    ace = config.get('ace', {})
    if str(ace.get('variant', 'consed')).lower() not in ACE_VARIANTS:
        errors.append(f"Invalid ACE variant: {ace.get('variant')}")

    line_width = ace.get('line_width', 50)
    if not isinstance(line_width, int) or line_width < 1:
        errors.append(f"Invalid line_width: {line_width} (must be a positive integer)")

    for fmt in ('ace', 'tigr'):
        quality = config.get(fmt, {}).get('default_quality', 20)
        if not isinstance(quality, int) or quality < 0:
            errors.append(f"Invalid {fmt}.default_quality: {quality} (must be an integer >= 0)")

    decimal_format = config.get('tigr', {}).get('decimal_format', '%.2f')
    try:
        decimal_format % 1.0
    except (TypeError, ValueError):
        errors.append(f"Invalid tigr.decimal_format: {decimal_format!r}")

    level = config.get('output', {}).get('logging', {}).get('level', 'INFO')
    if str(level).upper() not in LOG_LEVELS:
        errors.append(f"Invalid logging level: {level}")

    return errors
