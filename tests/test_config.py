#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
AceTasm v0.1.0

Tests for configuration loading, validation and codec settings.

Author: AceTasm Development Team
License: MIT - See LICENSE
"""

import pytest
import yaml

from acetasm.config import (
    DEFAULT_CONFIG,
    CodecSettings,
    ConfigValidationError,
    load_config,
    save_config_template,
    validate_config,
)


class TestLoadConfig:
    """Test YAML configuration loading."""

    def test_defaults(self):
        """Test defaults are returned without a file."""
        config = load_config()

        assert config == DEFAULT_CONFIG
        assert config is not DEFAULT_CONFIG

    def test_deep_merge(self, temp_output_dir):
        """Test user values override defaults section by section."""
        path = temp_output_dir / "config.yaml"
        path.write_text(yaml.dump({'ace': {'line_width': 60}}))

        config = load_config(path)

        assert config['ace']['line_width'] == 60
        assert config['ace']['variant'] == 'consed'
        assert config['tigr']['decimal_format'] == '%.2f'

    def test_missing_file(self, temp_output_dir):
        """Test a missing file is reported."""
        with pytest.raises(FileNotFoundError):
            load_config(temp_output_dir / "absent.yaml")

    def test_invalid_yaml(self, temp_output_dir):
        """Test unparsable YAML raises ConfigValidationError."""
        path = temp_output_dir / "broken.yaml"
        path.write_text("ace: [unclosed\n")

        with pytest.raises(ConfigValidationError):
            load_config(path)

    def test_template_round_trip(self, temp_output_dir):
        """Test a saved template loads back and validates."""
        path = temp_output_dir / "template.yaml"
        save_config_template(path, variant='454')

        config = load_config(path)

        assert config['ace']['variant'] == '454'
        assert validate_config(config) == []


class TestValidateConfig:
    """Test configuration validation."""

    def test_defaults_valid(self):
        """Test the defaults pass validation."""
        assert validate_config(load_config()) == []

    def test_invalid_values(self):
        """Test each bad value is reported."""
        config = load_config()
        config['ace']['variant'] = 'phrap'
        config['ace']['line_width'] = 0
        config['tigr']['default_quality'] = -1
        config['tigr']['decimal_format'] = '%d %d'
        config['output']['logging']['level'] = 'LOUD'

        errors = validate_config(config)

        assert len(errors) == 5


class TestCodecSettings:
    """Test codec settings."""

    def test_from_config(self):
        """Test settings are taken from the codec section."""
        config = load_config()
        config['ace']['line_width'] = 70
        config['output']['include_singlets'] = False

        settings = CodecSettings.from_config(config, 'ace')

        assert settings.line_width == 70
        assert settings.include_singlets is False

    def test_tigr_section(self):
        """Test the tigr section supplies decimal format and quality."""
        config = load_config()
        config['tigr']['decimal_format'] = '%.3f'
        config['tigr']['default_quality'] = 15

        settings = CodecSettings.from_config(config, 'tigr')

        assert settings.decimal_format == '%.3f'
        assert settings.default_quality == 15

    def test_variant_normalized(self):
        """Test variant names are case-insensitive."""
        assert CodecSettings(variant='CONSED').variant == 'consed'

    def test_invalid_variant(self):
        """Test unknown variants are rejected."""
        with pytest.raises(ValueError):
            CodecSettings(variant='phrap')

    def test_invalid_line_width(self):
        """Test line width must be positive."""
        with pytest.raises(ValueError):
            CodecSettings(line_width=0)
