#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
AceTasm v0.1.0

Tests for CLI command interface.

Author: AceTasm Development Team
License: MIT - See LICENSE
"""

import json

import pytest
import yaml
from click.testing import CliRunner
from acetasm.cli import main
from acetasm.io import read_tigr


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_cli_help(self):
        """Test that --help runs without error."""
        runner = CliRunner()
        result = runner.invoke(main, ['--help'])

        assert result.exit_code == 0
        assert 'AceTasm' in result.output

    def test_cli_version(self):
        """Test that --version displays version."""
        runner = CliRunner()
        result = runner.invoke(main, ['--version'])

        assert result.exit_code == 0
        assert '0.1.0' in result.output

    def test_invalid_command(self):
        """Test that invalid commands are handled gracefully."""
        runner = CliRunner()
        result = runner.invoke(main, ['nonexistent_command'])

        # Should fail but not crash
        assert result.exit_code != 0


class TestConvertCLI:
    """Test the convert command."""

    def test_ace_to_tasm(self, ace_file, temp_output_dir):
        """Test format guessing from extensions."""
        output = temp_output_dir / "out.tasm"
        runner = CliRunner()
        result = runner.invoke(main, ['convert', str(ace_file), str(output)])

        assert result.exit_code == 0
        assert '✓ Converted 1 contigs and 1 singlets' in result.output
        scaffold = read_tigr(output)
        assert scaffold.contig_ids == ["Contig2"]
        assert scaffold.singlet_ids == ["Contig1"]

    def test_tasm_to_ace_without_singlets(self, tasm_file, temp_output_dir):
        """Test --no-singlets and --line-width."""
        output = temp_output_dir / "out.ace"
        runner = CliRunner()
        result = runner.invoke(main, [
            'convert', str(tasm_file), str(output),
            '--no-singlets', '--line-width', '4',
        ])

        assert result.exit_code == 0
        text = output.read_text()
        assert text.startswith("AS 1 2\n\nCO 1 10 2 0 U\nACGT\n*ACG\nTA\n")

    def test_explicit_formats(self, ace_file, temp_output_dir):
        """Test --from/--to override extension guessing."""
        output = temp_output_dir / "out.txt"
        runner = CliRunner()
        result = runner.invoke(main, [
            'convert', str(ace_file), str(output), '--from', 'ace', '--to', 'tigr',
        ])

        assert result.exit_code == 0
        assert output.read_text().startswith("sequence\tACGTAC\n")

    def test_unknown_extension(self, ace_file, temp_output_dir):
        """Test an output format that cannot be guessed."""
        runner = CliRunner()
        result = runner.invoke(main, ['convert', str(ace_file), str(temp_output_dir / "out.txt")])

        assert result.exit_code == 1

    def test_malformed_input(self, temp_output_dir):
        """Test a broken ACE file exits with status 1."""
        bad = temp_output_dir / "bad.ace"
        bad.write_text("CO c1 4 0 0 U\nACGT\n\nBOGUS line\n")
        runner = CliRunner()
        result = runner.invoke(main, ['convert', str(bad), str(temp_output_dir / "out.tasm")])

        assert result.exit_code == 1

    def test_nonexistent_input(self):
        """Test missing input files are rejected."""
        runner = CliRunner()
        result = runner.invoke(main, ['convert', 'nonexistent.ace', 'out.tasm'])

        assert result.exit_code != 0


class TestInspectionCLI:
    """Test stats, export and translate."""

    def test_stats(self, ace_file):
        """Test statistics are printed as JSON."""
        runner = CliRunner()
        result = runner.invoke(main, ['--quiet', 'stats', str(ace_file)])

        assert result.exit_code == 0
        stats = json.loads(result.output)
        assert stats['reads'] == 3
        assert stats['n50'] == 9

    def test_stats_json_file(self, tasm_file, temp_output_dir):
        """Test --json writes a statistics file."""
        path = temp_output_dir / "stats.json"
        runner = CliRunner()
        result = runner.invoke(main, ['--quiet', 'stats', str(tasm_file), '--json', str(path)])

        assert result.exit_code == 0
        with open(path) as f:
            assert json.load(f)['singlets'] == 1

    def test_export(self, ace_file, temp_output_dir):
        """Test consensus FASTA and QUAL export."""
        fasta = temp_output_dir / "cons.fasta"
        qual = temp_output_dir / "cons.qual"
        runner = CliRunner()
        result = runner.invoke(main, [
            'export', str(ace_file), str(fasta), '--qual', str(qual), '--ungapped',
        ])

        assert result.exit_code == 0
        assert fasta.exists()
        assert qual.exists()
        assert ">Contig2" in fasta.read_text()

    @pytest.mark.parametrize("args,expected", [
        (['ungapped', 'gapped', '5'], '6'),
        (['gapped', 'ungapped', '10'], '9'),
        (['read:read2', 'gapped', '1'], '3'),
        (['read:read1', 'read:read2', '4'], '2'),
    ])
    def test_translate(self, ace_file, args, expected):
        """Test coordinate translation between frames."""
        runner = CliRunner()
        result = runner.invoke(main, ['translate', str(ace_file), 'Contig2'] + args)

        assert result.exit_code == 0
        assert result.output.strip().splitlines()[-1] == expected

    def test_translate_out_of_range(self, ace_file):
        """Test positions outside a frame exit with status 1."""
        runner = CliRunner()
        result = runner.invoke(main, ['translate', str(ace_file), 'Contig2', 'gapped', 'read:read2', '1'])

        assert result.exit_code == 1

    def test_translate_unknown_contig(self, ace_file):
        """Test unknown contig ids exit with status 1."""
        runner = CliRunner()
        result = runner.invoke(main, ['translate', str(ace_file), 'Contig9', 'gapped', 'ungapped', '1'])

        assert result.exit_code == 1


class TestConfigCLI:
    """Test configuration commands."""

    def test_config_init_command(self):
        """Test config init command."""
        runner = CliRunner()

        with runner.isolated_filesystem():
            result = runner.invoke(main, ['config', 'init', '--output', 'test_config.yaml',
                                          '--variant', '454'])

            assert result.exit_code == 0
            with open('test_config.yaml') as f:
                assert yaml.safe_load(f)['ace']['variant'] == '454'

    def test_config_validate(self):
        """Test validation of a generated template."""
        runner = CliRunner()

        with runner.isolated_filesystem():
            runner.invoke(main, ['config', 'init', '--output', 'c.yaml'])
            result = runner.invoke(main, ['config', 'validate', 'c.yaml'])

            assert result.exit_code == 0
            assert '✓ Configuration is valid' in result.output

    def test_config_validate_invalid(self):
        """Test invalid settings fail validation."""
        runner = CliRunner()

        with runner.isolated_filesystem():
            with open('bad.yaml', 'w') as f:
                yaml.dump({'ace': {'variant': 'phrap'}}, f)
            result = runner.invoke(main, ['config', 'validate', 'bad.yaml'])

            assert result.exit_code == 1

    def test_config_show(self):
        """Test the summary view."""
        runner = CliRunner()

        with runner.isolated_filesystem():
            runner.invoke(main, ['config', 'init', '--output', 'c.yaml'])
            result = runner.invoke(main, ['config', 'show', 'c.yaml'])

            assert result.exit_code == 0
            assert 'Variant: consed' in result.output
