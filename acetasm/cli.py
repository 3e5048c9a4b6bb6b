#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Command-line interface for AceTasm.

This module provides the main CLI entry point and all subcommands for
converting, inspecting and exporting ACE and TIGR tasm assemblies.
"""

import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

import click
import yaml

from .version import __version__
from .assembly_core.coordinate_engine import (
    GAPPED_CONSENSUS,
    UNGAPPED_CONSENSUS,
    aligned_frame,
)
from .assembly_core.errors import AssemblyError
from .config.schema import (
    CodecSettings,
    ConfigValidationError,
    load_config,
    save_config_template,
    validate_config,
)
from .io import guess_format, open_reader, open_writer
from .io_utils.assembly_export import (
    assembly_stats,
    export_consensus_fasta,
    export_consensus_qual,
    write_stats_json,
)

FORMAT_CHOICES = ['ace', 'ace-454', 'tigr']
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.option('--quiet', '-q', is_flag=True, help='Suppress non-error output')
@click.pass_context
def main(ctx, verbose, quiet):
    """
    AceTasm: ACE and TIGR tasm assembly codec

    Reads and writes genome assemblies (contigs, singlets and aligned reads)
    in the ACE and TIGR Assembler tasm exchange formats.
    """
    # Ensure context object exists
    ctx.ensure_object(dict)
    ctx.obj['VERBOSE'] = verbose
    ctx.obj['QUIET'] = quiet

    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)


# ============================================================================
# Helpers
# ============================================================================

def _load_configuration(ctx, config_file):
    """Load the YAML configuration and apply its logging level."""
    config = load_config(Path(config_file) if config_file else None)
    if not (ctx.obj.get('VERBOSE') or ctx.obj.get('QUIET')):
        level = config['output']['logging']['level'].upper()
        logging.getLogger().setLevel(level)
    return config


def _codec(fmt):
    return 'tigr' if fmt == 'tigr' else 'ace'


def _read_assembly(path, fmt, settings):
    with open_reader(path, fmt, settings=settings) as reader:
        return reader.next_assembly()


def _fail(ctx, error):
    click.echo(f"✗ Error: {error}", err=True)
    ctx.exit(1)


def _frame_name(frame):
    """
    Expand a short frame name.

    'gapped' and 'ungapped' name the consensus frames, 'read:<id>' a read
    frame; full frame names are accepted as-is.
    """
    if frame in ('gapped', GAPPED_CONSENSUS):
        return GAPPED_CONSENSUS
    if frame in ('ungapped', UNGAPPED_CONSENSUS):
        return UNGAPPED_CONSENSUS
    if frame.startswith('read:'):
        return aligned_frame(frame[len('read:'):])
    return frame


# ============================================================================
# Conversion Commands
# ============================================================================

@main.command()
@click.argument('input_file', type=click.Path(exists=True))
@click.argument('output_file', type=click.Path())
@click.option('--from', 'from_format', type=click.Choice(FORMAT_CHOICES),
              help='Input format (guessed from the extension by default)')
@click.option('--to', 'to_format', type=click.Choice(FORMAT_CHOICES),
              help='Output format (guessed from the extension by default)')
@click.option('--variant', type=click.Choice(['consed', '454']),
              help='ACE variant of the input')
@click.option('--line-width', type=click.IntRange(min=1),
              help='Sequence line width of ACE output')
@click.option('--no-singlets', is_flag=True, help='Leave singlets out of the output')
@click.option('--config', '-c', 'config_file', type=click.Path(exists=True),
              help='Configuration file (YAML)')
@click.pass_context
def convert(ctx, input_file, output_file, from_format, to_format, variant,
            line_width, no_singlets, config_file):
    """
    Convert an assembly between ACE and TIGR tasm.

    Example: acetasm convert assembly.ace assembly.tasm
    """
    try:
        config = _load_configuration(ctx, config_file)
        from_format = from_format or guess_format(input_file)
        to_format = to_format or guess_format(output_file)

        read_settings = CodecSettings.from_config(config, _codec(from_format))
        if variant:
            read_settings = replace(read_settings, variant=variant)

        write_settings = CodecSettings.from_config(config, _codec(to_format))
        if line_width:
            write_settings = replace(write_settings, line_width=line_width)
        if no_singlets:
            write_settings = replace(write_settings, include_singlets=False)

        scaffold = _read_assembly(input_file, from_format, read_settings)

        with open_writer(output_file, to_format, settings=write_settings) as writer:
            writer.write_assembly(scaffold)

        if not ctx.obj.get('QUIET'):
            click.echo(f"✓ Converted {len(scaffold.contigs)} contigs and "
                       f"{len(scaffold.singlets)} singlets: {input_file} → {output_file}")
    except (AssemblyError, ConfigValidationError, ValueError) as e:
        _fail(ctx, e)


@main.command()
@click.argument('input_file', type=click.Path(exists=True))
@click.option('--from', 'from_format', type=click.Choice(FORMAT_CHOICES),
              help='Input format (guessed from the extension by default)')
@click.option('--json', 'json_file', type=click.Path(),
              help='Also write the statistics to a JSON file')
@click.pass_context
def stats(ctx, input_file, from_format, json_file):
    """Print assembly statistics."""
    try:
        scaffold = _read_assembly(input_file, from_format, CodecSettings())

        if json_file:
            summary = write_stats_json(scaffold, json_file)
        else:
            summary = assembly_stats(scaffold)

        click.echo(json.dumps(summary, indent=2))
    except (AssemblyError, ValueError) as e:
        _fail(ctx, e)


@main.command()
@click.argument('input_file', type=click.Path(exists=True))
@click.argument('output_fasta', type=click.Path())
@click.option('--from', 'from_format', type=click.Choice(FORMAT_CHOICES),
              help='Input format (guessed from the extension by default)')
@click.option('--qual', 'qual_file', type=click.Path(),
              help='Also write consensus quality scores to this QUAL file')
@click.option('--ungapped', is_flag=True, help='Remove gaps from the consensus')
@click.option('--no-singlets', is_flag=True, help='Leave singlets out of the output')
@click.pass_context
def export(ctx, input_file, output_fasta, from_format, qual_file, ungapped, no_singlets):
    """Export consensus sequences to FASTA (and quality to QUAL)."""
    try:
        scaffold = _read_assembly(input_file, from_format, CodecSettings())

        count = export_consensus_fasta(scaffold, output_fasta, ungapped=ungapped,
                                       singlets=not no_singlets)
        click.echo(f"✓ Wrote {count} consensus sequences to {output_fasta}")

        if qual_file:
            count = export_consensus_qual(scaffold, qual_file, ungapped=ungapped,
                                          singlets=not no_singlets)
            click.echo(f"✓ Wrote {count} quality records to {qual_file}")
    except (AssemblyError, ValueError) as e:
        _fail(ctx, e)


@main.command()
@click.argument('input_file', type=click.Path(exists=True))
@click.argument('contig_id')
@click.argument('from_frame')
@click.argument('to_frame')
@click.argument('position', type=int)
@click.option('--from', 'from_format', type=click.Choice(FORMAT_CHOICES),
              help='Input format (guessed from the extension by default)')
@click.pass_context
def translate(ctx, input_file, contig_id, from_frame, to_frame, position, from_format):
    """
    Translate a position between coordinate frames of a contig.

    Frames: 'gapped', 'ungapped' or 'read:<read_id>'.

    Example: acetasm translate assembly.ace Contig1 ungapped gapped 10
    """
    try:
        scaffold = _read_assembly(input_file, from_format, CodecSettings())

        contig = scaffold.get_unit(contig_id)
        result = contig.change_coord(_frame_name(from_frame), _frame_name(to_frame), position)
        click.echo(result)
    except (AssemblyError, ValueError) as e:
        _fail(ctx, e)


# ============================================================================
# Configuration Management Commands
# ============================================================================

@main.group()
def config():
    """Configuration management commands."""
    pass


@config.command('init')
@click.option('--output', '-o', type=click.Path(), default='acetasm_config.yaml',
              help='Output configuration file path')
@click.option('--variant', type=click.Choice(['consed', '454']), default='consed',
              help='ACE variant written into the template')
def config_init(output, variant):
    """Generate a template configuration file with all available parameters."""
    click.echo(f"Generating configuration template: {output}")

    try:
        save_config_template(Path(output), variant=variant)
        click.echo(f"✓ Configuration file created: {output}")
    except OSError as e:
        click.echo(f"✗ Error creating configuration: {e}", err=True)
        sys.exit(1)


@config.command('validate')
@click.argument('config_file', type=click.Path(exists=True))
def config_validate(config_file):
    """Validate a configuration file."""
    click.echo(f"Validating configuration file: {config_file}")

    try:
        config = load_config(Path(config_file))
    except ConfigValidationError as e:
        click.echo(f"✗ Error validating configuration: {e}", err=True)
        sys.exit(1)

    errors = validate_config(config)
    if errors:
        click.echo("\n✗ Configuration validation failed:")
        for error in errors:
            click.echo(f"  • {error}", err=True)
        sys.exit(1)

    click.echo("✓ Configuration is valid")
    click.echo("\nKey Settings:")
    click.echo(f"  ACE variant: {config['ace']['variant']}")
    click.echo(f"  Line width: {config['ace']['line_width']}")
    click.echo(f"  Singlets: {'included' if config['output']['include_singlets'] else 'skipped'}")


@config.command('show')
@click.argument('config_file', type=click.Path(exists=True))
@click.option('--format', '-f', type=click.Choice(['yaml', 'summary']), default='summary',
              help='Output format')
def config_show(config_file, format):
    """Display configuration settings."""
    try:
        config = load_config(Path(config_file))
    except ConfigValidationError as e:
        click.echo(f"✗ Error reading configuration: {e}", err=True)
        sys.exit(1)

    if format == 'yaml':
        click.echo(yaml.dump(config, default_flow_style=False, sort_keys=False))
        return

    click.echo(f"Configuration from: {config_file}")
    click.echo("=" * 60)

    click.echo("\nACE:")
    click.echo(f"  Variant: {config['ace']['variant']}")
    click.echo(f"  Line width: {config['ace']['line_width']}")
    click.echo(f"  Default quality: {config['ace']['default_quality']}")

    click.echo("\nTIGR:")
    click.echo(f"  Default quality: {config['tigr']['default_quality']}")
    click.echo(f"  Decimal format: {config['tigr']['decimal_format']}")

    click.echo("\nOutput:")
    click.echo(f"  Include singlets: {config['output']['include_singlets']}")
    click.echo(f"  Logging level: {config['output']['logging']['level']}")


if __name__ == '__main__':
    sys.exit(main())
