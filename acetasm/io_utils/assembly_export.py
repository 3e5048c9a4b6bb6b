#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
AceTasm v0.1.0

Assembly export: consensus FASTA, consensus QUAL and statistics JSON.

Author: AceTasm Development Team
License: MIT - See LICENSE
"""

from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Any

from Bio import SeqIO

from ..assembly_core.data_structures import Contig, Scaffold
from ..utils.sequence_utils import calculate_gc_content

logger = logging.getLogger(__name__)


# ============================================================================
#                         CONSENSUS SEQUENCE EXPORT
# ============================================================================

def _consensus_records(units: list[Contig], ungapped: bool, with_quality: bool):
    for unit in units:
        if unit.consensus is None:
            continue
        kind = 'singlet' if unit.is_singlet else 'contig'
        yield unit.consensus.to_seqrecord(
            quality=unit.consensus_quality if with_quality else None,
            ungapped=ungapped,
            description=f"{kind} reads={unit.num_reads}",
        )


def export_consensus_fasta(
    scaffold: Scaffold,
    output_path: str | Path,
    ungapped: bool = False,
    singlets: bool = True
) -> int:
    """
    Export every consensus sequence to FASTA.

    Args:
        scaffold: Assembly to export
        output_path: Path to output FASTA file
        ungapped: Remove gap symbols from the sequences
        singlets: Include singlets

    Returns:
        Number of records written

    Example:
        >>> export_consensus_fasta(scaffold, 'consensus.fasta', ungapped=True)
        12
    """
    output_path = Path(output_path)
    units = scaffold.all_units(singlets)
    logger.info(f"Writing {len(units)} consensus sequences to {output_path}")

    count = SeqIO.write(_consensus_records(units, ungapped, False), output_path, 'fasta')

    logger.info(f"Exported {count} consensus sequences")
    return count


def export_consensus_qual(
    scaffold: Scaffold,
    output_path: str | Path,
    ungapped: bool = False,
    singlets: bool = True
) -> int:
    """
    Export consensus quality scores to a QUAL file.

    Contigs without quality scores are skipped.

    Returns:
        Number of records written
    """
    output_path = Path(output_path)
    units = [u for u in scaffold.all_units(singlets) if u.consensus_quality is not None]
    logger.info(f"Writing {len(units)} consensus quality records to {output_path}")

    count = SeqIO.write(_consensus_records(units, ungapped, True), output_path, 'qual')

    logger.info(f"Exported {count} consensus quality records")
    return count


# ============================================================================
#                           ASSEMBLY STATISTICS
# ============================================================================

def _n50(lengths: list[int]) -> int:
    lengths_sorted = sorted(lengths, reverse=True)
    half_total = sum(lengths_sorted) / 2
    cumsum = 0
    for length in lengths_sorted:
        cumsum += length
        if cumsum >= half_total:
            return length
    return 0


def assembly_stats(scaffold: Scaffold) -> dict[str, Any]:
    """
    Calculate assembly statistics.

    Lengths are ungapped consensus lengths; `gaps` counts gap symbols in
    all gapped consensus sequences.

    Returns:
        Dictionary with contigs, singlets, reads, consensus_bases, gaps,
        n50 and gc_content (percent)

    Example:
        >>> stats = assembly_stats(scaffold)
        >>> print(f"N50: {stats['n50']:,} bp")
    """
    units = [u for u in scaffold.all_units() if u.consensus is not None]
    lengths = [len(u.consensus.ungapped) for u in units]
    ungapped = ''.join(u.consensus.ungapped for u in units)

    stats: dict[str, Any] = {
        'contigs': len(scaffold.contigs),
        'singlets': len(scaffold.singlets),
        'reads': scaffold.num_reads,
        'consensus_bases': sum(lengths),
        'gaps': sum(u.consensus.num_gaps for u in units),
        'n50': _n50(lengths),
        'gc_content': round(calculate_gc_content(ungapped) * 100, 2),
    }
    return stats


def write_stats_json(scaffold: Scaffold, output_path: str | Path) -> dict[str, Any]:
    """
    Calculate assembly statistics and export them to JSON.

    Returns:
        Dictionary of statistics
    """
    output_path = Path(output_path)
    logger.info("Calculating assembly statistics...")

    stats = assembly_stats(scaffold)
    with open(output_path, 'w') as f:
        json.dump(stats, f, indent=2)

    logger.info(f"Assembly statistics exported to {output_path}")
    logger.info(f"  Consensus bases: {stats['consensus_bases']:,} bp")
    logger.info(f"  N50: {stats['n50']:,} bp")

    return stats


__all__ = [
    'export_consensus_fasta',
    'export_consensus_qual',
    'assembly_stats',
    'write_stats_json',
]
