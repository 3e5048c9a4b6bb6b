"""
I/O utilities for AceTasm.

Exports derived from a parsed assembly (consensus FASTA/QUAL, statistics).
"""

from .assembly_export import (
    export_consensus_fasta,
    export_consensus_qual,
    assembly_stats,
    write_stats_json,
)

__all__ = [
    "export_consensus_fasta",
    "export_consensus_qual",
    "assembly_stats",
    "write_stats_json",
]
