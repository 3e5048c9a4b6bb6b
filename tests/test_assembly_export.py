#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
AceTasm v0.1.0

Tests for consensus FASTA/QUAL export and assembly statistics.

Author: AceTasm Development Team
License: MIT - See LICENSE
"""

import io
import json

import pytest
from Bio import SeqIO

from acetasm.io import read_ace
from acetasm.io_utils import (
    assembly_stats,
    export_consensus_fasta,
    export_consensus_qual,
    write_stats_json,
)


@pytest.fixture
def scaffold(sample_ace):
    return read_ace(io.StringIO(sample_ace))


class TestConsensusExport:
    """Test consensus sequence export."""

    def test_fasta_gapped(self, scaffold, temp_output_dir):
        """Test contigs then singlets, gaps kept."""
        path = temp_output_dir / "consensus.fasta"

        count = export_consensus_fasta(scaffold, path)
        records = list(SeqIO.parse(str(path), 'fasta'))

        assert count == 2
        assert [r.id for r in records] == ["Contig2", "Contig1"]
        assert str(records[0].seq) == "ACGT-ACGTA"

    def test_fasta_ungapped_without_singlets(self, scaffold, temp_output_dir):
        """Test ungapped output and singlet filtering."""
        path = temp_output_dir / "consensus.fasta"

        count = export_consensus_fasta(scaffold, path, ungapped=True, singlets=False)
        records = list(SeqIO.parse(str(path), 'fasta'))

        assert count == 1
        assert str(records[0].seq) == "ACGTACGTA"

    def test_qual_ungapped(self, scaffold, temp_output_dir):
        """Test quality export drops interpolated gap scores."""
        path = temp_output_dir / "consensus.qual"

        count = export_consensus_qual(scaffold, path, ungapped=True)
        records = {r.id: r for r in SeqIO.parse(str(path), 'qual')}

        assert count == 2
        assert records["Contig2"].letter_annotations['phred_quality'] == [
            10, 20, 30, 40, 50, 60, 70, 80, 90
        ]

    def test_qual_skips_units_without_quality(self, scaffold, temp_output_dir):
        """Test contigs without scores are not written."""
        scaffold.get_unit("Contig1").set_consensus_quality(None)
        path = temp_output_dir / "consensus.qual"

        assert export_consensus_qual(scaffold, path) == 1


class TestAssemblyStats:
    """Test assembly statistics."""

    def test_stats(self, scaffold):
        """Test counts, N50 and GC content."""
        stats = assembly_stats(scaffold)

        assert stats['contigs'] == 1
        assert stats['singlets'] == 1
        assert stats['reads'] == 3
        assert stats['consensus_bases'] == 15
        assert stats['gaps'] == 1
        assert stats['n50'] == 9
        assert stats['gc_content'] == 46.67

    def test_write_stats_json(self, scaffold, temp_output_dir):
        """Test statistics are written as JSON."""
        path = temp_output_dir / "stats.json"

        stats = write_stats_json(scaffold, path)

        with open(path) as f:
            assert json.load(f) == stats
