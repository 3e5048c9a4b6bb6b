#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
AceTasm v0.1.0

Pytest configuration and shared fixtures.

Author: AceTasm Development Team
License: MIT - See LICENSE
"""

import pytest
from pathlib import Path
import tempfile
import shutil


# Two units: a singlet (Contig1) and a two-read contig with one consensus gap
# (Contig2). The text is exactly what AceWriter produces for its own parse.
SAMPLE_ACE = """AS 2 3

CO Contig1 6 1 0 U
ACGTAC

BQ
20 20 20 20 20 20

AF read0 U 1

RD read0 6 0 0
ACGTAC

QA 1 6 1 6

CO Contig2 10 2 2 U
ACGT*ACGTA

BQ
10 20 30 40 50 60 70 80 90

AF read1 U 1
AF read2 C 3

BS 1 6 read1
BS 7 10 read2

RD read1 8 0 0
ACGT*ACG

QA 1 8 1 8

DS CHROMAT_FILE: read1.ab1 PHD_FILE: read1.phd TIME: Thu Jun 10 10:00:00 2010

RD read2 8 0 1
GT*ACGTA

QA 2 7 1 8

RT{
read2 comment consed 2 4 100610:101010
free text
}

WA{
phrap_params phrap 100610:101010
phrap standard.fasta.screen -new_ace
}

CT{
Contig2 repeat consed 2 5 100610:101010
COMMENT{
a repeat
C}
}

"""


def _build_454_ace():
    """Newbler-style contig: AF starts -5, 0 and 10, largest read end 40."""
    consensus = "ACGTACGTAC" * 3
    reads = [
        ("rA", -5, "T" * 10),
        ("rB", 0, "G" * 12),
        ("rC", 10, "ACGTACGTAC" * 3 + "A"),
    ]
    lines = [
        f"CO contig00001 {len(consensus)} {len(reads)} 1 U",
        consensus,
        "",
        "BQ",
        " ".join(["30"] * len(consensus)),
        "",
    ]
    lines += [f"AF {name} U {start}" for name, start, _ in reads]
    lines += ["", "BS 1 30 rC", ""]
    for name, _, sequence in reads:
        lines += [
            f"RD {name} {len(sequence)} 0 0",
            sequence,
            "",
            f"QA 1 {len(sequence)} 1 {len(sequence)}",
            "",
        ]
    return "\n".join(lines) + "\n"


SAMPLE_454_ACE = _build_454_ace()


def _tasm(*lines):
    return "".join(f"{line}\n" for line in lines)


# One contig (asmbl_id 1, reads on both strands) and one singlet (asmbl_id 2)
SAMPLE_TASM = (
    _tasm(
        "sequence\tACGTACGTA",
        "lsequence\tACGT-ACGTA",
        "quality\t0x0A141E282D323C46505A",
        "asmbl_id\t1",
        "seq_id\t",
        "com_name\ttest contig",
        "type\t",
        "method\tasmg",
        "ed_status\t",
        "redundancy\t1.67",
        "perc_N\t0.00",
        "seq#\t2",
        "full_cds\t",
        "cds_start\t",
        "cds_end\t",
        "ed_pn\tuser",
        "ed_date\t10/19/26 12:00:00",
        "comment\t",
        "frameshift\t",
    )
    + "\n"
    + _tasm(
        "seq_name\tread1",
        "asm_lend\t1",
        "asm_rend\t7",
        "seq_lend\t1",
        "seq_rend\t8",
        "best\t",
        "comment\t",
        "db\tdb1",
        "offset\t0",
        "lsequence\tACGT-ACG",
    )
    + "\n"
    + _tasm(
        "seq_name\tread2",
        "asm_lend\t9",
        "asm_rend\t2",
        "seq_lend\t9",
        "seq_rend\t1",
        "best\t",
        "comment\t",
        "db\t",
        "offset\t1",
        "lsequence\tCGT-ACGTA",
    )
    + "|\n"
    + _tasm(
        "sequence\tacgtACGT",
        "lsequence\tacgtACGT",
        "quality\t0x1414141414141414",
        "asmbl_id\t2",
        "seq_id\t",
        "com_name\t",
        "type\t",
        "method\t",
        "ed_status\t",
        "redundancy\t1.00",
        "perc_N\t50.00",
        "seq#\t1",
        "full_cds\t",
        "cds_start\t",
        "cds_end\t",
        "ed_pn\t",
        "ed_date\t10/19/26 12:00:00",
        "comment\t",
        "frameshift\t",
    )
    + "\n"
    + _tasm(
        "seq_name\tread3",
        "asm_lend\t1",
        "asm_rend\t8",
        "seq_lend\t1",
        "seq_rend\t8",
        "best\t",
        "comment\t",
        "db\t",
        "offset\t0",
        "lsequence\tACGTACGT",
    )
)


@pytest.fixture
def temp_output_dir():
    """Create temporary output directory for tests."""
    temp_dir = tempfile.mkdtemp(prefix="acetasm_test_")
    yield Path(temp_dir)
    # Cleanup after test
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def sample_ace():
    """Consed ACE text with a singlet, a contig, WA and CT blocks."""
    return SAMPLE_ACE


@pytest.fixture
def sample_454_ace():
    """Newbler (454) ACE text with non-positive AF starts."""
    return SAMPLE_454_ACE


@pytest.fixture
def sample_tasm():
    """TIGR tasm text with a contig and a singlet."""
    return SAMPLE_TASM


@pytest.fixture
def ace_file(temp_output_dir, sample_ace):
    """Sample ACE text written to disk."""
    path = temp_output_dir / "sample.ace"
    path.write_text(sample_ace)
    return path


@pytest.fixture
def tasm_file(temp_output_dir, sample_tasm):
    """Sample tasm text written to disk."""
    path = temp_output_dir / "sample.tasm"
    path.write_text(sample_tasm)
    return path
