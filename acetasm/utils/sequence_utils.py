"""
AceTasm v0.1.0

Sequence utility functions for AceTasm.

Provides the small string helpers shared by the assembly model and the codecs.
"""

import re
from typing import Iterator, List, Tuple, Union

GAP = '-'

# TIGR Assembler marks ambiguities in a consensus with lowercase IUPAC symbols.
# Ambiguity codes count in either case, plain bases only when lowercase.
_AMBIGUITY_CODES = frozenset('xnmrwsykXNMRWSYK')
_LOWERCASE_BASES = frozenset('acgtu')


def ungap(sequence: str, gap: str = GAP) -> str:
    """
    Remove gap symbols from a sequence.

    Args:
        sequence: Gapped sequence string
        gap: Gap symbol

    Returns:
        Ungapped sequence

    Example:
        >>> ungap("AC-GT")
        'ACGT'
    """
    return sequence.replace(gap, '')


def count_gaps(sequence: str, gap: str = GAP) -> int:
    """Count gap symbols in a sequence."""
    return sequence.count(gap)


def gap_positions(sequence: str, gap: str = GAP) -> List[int]:
    """
    List the 1-based positions of gap symbols in a sequence.

    Example:
        >>> gap_positions("A--CG-")
        [2, 3, 6]
    """
    return [i + 1 for i, base in enumerate(sequence) if base == gap]


def calculate_gc_content(sequence: str) -> float:
    """
    Calculate GC content of a DNA sequence, ignoring gaps.

    Args:
        sequence: DNA sequence string

    Returns:
        GC content as fraction (0.0 to 1.0)

    Example:
        >>> calculate_gc_content("AT-GC")
        0.5
    """
    sequence = ungap(sequence).upper()
    if not sequence:
        return 0.0

    gc_count = sequence.count('G') + sequence.count('C')

    return gc_count / len(sequence)


def percent_ambiguous(sequence: str) -> float:
    """
    Percentage of ambiguous symbols in a consensus sequence.

    Symbols x n m r w s y k are ambiguities in either case; a c g t u are
    ambiguities only when lowercase.

    Args:
        sequence: Consensus sequence (normally ungapped)

    Returns:
        Percentage in [0, 100]; 0.0 for an empty sequence

    Example:
        >>> percent_ambiguous("acgtACGT")
        50.0
    """
    if not sequence:
        return 0.0

    ambiguous = sum(
        1 for base in sequence
        if base in _AMBIGUITY_CODES or base in _LOWERCASE_BASES
    )

    return ambiguous * 100 / len(sequence)


def natural_sort_key(identifier: str) -> Tuple[Tuple[int, Union[int, str]], ...]:
    """
    Sort key that orders embedded numbers numerically.

    Example:
        >>> sorted(["Contig10", "Contig2", "Contig1"], key=natural_sort_key)
        ['Contig1', 'Contig2', 'Contig10']
    """
    parts = re.split(r'(\d+)', str(identifier))
    return tuple(
        (0, int(part)) if part.isdigit() else (1, part)
        for part in parts if part != ''
    )


def chunked(items, width: int) -> Iterator:
    """
    Split a string or list into consecutive pieces of at most `width` items.

    Example:
        >>> list(chunked("ACGTA", 2))
        ['AC', 'GT', 'A']
    """
    if width <= 0:
        raise ValueError(f"Chunk width must be positive, got {width}")
    for i in range(0, len(items), width):
        yield items[i:i + width]


__all__ = [
    'GAP',
    'ungap',
    'count_gaps',
    'gap_positions',
    'calculate_gc_content',
    'percent_ambiguous',
    'natural_sort_key',
    'chunked',
]
