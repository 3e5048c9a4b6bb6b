"""
Utilities module for AceTasm.

Sequence helpers shared by the assembly model and the codecs.
"""

from .sequence_utils import (
    GAP,
    ungap,
    count_gaps,
    gap_positions,
    calculate_gc_content,
    percent_ambiguous,
    natural_sort_key,
    chunked,
)

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
