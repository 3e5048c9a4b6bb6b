"""
Assembly Core module for AceTasm.

This module provides the in-memory assembly model and its coordinate kernel:
- Contig, Singlet (degenerate contig) and Scaffold containers
- Tags anchored in gapped-consensus coordinates
- Translation between gapped consensus, ungapped consensus and read frames
- Typed failures shared by the codecs
"""

from .errors import (
    AssemblyError,
    MalformedRecord,
    UnrecognizedField,
    OutOfRange,
    UnknownRead,
    UnknownContig,
    DuplicateRead,
)

from .coordinate_engine import (
    GAPPED_CONSENSUS,
    UNGAPPED_CONSENSUS,
    aligned_frame,
    CoordinateEngine,
    GapMap,
    translate,
)

from .data_structures import (
    ALIGNED_COORD,
    QUALITY_CLIPPING,
    ALIGN_CLIPPING,
    BASE_SEGMENTS,
    READ_DESC,
    READ_TAGS,
    MAIN_CONTIG_FEATURE,
    MAIN_READ_FEATURE,
    WHOLE_ASSEMBLY,
    LocatableSeq,
    Tag,
    FeatureCollection,
    Contig,
    Scaffold,
)

__all__ = [
    # Errors
    'AssemblyError',
    'MalformedRecord',
    'UnrecognizedField',
    'OutOfRange',
    'UnknownRead',
    'UnknownContig',
    'DuplicateRead',

    # Coordinates
    'GAPPED_CONSENSUS',
    'UNGAPPED_CONSENSUS',
    'aligned_frame',
    'CoordinateEngine',
    'GapMap',
    'translate',

    # Tag classifications
    'ALIGNED_COORD',
    'QUALITY_CLIPPING',
    'ALIGN_CLIPPING',
    'BASE_SEGMENTS',
    'READ_DESC',
    'READ_TAGS',
    'MAIN_CONTIG_FEATURE',
    'MAIN_READ_FEATURE',
    'WHOLE_ASSEMBLY',

    # Model
    'LocatableSeq',
    'Tag',
    'FeatureCollection',
    'Contig',
    'Scaffold',
]
