#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
AceTasm v0.1.0

Assembly data model: sequences, tags, contigs, singlets and scaffolds.

A contig owns one gapped consensus and an ordered set of reads. Each read is
placed on the contig through an anchor tag (``_aligned_coord:<read>``) whose
start/end are gapped-consensus positions; every other read-relative tag is
expressed in the same gapped-consensus frame, either at contig level or as a
sub-feature of the read's anchor. A singlet is a contig flagged as degenerate:
its single read doubles as the consensus.

Author: AceTasm Development Team
License: MIT - See LICENSE
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from Bio.Seq import Seq
from Bio.SeqRecord import SeqRecord

from .coordinate_engine import CoordinateEngine
from .errors import DuplicateRead, UnknownContig, UnknownRead
from ..utils.sequence_utils import GAP, count_gaps, ungap

logger = logging.getLogger(__name__)


# ============================================================================
#                         TAG CLASSIFICATIONS
# ============================================================================

ALIGNED_COORD = '_aligned_coord:'          # read anchor (gapped consensus)
QUALITY_CLIPPING = '_quality_clipping:'    # high quality read range
ALIGN_CLIPPING = '_align_clipping:'        # aligned read range
BASE_SEGMENTS = '_base_segments'           # consensus provenance
READ_DESC = '_read_desc:'                  # ACE DS line
READ_TAGS = '_read_tags:'                  # ACE RT block
MAIN_CONTIG_FEATURE = '_main_contig_feature:'
MAIN_READ_FEATURE = '_main_read_feature:'
WHOLE_ASSEMBLY = 'whole assembly'          # ACE WA block


def _strand_value(strand: int) -> int:
    if strand not in (1, -1):
        raise ValueError(f"Strand must be 1 or -1, got {strand}")
    return strand


# ============================================================================
#                         SEQUENCES AND TAGS
# ============================================================================

@dataclass(frozen=True)
class LocatableSeq:
    """
    Sequence with a start offset, a strand and an identifier.

    Used both for consensus sequences and for aligned reads. The sequence
    may contain the internal gap symbol '-'. Instances are immutable; a
    contig replaces the whole object when its consensus changes.
    """
    sequence: str
    start: int = 1
    strand: int = 1
    id: str = ''

    def __post_init__(self):
        """Validate strand."""
        _strand_value(self.strand)

    def __len__(self) -> int:
        return len(self.sequence)

    @property
    def length(self) -> int:
        """Gapped length of the sequence."""
        return len(self.sequence)

    @property
    def end(self) -> int:
        """Last position covered, given the start offset."""
        return self.start + len(self.sequence) - 1

    @property
    def ungapped(self) -> str:
        """Sequence with gap symbols removed."""
        return ungap(self.sequence)

    @property
    def num_gaps(self) -> int:
        return count_gaps(self.sequence)

    def to_seqrecord(self, quality: Optional[Sequence[int]] = None,
                     ungapped: bool = False, description: str = '') -> SeqRecord:
        """
        Convert to a Biopython SeqRecord.

        Args:
            quality: Optional per-position scores (gapped length)
            ungapped: Drop gap positions from sequence and scores
            description: Record description

        Returns:
            SeqRecord, with ``phred_quality`` letter annotations when scores are given
        """
        sequence = self.sequence
        scores = list(quality) if quality is not None else None
        if ungapped:
            if scores is not None:
                scores = [q for base, q in zip(sequence, scores) if base != GAP]
            sequence = ungap(sequence)

        record = SeqRecord(Seq(sequence), id=self.id, description=description)
        if scores is not None:
            record.letter_annotations['phred_quality'] = scores
        return record


@dataclass
class Tag:
    """
    Annotation anchored in gapped-consensus coordinates.

    Attributes:
        primary_tag: Classification string (e.g. '_quality_clipping:read1')
        start: First gapped-consensus position (None for assembly-level tags)
        end: Last gapped-consensus position
        strand: 1 or -1
        attributes: Free key -> string values (source, creation_date, ...)
        sub_features: Tags attached under this one (read anchors only)
    """
    primary_tag: str
    start: Optional[int] = None
    end: Optional[int] = None
    strand: int = 1
    attributes: Dict[str, str] = field(default_factory=dict)
    sub_features: List['Tag'] = field(default_factory=list)

    def __post_init__(self):
        _strand_value(self.strand)

    @property
    def has_location(self) -> bool:
        return self.start is not None and self.end is not None

    @property
    def location(self) -> Optional[Tuple[int, int]]:
        """(start, end) or None for tags without a position."""
        if not self.has_location:
            return None
        return (self.start, self.end)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get an attribute value."""
        return self.attributes.get(key, default)

    def add_sub_feature(self, tag: 'Tag'):
        """Attach a tag below this one."""
        self.sub_features.append(tag)

    def matches(self, class_name: str) -> bool:
        """
        Check the classification against a class name.

        A name ending with ':' is a family prefix ('_read_tags:' matches every
        read tag); any other name must match exactly.
        """
        if class_name.endswith(':'):
            return self.primary_tag.startswith(class_name)
        return self.primary_tag == class_name


class FeatureCollection:
    """Insertion-ordered tag storage."""

    def __init__(self, tags: Optional[Sequence[Tag]] = None):
        self._tags: List[Tag] = list(tags) if tags else []

    def add(self, tag: Tag):
        """Append a tag."""
        self._tags.append(tag)

    def all(self) -> List[Tag]:
        """All tags in insertion order."""
        return list(self._tags)

    def filter(self, predicate: Callable[[Tag], bool]) -> Iterator[Tag]:
        """Lazily yield tags accepted by the predicate, in insertion order."""
        return (tag for tag in self._tags if predicate(tag))

    def __iter__(self) -> Iterator[Tag]:
        return iter(self._tags)

    def __len__(self) -> int:
        return len(self._tags)

    def __repr__(self) -> str:
        return f"FeatureCollection({len(self._tags)} tags)"


# ============================================================================
#                               CONTIG
# ============================================================================

class Contig:
    """
    Consensus sequence plus its aligned reads and annotations.

    Reads keep file order. Positions of every tag are gapped-consensus
    coordinates; use ``change_coord`` (backed by a per-contig
    CoordinateEngine) to move between frames before adding tags.

    A contig flagged with ``is_singlet`` is the degenerate one-read case.
    """

    def __init__(
        self,
        contig_id: str,
        consensus: Optional[Union[str, LocatableSeq]] = None,
        strand: int = 1,
        quality: Optional[Sequence[int]] = None,
        is_singlet: bool = False,
        source: Optional[str] = None,
    ):
        """
        Initialize a contig.

        Args:
            contig_id: Contig identifier
            consensus: Gapped consensus (string or LocatableSeq)
            strand: 1 for 'U' contigs, -1 for complemented 'C' contigs
            quality: Optional gapped consensus quality scores
            is_singlet: Mark the contig as a singlet
            source: Name of the program that produced the contig
        """
        self.id = contig_id
        self.strand = _strand_value(strand)
        self.is_singlet = is_singlet
        self.source = source
        self.features = FeatureCollection()
        self.generation = 0

        self._consensus: Optional[LocatableSeq] = None
        self._quality: Optional[List[int]] = None
        self._reads: Dict[str, LocatableSeq] = {}
        self._anchors: Dict[str, Tag] = {}
        self.coords = CoordinateEngine(self)

        if consensus is not None:
            self.set_consensus(consensus)
        if quality is not None:
            self.set_consensus_quality(quality)

    @classmethod
    def singlet(cls, read: LocatableSeq, quality: Optional[Sequence[int]] = None,
                contig_id: Optional[str] = None) -> 'Contig':
        """
        Build a singlet whose read doubles as the consensus.

        Args:
            read: The single read
            quality: Optional quality scores for the read
            contig_id: Identifier of the singlet (defaults to the read id)

        Returns:
            Contig flagged as singlet, read anchored at [1, len(read)]
        """
        contig = cls(contig_id or read.id, consensus=read.sequence, is_singlet=True)
        if quality is not None:
            contig.set_consensus_quality(quality)
        contig.add_read(read, 1, len(read), strand=read.strand)
        return contig

    # ------------------------------------------------------------------
    # Consensus
    # ------------------------------------------------------------------

    @property
    def consensus(self) -> Optional[LocatableSeq]:
        return self._consensus

    def get_consensus(self) -> Optional[LocatableSeq]:
        """Fetch the consensus sequence."""
        return self._consensus

    def set_consensus(self, consensus: Union[str, LocatableSeq]):
        """
        Replace the consensus sequence.

        Replacing the consensus invalidates cached coordinate maps. Existing
        quality scores are dropped when their length no longer matches.
        """
        if isinstance(consensus, str):
            consensus = LocatableSeq(consensus, start=1, strand=self.strand, id=self.id)
        self._consensus = consensus
        if self._quality is not None and len(self._quality) != len(consensus):
            logger.debug(
                f"Contig {self.id}: dropping quality of length {len(self._quality)} "
                f"after consensus replacement (length {len(consensus)})"
            )
            self._quality = None
        self._touch()

    @property
    def consensus_quality(self) -> Optional[List[int]]:
        return self._quality

    def set_consensus_quality(self, quality: Optional[Sequence[int]]):
        """
        Set the gapped consensus quality scores.

        Raises:
            ValueError: If the length differs from the gapped consensus length
        """
        if quality is None:
            self._quality = None
            return
        quality = [int(q) for q in quality]
        if self._consensus is not None and len(quality) != len(self._consensus):
            raise ValueError(
                f"Contig {self.id}: {len(quality)} quality scores for a consensus "
                f"of length {len(self._consensus)}"
            )
        self._quality = quality

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def add_read(self, read: LocatableSeq, start: int, end: Optional[int] = None,
                 strand: Optional[int] = None) -> Tag:
        """
        Register a read and its anchor tag.

        Args:
            read: Aligned read sequence
            start: Gapped-consensus position of the read's first base
            end: Gapped-consensus position of the read's last base
                 (defaults to start + len(read) - 1)
            strand: Anchor strand (defaults to the read's strand)

        Returns:
            The anchor tag

        Raises:
            DuplicateRead: If the read id is already registered
        """
        if read.id in self._reads:
            raise DuplicateRead(read.id, self.id)
        if end is None:
            end = start + len(read) - 1
        anchor = Tag(
            primary_tag=f"{ALIGNED_COORD}{read.id}",
            start=start,
            end=end,
            strand=read.strand if strand is None else strand,
            attributes={'contig': self.id},
        )
        self._reads[read.id] = read
        self._anchors[read.id] = anchor
        self.features.add(anchor)
        self._touch()
        return anchor

    def get_read(self, read_id: str) -> LocatableSeq:
        """Fetch a read by id (raises UnknownRead)."""
        try:
            return self._reads[read_id]
        except KeyError:
            raise UnknownRead(read_id, self.id) from None

    def get_anchor(self, read_id: str) -> Tag:
        """Fetch the anchor tag of a read (raises UnknownRead)."""
        try:
            return self._anchors[read_id]
        except KeyError:
            raise UnknownRead(read_id, self.id) from None

    def has_read(self, read_id: str) -> bool:
        return read_id in self._reads

    @property
    def reads(self) -> List[LocatableSeq]:
        """Reads in insertion (file) order."""
        return list(self._reads.values())

    @property
    def read_ids(self) -> List[str]:
        return list(self._reads.keys())

    @property
    def num_reads(self) -> int:
        return len(self._reads)

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def add_tag(self, tag: Tag, anchor: Optional[Union[str, Tag]] = None) -> Tag:
        """
        Append a tag at contig level or under a read anchor.

        Tag positions must already be gapped-consensus coordinates.

        Args:
            tag: Tag to add
            anchor: Read id or anchor tag to attach the tag to; None for
                    a contig-level tag

        Returns:
            The tag
        """
        if anchor is None:
            self.features.add(tag)
        else:
            if isinstance(anchor, str):
                anchor = self.get_anchor(anchor)
            anchor.add_sub_feature(tag)
        return tag

    def resolve_tags_by_class(self, class_name: str) -> Iterator[Tag]:
        """
        Lazily yield tags of a classification, in insertion order.

        Contig-level tags are visited in order; the sub-features of each
        anchor follow that anchor.

        Args:
            class_name: Exact classification, or a family prefix ending in ':'
        """
        for tag in self.features:
            if tag.matches(class_name):
                yield tag
            for sub in tag.sub_features:
                if sub.matches(class_name):
                    yield sub

    def first_tag(self, class_name: str) -> Optional[Tag]:
        """First tag of a classification, or None."""
        return next(self.resolve_tags_by_class(class_name), None)

    # ------------------------------------------------------------------
    # Coordinates
    # ------------------------------------------------------------------

    def change_coord(self, from_frame: str, to_frame: str, position: int) -> int:
        """Translate a position between frames (see CoordinateEngine.translate)."""
        return self.coords.translate(from_frame, to_frame, position)

    def _touch(self):
        self.generation += 1

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self) -> List[str]:
        """
        Check contig invariants.

        Returns:
            List of problems (empty if the contig is consistent)
        """
        errors = []
        if self._consensus is None:
            errors.append(f"Contig {self.id}: no consensus sequence")
            return errors

        length = len(self._consensus)
        if self._quality is not None and len(self._quality) != length:
            errors.append(
                f"Contig {self.id}: quality length {len(self._quality)} != consensus length {length}"
            )

        for tag in self.features:
            if tag.primary_tag.startswith(ALIGNED_COORD):
                read_id = tag.primary_tag[len(ALIGNED_COORD):]
                if read_id not in self._reads:
                    errors.append(f"Contig {self.id}: anchor references unknown read '{read_id}'")
                continue
            if tag.has_location and not (1 <= tag.start <= length and 1 <= tag.end <= length):
                errors.append(
                    f"Contig {self.id}: tag '{tag.primary_tag}' [{tag.start}, {tag.end}] "
                    f"outside consensus [1, {length}]"
                )

        if self.is_singlet and self.num_reads != 1:
            errors.append(f"Singlet {self.id}: holds {self.num_reads} reads")

        return errors

    def __repr__(self) -> str:
        kind = 'Singlet' if self.is_singlet else 'Contig'
        length = len(self._consensus) if self._consensus is not None else 0
        return f"{kind}(id={self.id!r}, length={length}, reads={self.num_reads})"


# ============================================================================
#                               SCAFFOLD
# ============================================================================

class Scaffold:
    """
    Ordered contigs and singlets of one assembly, plus assembly-level tags.
    """

    def __init__(self, scaffold_id: Optional[str] = None, source: Optional[str] = None):
        self.id = scaffold_id
        self.source = source
        self.contigs: List[Contig] = []
        self.singlets: List[Contig] = []
        self.annotations = FeatureCollection()
        self._index: Dict[str, Contig] = {}

    def add_contig(self, contig: Contig):
        """Append a contig."""
        self._register(contig)
        self.contigs.append(contig)

    def add_singlet(self, singlet: Contig):
        """Append a singlet."""
        self._register(singlet)
        self.singlets.append(singlet)

    def add(self, unit: Contig):
        """Append a contig or singlet according to its flag."""
        if unit.is_singlet:
            self.add_singlet(unit)
        else:
            self.add_contig(unit)

    def _register(self, unit: Contig):
        if unit.id in self._index:
            raise ValueError(f"Scaffold already holds a contig or singlet named '{unit.id}'")
        self._index[unit.id] = unit

    def get_contig_by_id(self, contig_id: str) -> Optional[Contig]:
        unit = self._index.get(contig_id)
        return unit if unit is not None and not unit.is_singlet else None

    def get_singlet_by_id(self, singlet_id: str) -> Optional[Contig]:
        unit = self._index.get(singlet_id)
        return unit if unit is not None and unit.is_singlet else None

    def get_unit(self, unit_id: str) -> Contig:
        """Fetch a contig or singlet by id (raises UnknownContig)."""
        try:
            return self._index[unit_id]
        except KeyError:
            raise UnknownContig(unit_id) from None

    @property
    def contig_ids(self) -> List[str]:
        return [c.id for c in self.contigs]

    @property
    def singlet_ids(self) -> List[str]:
        return [s.id for s in self.singlets]

    def all_units(self, singlets: bool = True) -> List[Contig]:
        """Contigs followed by singlets."""
        return self.contigs + (self.singlets if singlets else [])

    @property
    def num_reads(self) -> int:
        return sum(unit.num_reads for unit in self.all_units())

    def add_annotation(self, tag: Tag):
        """Append an assembly-level tag."""
        self.annotations.add(tag)

    def __len__(self) -> int:
        return len(self.contigs) + len(self.singlets)

    def __repr__(self) -> str:
        return (f"Scaffold(contigs={len(self.contigs)}, singlets={len(self.singlets)}, "
                f"reads={self.num_reads})")


__all__ = [
    'ALIGNED_COORD',
    'QUALITY_CLIPPING',
    'ALIGN_CLIPPING',
    'BASE_SEGMENTS',
    'READ_DESC',
    'READ_TAGS',
    'MAIN_CONTIG_FEATURE',
    'MAIN_READ_FEATURE',
    'WHOLE_ASSEMBLY',
    'LocatableSeq',
    'Tag',
    'FeatureCollection',
    'Contig',
    'Scaffold',
]

# AceTasm v0.1.0
# Any usage is subject to this software's license.
