#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
AceTasm v0.1.0

Coordinate engine: position translation between the three frames of a contig.

Frames:
    'gapped consensus'    positions in the consensus, gap symbols included
    'ungapped consensus'  consensus positions renumbered with gaps removed
    'aligned <read_id>'   positions in a read's own stored (gapped) sequence

All positions are 1-based. Every translation pivots on the gapped consensus:
a read's local position p sits at gapped position anchor.start + p - 1 on
either strand, and the consensus gap maps are numpy arrays built once per
contig generation.

Author: AceTasm Development Team
License: MIT - See LICENSE
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .errors import OutOfRange, UnknownRead

logger = logging.getLogger(__name__)

GAPPED_CONSENSUS = 'gapped consensus'
UNGAPPED_CONSENSUS = 'ungapped consensus'
ALIGNED_PREFIX = 'aligned '

_GAP_BYTE = ord('-')


def aligned_frame(read_id: str) -> str:
    """
    Name of a read's local frame.

    Example:
        >>> aligned_frame("read1")
        'aligned read1'
    """
    return f"{ALIGNED_PREFIX}{read_id}"


def parse_frame(frame: str) -> Tuple[str, Optional[str]]:
    """
    Split a frame name into its kind and optional read id.

    Returns:
        (kind, read_id) where kind is 'gapped', 'ungapped' or 'aligned'

    Raises:
        ValueError: If the frame name is not recognized
    """
    if frame == GAPPED_CONSENSUS:
        return 'gapped', None
    if frame == UNGAPPED_CONSENSUS:
        return 'ungapped', None
    if frame.startswith(ALIGNED_PREFIX) and len(frame) > len(ALIGNED_PREFIX):
        return 'aligned', frame[len(ALIGNED_PREFIX):]
    raise ValueError(
        f"Unknown coordinate frame '{frame}' (expected '{GAPPED_CONSENSUS}', "
        f"'{UNGAPPED_CONSENSUS}' or 'aligned <read_id>')"
    )


@dataclass(frozen=True)
class GapMap:
    """
    Monotonic position maps of one gapped sequence.

    Attributes:
        ungapped_to_gapped: gapped position (1-based) of each ungapped base
        gapped_to_ungapped: ungapped position of each gapped position; gap
                            symbols take the preceding base, leading gaps the
                            first base
    """
    ungapped_to_gapped: np.ndarray
    gapped_to_ungapped: np.ndarray

    @classmethod
    def from_sequence(cls, sequence: str) -> 'GapMap':
        """Scan a gapped sequence once and build both maps."""
        codes = np.frombuffer(sequence.encode('ascii'), dtype=np.uint8)
        is_base = codes != _GAP_BYTE
        ungapped_to_gapped = np.flatnonzero(is_base) + 1
        gapped_to_ungapped = np.maximum(np.cumsum(is_base), 1)
        return cls(ungapped_to_gapped=ungapped_to_gapped,
                   gapped_to_ungapped=gapped_to_ungapped)

    @property
    def gapped_length(self) -> int:
        return int(self.gapped_to_ungapped.size)

    @property
    def ungapped_length(self) -> int:
        return int(self.ungapped_to_gapped.size)

    @property
    def num_gaps(self) -> int:
        return self.gapped_length - self.ungapped_length


class CoordinateEngine:
    """
    Position translation for one contig.

    The engine holds an explicit cache of gap maps keyed by the contig
    generation counter; any consensus or read mutation bumps the counter and
    the next translation rebuilds the maps.
    """

    def __init__(self, contig):
        """
        Initialize the engine.

        Args:
            contig: Contig whose consensus and read anchors are translated
        """
        self._contig = contig
        self._generation: Optional[int] = None
        self._consensus_map: Optional[GapMap] = None

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    def invalidate(self):
        """Drop cached maps."""
        self._generation = None
        self._consensus_map = None

    def consensus_map(self) -> GapMap:
        """Gap map of the current consensus, rebuilt after any mutation."""
        generation = self._contig.generation
        if self._consensus_map is None or self._generation != generation:
            consensus = self._contig.consensus
            sequence = consensus.sequence if consensus is not None else ''
            self._consensus_map = GapMap.from_sequence(sequence)
            self._generation = generation
            logger.debug(
                f"Contig {self._contig.id}: built gap map "
                f"({self._consensus_map.gapped_length} gapped, "
                f"{self._consensus_map.ungapped_length} ungapped)"
            )
        return self._consensus_map

    # ------------------------------------------------------------------
    # Translation
    # ------------------------------------------------------------------

    def read_span(self, read_id: str) -> Tuple[int, int]:
        """
        Gapped-consensus span covered by a read's local positions.

        Local position 1 maps to the lower bound of the anchor on both
        strands.

        Raises:
            UnknownRead: If the read is not registered
        """
        anchor = self._contig.get_anchor(read_id)
        read = self._contig.get_read(read_id)
        low = min(anchor.start, anchor.end)
        return low, low + len(read) - 1

    def translate(self, from_frame: str, to_frame: str, position: int) -> int:
        """
        Translate a 1-based position between frames.

        Args:
            from_frame: Source frame name
            to_frame: Target frame name
            position: Position in the source frame

        Returns:
            Position in the target frame

        Raises:
            OutOfRange: If a position falls outside a frame's bounds
            UnknownRead: If a read frame names an unregistered read
            ValueError: If a frame name is not recognized
        """
        position = int(position)
        from_kind, from_read = parse_frame(from_frame)
        to_kind, to_read = parse_frame(to_frame)

        for read_id in (from_read, to_read):
            if read_id is not None and not self._contig.has_read(read_id):
                raise UnknownRead(read_id, self._contig.id)

        if from_frame == to_frame:
            self._check_source(from_kind, from_read, from_frame, position)
            return position

        gapped = self._to_gapped(from_kind, from_read, from_frame, position)
        return self._from_gapped(to_kind, to_read, to_frame, gapped)

    def _check_source(self, kind: str, read_id: Optional[str], frame: str, position: int):
        if kind == 'aligned':
            length = len(self._contig.get_read(read_id))
            _check(frame, position, 1, length)
        elif kind == 'ungapped':
            _check(frame, position, 1, self.consensus_map().ungapped_length)
        else:
            _check(frame, position, 1, self.consensus_map().gapped_length)

    def _to_gapped(self, kind: str, read_id: Optional[str], frame: str, position: int) -> int:
        if kind == 'gapped':
            return position
        if kind == 'ungapped':
            gap_map = self.consensus_map()
            _check(frame, position, 1, gap_map.ungapped_length)
            return int(gap_map.ungapped_to_gapped[position - 1])
        low, high = self.read_span(read_id)
        _check(frame, position, 1, high - low + 1)
        return low + position - 1

    def _from_gapped(self, kind: str, read_id: Optional[str], frame: str, gapped: int) -> int:
        if kind == 'gapped':
            # Reads may overhang the consensus ends
            return gapped
        if kind == 'ungapped':
            gap_map = self.consensus_map()
            if gap_map.ungapped_length == 0:
                raise OutOfRange(UNGAPPED_CONSENSUS, gapped, (1, 0))
            _check(GAPPED_CONSENSUS, gapped, 1, gap_map.gapped_length)
            return int(gap_map.gapped_to_ungapped[gapped - 1])
        low, high = self.read_span(read_id)
        _check(GAPPED_CONSENSUS, gapped, low, high)
        return gapped - low + 1


def _check(frame: str, position: int, low: int, high: int):
    if not low <= position <= high:
        raise OutOfRange(frame, position, (low, high))


def translate(contig, from_frame: str, to_frame: str, position: int) -> int:
    """
    Translate a position between two frames of a contig.

    Example:
        >>> translate(contig, 'ungapped consensus', 'gapped consensus', 3)
    """
    return contig.coords.translate(from_frame, to_frame, position)


__all__ = [
    'GAPPED_CONSENSUS',
    'UNGAPPED_CONSENSUS',
    'ALIGNED_PREFIX',
    'aligned_frame',
    'parse_frame',
    'GapMap',
    'CoordinateEngine',
    'translate',
]

# AceTasm v0.1.0
# Any usage is subject to this software's license.
