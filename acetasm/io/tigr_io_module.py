#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
TIGR Assembler tasm codec for AceTasm.

Consolidated module containing:
- Field tables mapping every known tasm key to a typed parser
- Quality hex encoding, read id / database name handling and the derived
  metrics (perc_N, redundancy) written with each contig
- TigrReader / TigrWriter and read_tigr / write_tigr

A tasm file is a list of objects separated by a line holding a single '|'.
Each object is a block of tab-separated contig fields followed, after a
blank line, by one block per read; reads are separated by blank lines.
Objects declaring one sequence (seq# 1) are singlets.
"""

# =============================================================================
# SECTION 1: IMPORTS AND DEPENDENCIES
# =============================================================================

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, TextIO, Tuple, Union

import numpy as np

from ..assembly_core.coordinate_engine import (
    GAPPED_CONSENSUS,
    UNGAPPED_CONSENSUS,
    aligned_frame,
)
from ..assembly_core.data_structures import (
    MAIN_CONTIG_FEATURE,
    MAIN_READ_FEATURE,
    QUALITY_CLIPPING,
    Contig,
    LocatableSeq,
    Scaffold,
    Tag,
)
from ..assembly_core.errors import MalformedRecord, OutOfRange, UnrecognizedField
from ..config.schema import CodecSettings
from ..utils.sequence_utils import GAP, natural_sort_key, percent_ambiguous, ungap
from .line_stream import LineStream, open_file

logger = logging.getLogger(__name__)

SEPARATOR = '|'
DATE_FORMAT = '%m/%d/%y %H:%M:%S'

_GAP_BYTE = ord(GAP)
_SEQ_ID_RE = re.compile(r'(\S+)\|(\S+)')


# =============================================================================
# SECTION 2: FIELD TABLES
# =============================================================================

def _text(value: str) -> str:
    return value


def _integer(value: str) -> int:
    return int(value.strip())


# Contig fields in output order
CONTIG_FIELDS: Dict[str, Callable[[str], object]] = {
    'sequence': _text,      # ungapped consensus (recomputed on write)
    'lsequence': _text,     # gapped consensus
    'quality': _text,       # hex scores, two digits per gapped position
    'asmbl_id': _text,
    'seq_id': _text,
    'com_name': _text,
    'type': _text,
    'method': _text,
    'ed_status': _text,
    'redundancy': _text,    # recomputed on write
    'perc_N': _text,        # recomputed on write
    'seq#': _integer,
    'full_cds': _text,
    'cds_start': _text,
    'cds_end': _text,
    'ed_pn': _text,
    'ed_date': _text,
    'comment': _text,
    'frameshift': _text,
}

# Read fields in output order
READ_FIELDS: Dict[str, Callable[[str], object]] = {
    'seq_name': _text,
    'asm_lend': _integer,   # ungapped consensus
    'asm_rend': _integer,
    'seq_lend': _integer,   # read-local
    'seq_rend': _integer,
    'best': _text,
    'comment': _text,
    'db': _text,
    'offset': _integer,
    'lsequence': _text,
}

# Contig fields kept verbatim on the main contig feature
DESCRIPTIVE_CONTIG_FIELDS = (
    'seq_id', 'com_name', 'type', 'method', 'ed_status', 'full_cds',
    'cds_start', 'cds_end', 'ed_pn', 'ed_date', 'comment', 'frameshift',
)

# Read fields kept verbatim on the main read feature
DESCRIPTIVE_READ_FIELDS = ('best', 'comment')

_REQUIRED_CONTIG_FIELDS = ('asmbl_id', 'lsequence', 'seq#')
_REQUIRED_READ_FIELDS = ('seq_name', 'asm_lend', 'asm_rend', 'seq_lend', 'seq_rend', 'lsequence')


# =============================================================================
# SECTION 3: FIELD HELPERS AND DERIVED METRICS
# =============================================================================

def qual_hex_to_dec(quality: str) -> List[int]:
    """
    Decode a tasm quality string.

    Example:
        >>> qual_hex_to_dec("0x0A141E")
        [10, 20, 30]

    Raises:
        ValueError: On an odd number of digits or a non-hex digit
    """
    digits = quality.strip()
    if digits[:2].lower() == '0x':
        digits = digits[2:]
    if len(digits) % 2:
        raise ValueError(f"odd number of hex digits in quality string ({len(digits)})")
    return [int(digits[i:i + 2], 16) for i in range(0, len(digits), 2)]


def qual_dec_to_hex(scores) -> str:
    """
    Encode quality scores as uppercase hex, two digits per score.

    Example:
        >>> qual_dec_to_hex([10, 20, 30])
        '0x0A141E'
    """
    return '0x' + ''.join('%02X' % int(score) for score in scores)


def split_seq_name_and_db(read_id: str) -> Tuple[str, str]:
    """
    Extract seq_name and db from a read id.

    Example:
        >>> split_seq_name_and_db("big_db|seq1234")
        ('seq1234', 'big_db')
    """
    match = _SEQ_ID_RE.match(read_id)
    if match:
        return match.group(2), match.group(1)
    return read_id, ''


def merge_seq_name_and_db(seq_name: str, db: Optional[str]) -> str:
    """Construct a read id from seq_name and db."""
    if db:
        return f"{db}|{seq_name}"
    return seq_name


def perc_n(contig: Contig) -> float:
    """
    Percentage of ambiguous symbols in the ungapped consensus.

    Lowercase bases count as ambiguities, as TIGR Assembler writes them.
    """
    return percent_ambiguous(contig.consensus.ungapped)


def redundancy(contig: Contig) -> float:
    """
    Average read coverage of the ungapped consensus.

    (sum of read lengths - respected gaps) / ungapped consensus length. A
    consensus gap is respected by each read that spans it and holds a gap
    at the matching local position. Singlets are 1.0.
    """
    if contig.is_singlet:
        return 1.0

    consensus = contig.consensus.sequence
    ungapped_length = len(consensus) - consensus.count(GAP)
    if ungapped_length == 0:
        return 0.0

    consensus_codes = np.frombuffer(consensus.encode('ascii'), dtype=np.uint8)
    gaps = np.flatnonzero(consensus_codes == _GAP_BYTE) + 1

    total = 0
    respected = 0
    for read in contig.reads:
        total += len(read)
        if gaps.size == 0:
            continue
        low, high = contig.coords.read_span(read.id)
        local = gaps[(gaps >= low) & (gaps <= high)] - low
        read_codes = np.frombuffer(read.sequence.encode('ascii'), dtype=np.uint8)
        respected += int(np.count_nonzero(read_codes[local] == _GAP_BYTE))

    return (total - respected) / ungapped_length


def date_time() -> str:
    """Current local date and time as MM/DD/YY HH:MM:SS."""
    return datetime.now().strftime(DATE_FORMAT)


def _on_consensus(contig: Contig, low: int, high: int) -> Tuple[int, int]:
    """
    Clamp a gapped range to the consensus.

    Raises:
        OutOfRange: If the range does not touch the consensus at all
    """
    length = len(contig.consensus)
    clamped = (max(low, 1), min(high, length))
    if clamped[0] > clamped[1]:
        raise OutOfRange(GAPPED_CONSENSUS, low, (1, length))
    return clamped


# =============================================================================
# SECTION 4: TIGR READER
# =============================================================================

class TigrReader:
    """
    Streaming tasm parser.

    Example:
        >>> with TigrReader("assembly.tasm") as reader:
        ...     scaffold = reader.next_assembly()
    """

    def __init__(self, source: Union[str, Path, TextIO],
                 settings: Optional[CodecSettings] = None):
        """
        Initialize the reader.

        Args:
            source: tasm file path or open text handle
            settings: Codec settings (defaults used if None)
        """
        self.settings = settings or CodecSettings()
        self._stream = LineStream(source)

    def next_contig(self) -> Optional[Contig]:
        """
        Parse the next contig or singlet.

        Returns:
            Contig (flagged as singlet when seq# is 1), or None at end of input

        Raises:
            MalformedRecord: On a line without a tab or a bad value
            UnrecognizedField: On a key not valid for the current block
        """
        contig: Optional[Contig] = None
        contig_info: Dict[str, object] = {}
        contig_line = 0
        read_info: Dict[str, object] = {}
        read_line = 0
        in_reads = False

        while True:
            line = self._stream.readline()
            if line is None:
                break
            text = line.rstrip('\r\n')

            if text.strip() == SEPARATOR:
                if contig is None and not contig_info:
                    continue
                break

            if not text.strip():
                if not in_reads:
                    if contig_info:
                        contig = self._store_contig(contig_info, contig_line)
                        in_reads = True
                elif read_info:
                    self._store_read(contig, read_info, read_line)
                    read_info = {}
                continue

            if in_reads:
                if not read_info:
                    read_line = self._stream.line_number
                self._parse_field(text, READ_FIELDS, read_info)
            else:
                if not contig_info:
                    contig_line = self._stream.line_number
                self._parse_field(text, CONTIG_FIELDS, contig_info)

        if contig is None and contig_info:
            contig = self._store_contig(contig_info, contig_line)
        if read_info:
            self._store_read(contig, read_info, read_line)

        if contig is not None:
            kind = 'singlet' if contig.is_singlet else 'contig'
            logger.debug(f"Parsed {kind} {contig.id}: {len(contig.consensus)} bp, "
                         f"{contig.num_reads} reads")
        return contig

    def __iter__(self):
        while True:
            contig = self.next_contig()
            if contig is None:
                return
            yield contig

    def next_assembly(self) -> Scaffold:
        """
        Parse the whole input into a Scaffold.

        Returns:
            Scaffold holding contigs and singlets in file order
        """
        scaffold = Scaffold(source=self._stream.name)
        for contig in self:
            scaffold.add(contig)

        logger.info(
            f"Loaded {len(scaffold.contigs)} contigs, {len(scaffold.singlets)} singlets "
            f"and {scaffold.num_reads} reads from {self._stream.name}"
        )
        return scaffold

    def _parse_field(self, text: str, fields: Dict[str, Callable[[str], object]],
                     record: Dict[str, object]):
        if '\t' not in text:
            raise MalformedRecord("expected a tab-separated key and value",
                                  self._stream.line_number, text)
        key, value = text.split('\t', 1)
        parser = fields.get(key)
        if parser is None:
            raise UnrecognizedField(key, self._stream.line_number, text)
        try:
            record[key] = parser(value)
        except ValueError:
            raise MalformedRecord(f"invalid value for field '{key}'",
                                  self._stream.line_number, text) from None

    def _store_contig(self, info: Dict[str, object], line_number: int) -> Contig:
        missing = [key for key in _REQUIRED_CONTIG_FIELDS if key not in info]
        if missing:
            raise MalformedRecord(f"contig record lacks {', '.join(missing)}", line_number)

        contig_id = info['asmbl_id']
        contig = Contig(
            contig_id,
            consensus=LocatableSeq(info['lsequence'], start=1, strand=1, id=contig_id),
            is_singlet=(info['seq#'] == 1),
        )

        if 'quality' in info:
            try:
                contig.set_consensus_quality(qual_hex_to_dec(info['quality']))
            except ValueError as e:
                raise MalformedRecord(f"contig {contig_id}: bad quality ({e})",
                                      line_number) from None

        contig.add_tag(Tag(
            primary_tag=f"{MAIN_CONTIG_FEATURE}{contig_id}",
            start=1,
            end=len(contig.consensus),
            attributes={key: info[key] for key in DESCRIPTIVE_CONTIG_FIELDS if key in info},
        ))
        return contig

    def _store_read(self, contig: Optional[Contig], info: Dict[str, object], line_number: int):
        if contig is None:
            raise MalformedRecord("read record found before any contig record", line_number)
        missing = [key for key in _REQUIRED_READ_FIELDS if key not in info]
        if missing:
            raise MalformedRecord(f"read record lacks {', '.join(missing)}", line_number)

        read_id = merge_seq_name_and_db(info['seq_name'], info.get('db'))
        asm_lend, asm_rend = info['asm_lend'], info['asm_rend']
        strand = -1 if asm_rend < asm_lend else 1

        read = LocatableSeq(info['lsequence'], start=1, strand=strand, id=read_id)
        low, high = min(asm_lend, asm_rend), max(asm_lend, asm_rend)
        if 'offset' in info:
            # offset + 1 is the gapped anchor start, pads and overhangs included
            start = info['offset'] + 1
            end = start + len(read) - 1
            first_on_consensus = min(max(start, 1), len(contig.consensus))
            if contig.change_coord(GAPPED_CONSENSUS, UNGAPPED_CONSENSUS, first_on_consensus) != low:
                raise MalformedRecord(
                    f"read {read_id}: offset {info['offset']} does not match "
                    f"asm_lend/asm_rend {asm_lend}/{asm_rend}",
                    line_number,
                )
        else:
            start = contig.change_coord(UNGAPPED_CONSENSUS, GAPPED_CONSENSUS, low)
            end = contig.change_coord(UNGAPPED_CONSENSUS, GAPPED_CONSENSUS, high)
        anchor = contig.add_read(read, start, end, strand=strand)

        seq_lend, seq_rend = info['seq_lend'], info['seq_rend']
        frame = aligned_frame(read_id)
        clip_start = contig.change_coord(frame, GAPPED_CONSENSUS, min(seq_lend, seq_rend))
        clip_end = contig.change_coord(frame, GAPPED_CONSENSUS, max(seq_lend, seq_rend))
        contig.add_tag(Tag(
            primary_tag=f"{QUALITY_CLIPPING}{read_id}",
            start=clip_start,
            end=clip_end,
            strand=-1 if seq_rend < seq_lend else 1,
        ))

        contig.add_tag(Tag(
            primary_tag=f"{MAIN_READ_FEATURE}{read_id}",
            start=start,
            end=end,
            strand=strand,
            attributes={key: info[key] for key in DESCRIPTIVE_READ_FIELDS if key in info},
        ), anchor=anchor)

    def close(self):
        """Close the input if the reader opened it."""
        self._stream.close()

    def __enter__(self) -> 'TigrReader':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


# =============================================================================
# SECTION 5: TIGR WRITER
# =============================================================================

class TigrWriter:
    """
    tasm writer.

    Contigs and singlets are written in natural id order, each object
    followed by a '|' line except the last.
    """

    def __init__(self, target: Union[str, Path, TextIO],
                 settings: Optional[CodecSettings] = None):
        """
        Initialize the writer.

        Args:
            target: Output path or writable text handle
            settings: Codec settings (defaults used if None)
        """
        self.settings = settings or CodecSettings()
        if isinstance(target, (str, Path)):
            self.name = str(target)
            self._handle: TextIO = open_file(target, 'w')
            self._owns_handle = True
        else:
            self.name = getattr(target, 'name', '<stream>')
            self._handle = target
            self._owns_handle = False

    def write_assembly(self, scaffold: Scaffold, singlets: Optional[bool] = None):
        """
        Write a whole assembly.

        Args:
            scaffold: Assembly to write
            singlets: Include singlets (defaults to settings.include_singlets)
        """
        if singlets is None:
            singlets = self.settings.include_singlets
        units = sorted(scaffold.all_units(singlets), key=lambda u: natural_sort_key(u.id))

        for i, unit in enumerate(units):
            if i > 0:
                self._handle.write(f"{SEPARATOR}\n")
            self.write_contig(unit)

        logger.info(f"Wrote {len(units)} contigs/singlets to {self.name}")

    def write_contig(self, contig: Contig):
        """Write the contig block and read blocks of one contig or singlet."""
        decimal_format = self.settings.decimal_format
        consensus = contig.consensus.sequence
        quality = contig.consensus_quality
        if quality is None:
            quality = [self.settings.default_quality] * len(consensus)

        annotation = contig.first_tag(f"{MAIN_CONTIG_FEATURE}{contig.id}")
        descriptive = dict(annotation.attributes) if annotation is not None else {}
        if not descriptive.get('ed_date'):
            descriptive['ed_date'] = date_time()

        values = {
            'sequence': ungap(consensus),
            'lsequence': consensus,
            'quality': qual_dec_to_hex(quality),
            'asmbl_id': contig.id,
            'redundancy': decimal_format % redundancy(contig),
            'perc_N': decimal_format % perc_n(contig),
            'seq#': contig.num_reads,
        }
        for key in DESCRIPTIVE_CONTIG_FIELDS:
            values[key] = descriptive.get(key, '')

        self._handle.write(''.join(f"{key}\t{values[key]}\n" for key in CONTIG_FIELDS) + "\n")

        blocks = [self._read_block(contig, read) for read in contig.reads]
        self._handle.write("\n".join(blocks))

    def _read_block(self, contig: Contig, read: LocatableSeq) -> str:
        read_id = read.id
        seq_name, db = split_seq_name_and_db(read_id)
        anchor = contig.get_anchor(read_id)
        frame = aligned_frame(read_id)
        anchor_low = min(anchor.start, anchor.end)

        # asm_* and seq_* only cover the part of the read lying on the consensus
        low, high = _on_consensus(contig, anchor_low, max(anchor.start, anchor.end))
        asm_lend = contig.change_coord(GAPPED_CONSENSUS, UNGAPPED_CONSENSUS, low)
        asm_rend = contig.change_coord(GAPPED_CONSENSUS, UNGAPPED_CONSENSUS, high)
        if anchor.strand == -1:
            asm_lend, asm_rend = asm_rend, asm_lend

        read_low, read_high = _on_consensus(contig, *contig.coords.read_span(read_id))
        clip = contig.first_tag(f"{QUALITY_CLIPPING}{read_id}")
        clip_low, clip_high = read_low, read_high
        if clip is not None:
            clip_low = max(min(clip.start, clip.end), read_low)
            clip_high = min(max(clip.start, clip.end), read_high)
            if clip_low > clip_high:
                clip_low, clip_high = read_low, read_high
        seq_lend = contig.change_coord(GAPPED_CONSENSUS, frame, clip_low)
        seq_rend = contig.change_coord(GAPPED_CONSENSUS, frame, clip_high)
        if clip is not None and clip.strand == -1:
            seq_lend, seq_rend = seq_rend, seq_lend

        annotation = contig.first_tag(f"{MAIN_READ_FEATURE}{read_id}")
        descriptive = annotation.attributes if annotation is not None else {}

        values = {
            'seq_name': seq_name,
            'asm_lend': asm_lend,
            'asm_rend': asm_rend,
            'seq_lend': seq_lend,
            'seq_rend': seq_rend,
            'best': descriptive.get('best', ''),
            'comment': descriptive.get('comment', ''),
            'db': db,
            'offset': anchor_low - 1,
            'lsequence': read.sequence,
        }
        return ''.join(f"{key}\t{values[key]}\n" for key in READ_FIELDS)

    def close(self):
        """Flush and close the output if the writer opened it."""
        if self._owns_handle and not self._handle.closed:
            self._handle.close()
        elif not self._handle.closed:
            self._handle.flush()

    def __enter__(self) -> 'TigrWriter':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


# =============================================================================
# SECTION 6: CONVENIENCE FUNCTIONS
# =============================================================================

def read_tigr(filepath: Union[str, Path, TextIO],
              settings: Optional[CodecSettings] = None) -> Scaffold:
    """Read a whole tasm file into a Scaffold."""
    with TigrReader(filepath, settings=settings) as reader:
        return reader.next_assembly()


def write_tigr(scaffold: Scaffold, filepath: Union[str, Path, TextIO],
               settings: Optional[CodecSettings] = None, singlets: bool = True):
    """Write a whole assembly in tasm format."""
    with TigrWriter(filepath, settings=settings) as writer:
        writer.write_assembly(scaffold, singlets=singlets)


__all__ = [
    'CONTIG_FIELDS',
    'READ_FIELDS',
    'qual_hex_to_dec',
    'qual_dec_to_hex',
    'split_seq_name_and_db',
    'merge_seq_name_and_db',
    'perc_n',
    'redundancy',
    'date_time',
    'TigrReader',
    'TigrWriter',
    'read_tigr',
    'write_tigr',
]
