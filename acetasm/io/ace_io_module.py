#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
ACE codec for AceTasm.

Consolidated module containing:
- AceReader: record parser for the reference (consed) ACE dialect and the
  Newbler "454" variant, one contig or singlet per call
- AceWriter: formatted writer with header (AS) and footer (WA/CT) passes
- read_ace / write_ace convenience functions

Positions in the model are gapped-consensus coordinates; read-local ACE
values (QA, RT) pass through the contig's coordinate engine on the way in
and on the way out.
"""

# =============================================================================
# SECTION 1: IMPORTS AND DEPENDENCIES
# =============================================================================

import io
import logging
import re
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional, Sequence, TextIO, Tuple, Union

from ..assembly_core.coordinate_engine import GAPPED_CONSENSUS, aligned_frame
from ..assembly_core.data_structures import (
    ALIGN_CLIPPING,
    ALIGNED_COORD,
    BASE_SEGMENTS,
    QUALITY_CLIPPING,
    READ_DESC,
    READ_TAGS,
    WHOLE_ASSEMBLY,
    Contig,
    LocatableSeq,
    Scaffold,
    Tag,
)
from ..assembly_core.errors import MalformedRecord, OutOfRange, UnknownRead
from ..config.schema import CodecSettings
from ..utils.sequence_utils import GAP, chunked, natural_sort_key
from .line_stream import LineStream, open_file

logger = logging.getLogger(__name__)

ACE_GAP = '*'

_CO_RE = re.compile(r'^CO\s+(\S+)\s+(\d+)\s+(\d+)\s+(\d+)\s+([UC])\b')
_BQ_RE = re.compile(r'^BQ\s*$')
_AF_RE = re.compile(r'^AF\s+(\S+)\s+([UC])\s+(-?\d+)')
_BS_RE = re.compile(r'^BS\s+(-?\d+)\s+(-?\d+)\s+(\S+)')
_RD_RE = re.compile(r'^RD\s+(\S+)\s+(\d+)\s+(\d+)\s+(\d+)')
_QA_RE = re.compile(r'^QA\s+(-?\d+)\s+(-?\d+)\s+(-?\d+)\s+(-?\d+)')
_DS_RE = re.compile(r'^DS\b\s*(.*)$')
_AS_RE = re.compile(r'^AS\s+\d+\s+\d+')
_RT_RE = re.compile(r'^RT\s*\{')
_WA_RE = re.compile(r'^WA\s*\{')
_CT_RE = re.compile(r'^CT\s*\{')
_BLOCK_RE = re.compile(r'^\w+\s*\{')
_COMMENT_RE = re.compile(r'^COMMENT\s*\{\s*$')
_DS_SPLIT_RE = re.compile(r'\s?(\S+):\s+')


# =============================================================================
# SECTION 2: FORMATTING HELPERS
# =============================================================================

def _formatted_seq(sequence: str, line_width: int) -> str:
    """
    Format a sequence for ACE output: gaps become '*', lines are wrapped.

    Example:
        >>> _formatted_seq("AC-GT", 3)
        'AC*\\nGT\\n'
    """
    sequence = sequence.replace(GAP, ACE_GAP)
    return ''.join(f"{chunk}\n" for chunk in chunked(sequence, line_width))


def _formatted_qual(quality: Optional[Sequence[int]], sequence: str,
                    line_width: int, default_quality: int) -> str:
    """
    Format consensus quality for ACE output.

    Missing scores take the default value, gap positions get no score, and
    scores are wrapped `line_width` per line.
    """
    if quality is None:
        quality = [default_quality] * len(sequence)
    scores = [str(q) for base, q in zip(sequence, quality) if base != GAP]
    return ''.join(f"{' '.join(chunk)}\n" for chunk in chunked(scores, line_width))


def _input_qual(scores: Sequence[int], sequence: str) -> List[int]:
    """
    Re-insert scores at the gap positions of a consensus.

    ACE gives no score to gaps. Each gap receives the integer mean of the
    nearest raw scores on either side, a missing side counting as 0.

    Example:
        >>> _input_qual([10, 20, 30, 40], "AC-GT")
        [10, 20, 25, 30, 40]
    """
    quality = []
    i = 0
    for base in sequence:
        if base == GAP:
            prev = scores[i - 1] if i > 0 else 0
            following = scores[i] if i < len(scores) else 0
            quality.append((prev + following) // 2)
        else:
            quality.append(scores[i])
            i += 1
    return quality


def _block_text(text: Optional[str]) -> str:
    if not text:
        return ''
    return text if text.endswith('\n') else text + '\n'


def _strand_letter(strand: int) -> str:
    return 'C' if strand == -1 else 'U'


# =============================================================================
# SECTION 3: ACE READER
# =============================================================================

class AceReader:
    """
    Streaming ACE parser.

    Each call to next_contig() consumes the records of one contig (CO, BQ,
    AF, BS, RD, QA, DS, RT) and returns it. next_assembly() gathers every
    contig and singlet into a Scaffold and then rewinds the input for the
    whole-file WA/CT pass.

    Example:
        >>> with AceReader("assembly.ace") as reader:
        ...     for contig in reader:
        ...         print(contig.id, contig.num_reads)
    """

    def __init__(
        self,
        source: Union[str, Path, TextIO],
        settings: Optional[CodecSettings] = None,
        variant: Optional[str] = None,
    ):
        """
        Initialize the reader.

        Args:
            source: ACE file path or open text handle
            settings: Codec settings (defaults used if None)
            variant: 'consed' or '454'; overrides settings.variant

        Raises:
            ValueError: If the variant is not a known ACE variant
        """
        settings = settings or CodecSettings()
        if variant is not None:
            settings = replace(settings, variant=variant)
        self.settings = settings
        self._stream = LineStream(source)
        # RT blocks met while another contig was open; attached by scaffold_annotations
        self._deferred_read_tags: List[Tuple[str, Tag, int]] = []

    @property
    def variant(self) -> str:
        return self.settings.variant

    # ------------------------------------------------------------------
    # Per-contig pass
    # ------------------------------------------------------------------

    def next_contig(self) -> Optional[Contig]:
        """
        Parse the next contig or singlet.

        Returns:
            Contig (flagged as singlet when CO declares one read), or None
            at end of input

        Raises:
            MalformedRecord: On a line that matches no ACE record, or on QA/RT
                positions outside their read
        """
        contig: Optional[Contig] = None
        read_data: Dict[str, Dict[str, int]] = {}
        read_name: Optional[str] = None
        min_start: Optional[int] = None
        is_454 = self.variant == '454'

        while True:
            line = self._stream.readline()
            if line is None:
                break
            text = line.rstrip('\r\n')
            if not text.strip():
                continue

            match = _CO_RE.match(text)
            if match:
                if contig is not None:
                    # Next contig starts: leave it for the following call
                    self._stream.pushback(line)
                    break
                contig = self._parse_consensus(match)
                continue

            if _AS_RE.match(text):
                continue

            if _RT_RE.match(text):
                self._parse_read_tag(contig)
                continue

            if _BLOCK_RE.match(text):
                self._skip_block()
                continue

            if contig is None:
                raise MalformedRecord("record found before any CO record",
                                      self._stream.line_number, text)

            if _BQ_RE.match(text):
                self._parse_quality(contig)
                continue

            match = _AF_RE.match(text)
            if match:
                start = int(match.group(3))
                read_data[match.group(1)] = {
                    'strand': 1 if match.group(2) == 'U' else -1,
                    'padded_start': start,
                }
                if is_454 and (min_start is None or start < min_start):
                    min_start = start
                continue

            match = _BS_RE.match(text)
            if match:
                start, end = int(match.group(1)), int(match.group(2))
                if is_454:
                    start += _shift(min_start)
                    end += _shift(min_start)
                contig.add_tag(Tag(
                    primary_tag=BASE_SEGMENTS,
                    start=start,
                    end=end,
                    attributes={'contig_id': match.group(3)},
                ))
                continue

            match = _RD_RE.match(text)
            if match:
                read_name = match.group(1)
                self._parse_read(contig, match, read_data, is_454, min_start)
                continue

            match = _QA_RE.match(text)
            if match:
                self._require_read(read_name, text)
                self._parse_clipping(contig, read_name, [int(g) for g in match.groups()], text)
                continue

            match = _DS_RE.match(text)
            if match:
                self._require_read(read_name, text)
                self._parse_description(contig, read_name, match.group(1))
                continue

            raise MalformedRecord("unrecognized ACE record",
                                  self._stream.line_number, text)

        if contig is not None and is_454 and min_start is not None and contig.num_reads:
            _pad_454_consensus(contig, _shift(min_start))

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

    def _parse_consensus(self, match) -> Contig:
        contig_id = match.group(1)
        nof_reads = int(match.group(3))
        strand = 1 if match.group(5) == 'U' else -1

        consensus = ''.join(self._read_body())
        return Contig(
            contig_id,
            consensus=LocatableSeq(consensus, start=1, strand=strand, id=contig_id),
            strand=strand,
            is_singlet=(nof_reads == 1),
        )

    def _read_body(self) -> List[str]:
        """Collect sequence lines until a blank line, gap glyph normalized."""
        lines = []
        while True:
            line = self._stream.readline()
            if line is None:
                break
            text = line.strip()
            if not text:
                break
            lines.append(text.replace(ACE_GAP, GAP))
        return lines

    def _parse_quality(self, contig: Contig):
        raw = []
        while True:
            line = self._stream.readline()
            if line is None or not line.strip():
                break
            try:
                raw.extend(int(value) for value in line.split())
            except ValueError:
                raise MalformedRecord("non-integer BQ score",
                                      self._stream.line_number, line.rstrip('\r\n')) from None

        consensus = contig.consensus.sequence
        expected = len(consensus) - consensus.count(GAP)
        if len(raw) != expected:
            raise MalformedRecord(
                f"BQ of contig {contig.id} has {len(raw)} scores for "
                f"{expected} ungapped consensus bases",
                self._stream.line_number,
            )
        contig.set_consensus_quality(_input_qual(raw, consensus))

    def _parse_read(self, contig: Contig, match, read_data: Dict[str, Dict[str, int]],
                    is_454: bool, min_start: Optional[int]):
        read_name = match.group(1)
        length = int(match.group(2))
        line_number = self._stream.line_number
        if read_name not in read_data:
            raise MalformedRecord(f"RD for read {read_name} without a preceding AF record",
                                  line_number, match.group(0))

        sequence = ''.join(self._read_body())
        if len(sequence) != length:
            raise MalformedRecord(
                f"read {read_name} declares {length} bases but holds {len(sequence)}",
                line_number, match.group(0),
            )

        strand = read_data[read_name]['strand']
        padded_start = read_data[read_name]['padded_start']
        if is_454:
            padded_start += _shift(min_start)

        read = LocatableSeq(sequence, start=1, strand=strand, id=read_name)
        contig.add_read(read, padded_start, padded_start + length - 1, strand=strand)

    def _parse_clipping(self, contig: Contig, read_name: str, values: List[int], text: str):
        qual_start, qual_end, aln_start, aln_end = values
        strand = contig.get_read(read_name).strand
        frame = aligned_frame(read_name)

        for prefix, start, end in ((ALIGN_CLIPPING, aln_start, aln_end),
                                   (QUALITY_CLIPPING, qual_start, qual_end)):
            if start == -1 and end == -1:
                continue
            try:
                gapped_start = contig.change_coord(frame, GAPPED_CONSENSUS, start)
                gapped_end = contig.change_coord(frame, GAPPED_CONSENSUS, end)
            except OutOfRange as e:
                raise MalformedRecord(f"QA range of read {read_name}: {e}",
                                      self._stream.line_number, text) from e
            contig.add_tag(Tag(
                primary_tag=f"{prefix}{read_name}",
                start=gapped_start,
                end=gapped_end,
                strand=strand,
            ))

    def _parse_description(self, contig: Contig, read_name: str, description: str):
        fields = _DS_SPLIT_RE.split(description)[1:]
        attributes = {}
        for i in range(0, len(fields) - 1, 2):
            attributes[fields[i]] = fields[i + 1]

        anchor = contig.get_anchor(read_name)
        contig.add_tag(Tag(
            primary_tag=f"{READ_DESC}{read_name}",
            start=anchor.start,
            end=anchor.end,
            attributes=attributes,
        ), anchor=anchor)

    def _parse_read_tag(self, contig: Optional[Contig]):
        line_number = self._stream.line_number
        header = self._stream.readline()
        fields = header.split() if header is not None else []
        if len(fields) < 6:
            raise MalformedRecord("RT header needs: read type source start end date",
                                  self._stream.line_number,
                                  header.rstrip('\r\n') if header else None)
        read_id, tag_type, source, start, end, date = fields[:6]
        try:
            start, end = int(start), int(end)
        except ValueError:
            raise MalformedRecord("RT start/end must be integers",
                                  self._stream.line_number, header.rstrip('\r\n')) from None

        attributes = {'type': tag_type, 'source': source, 'creation_date': date}
        if len(fields) > 6:
            attributes['flags'] = ' '.join(fields[6:])
        extra_info = ''.join(self._read_block_lines())
        if extra_info:
            attributes['extra_info'] = extra_info

        # Positions stay read-local until the owning contig is known
        tag = Tag(primary_tag=f"{READ_TAGS}{read_id}", start=start, end=end,
                  attributes=attributes)
        if contig is not None and contig.has_read(read_id):
            _attach_read_tag(contig, read_id, tag, line_number)
        else:
            self._deferred_read_tags.append((read_id, tag, line_number))

    def _read_block_lines(self) -> List[str]:
        """Lines of a {...} block body, up to the closing '}' line."""
        lines = []
        while True:
            line = self._stream.readline()
            if line is None:
                raise MalformedRecord("unterminated block at end of input",
                                      self._stream.line_number)
            if line.strip() == '}':
                return lines
            lines.append(line)

    def _skip_block(self):
        self._read_block_lines()

    def _require_read(self, read_name: Optional[str], text: str):
        if read_name is None:
            raise MalformedRecord("read record found before any RD record",
                                  self._stream.line_number, text)

    # ------------------------------------------------------------------
    # Whole-file pass
    # ------------------------------------------------------------------

    def next_assembly(self) -> Scaffold:
        """
        Parse the whole input into a Scaffold.

        Returns:
            Scaffold holding contigs and singlets in file order, with WA
            annotations and CT contig tags attached
        """
        scaffold = Scaffold(source=self._stream.name)
        while True:
            contig = self.next_contig()
            if contig is None:
                break
            scaffold.add(contig)

        self.scaffold_annotations(scaffold)

        logger.info(
            f"Loaded {len(scaffold.contigs)} contigs, {len(scaffold.singlets)} singlets "
            f"and {scaffold.num_reads} reads from {self._stream.name}"
        )
        return scaffold

    def scaffold_annotations(self, scaffold: Scaffold):
        """
        Attach WA and CT annotations to a scaffold.

        The input is read again from its start. Read tags whose read was not
        in the contig being parsed when they were met are attached here too.

        Raises:
            UnknownContig: If a CT block names a contig not in the scaffold
            UnknownRead: If an RT block names a read not in the scaffold
        """
        self._stream.rewind()
        while True:
            line = self._stream.readline()
            if line is None:
                break
            text = line.rstrip('\r\n')

            if _WA_RE.match(text):
                scaffold.add_annotation(self._parse_assembly_tag())
            elif _CT_RE.match(text):
                contig_id, tag = self._parse_contig_tag()
                scaffold.get_unit(contig_id).add_tag(tag)
            elif _BLOCK_RE.match(text):
                self._skip_block()

        for read_id, tag, line_number in self._deferred_read_tags:
            unit = next((u for u in scaffold.all_units() if u.has_read(read_id)), None)
            if unit is None:
                raise UnknownRead(read_id)
            _attach_read_tag(unit, read_id, tag, line_number)
            logger.debug(f"Attached read tag from line {line_number} to {read_id} in {unit.id}")
        self._deferred_read_tags = []

    def _parse_assembly_tag(self) -> Tag:
        header = self._stream.readline()
        fields = header.split() if header is not None else []
        if len(fields) < 3:
            raise MalformedRecord("WA header needs: type program date",
                                  self._stream.line_number,
                                  header.rstrip('\r\n') if header else None)
        attributes = {'type': fields[0], 'program': fields[1], 'date': ' '.join(fields[2:])}
        extra_info = ''.join(self._read_block_lines())
        if extra_info:
            attributes['extra_info'] = extra_info
        return Tag(primary_tag=WHOLE_ASSEMBLY, attributes=attributes)

    def _parse_contig_tag(self) -> Tuple[str, Tag]:
        header = self._stream.readline()
        fields = header.split() if header is not None else []
        if len(fields) < 6:
            raise MalformedRecord("CT header needs: contig type source start end date",
                                  self._stream.line_number,
                                  header.rstrip('\r\n') if header else None)
        contig_id, tag_type, source, start, end, date = fields[:6]
        try:
            start, end = int(start), int(end)
        except ValueError:
            raise MalformedRecord("CT start/end must be integers",
                                  self._stream.line_number, header.rstrip('\r\n')) from None

        attributes = {'source': source, 'creation_date': date}
        if len(fields) > 6:
            attributes['flags'] = ' '.join(fields[6:])

        body = {'extra_info': '', 'comment': ''}
        target = 'extra_info'
        while True:
            line = self._stream.readline()
            if line is None:
                raise MalformedRecord("unterminated CT block at end of input",
                                      self._stream.line_number)
            stripped = line.strip()
            if _COMMENT_RE.match(stripped):
                target = 'comment'
            elif stripped == 'C}':
                target = 'extra_info'
            elif stripped == '}':
                break
            else:
                body[target] += line
        for key, value in body.items():
            if value:
                attributes[key] = value

        return contig_id, Tag(primary_tag=tag_type, start=start, end=end, attributes=attributes)

    # ------------------------------------------------------------------
    # Resource handling
    # ------------------------------------------------------------------

    def close(self):
        """Close the input if the reader opened it."""
        self._stream.close()

    def __enter__(self) -> 'AceReader':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def _shift(min_start: Optional[int]) -> int:
    """Offset making the 454 clear-range starts positive."""
    return abs(min_start or 0) + 1


def _attach_read_tag(contig: Contig, read_id: str, tag: Tag, line_number: int):
    """
    Move a read-local RT tag to gapped-consensus coordinates and attach it.

    Raises:
        MalformedRecord: If the RT range lies outside the read
    """
    frame = aligned_frame(read_id)
    try:
        start = contig.change_coord(frame, GAPPED_CONSENSUS, tag.start)
        end = contig.change_coord(frame, GAPPED_CONSENSUS, tag.end)
    except OutOfRange as e:
        raise MalformedRecord(f"RT range of read {read_id}: {e}", line_number) from e
    tag.start, tag.end = start, end
    contig.add_tag(tag, anchor=read_id)


def _pad_454_consensus(contig: Contig, left_pad: int):
    """
    Pad a 454 consensus with gaps so it spans every read.

    The left pad equals the clear-range shift; the right pad reaches the
    largest read end. Quality, when present, is padded with 0.
    """
    consensus = contig.consensus
    max_end = max(anchor.end for anchor in contig.resolve_tags_by_class(ALIGNED_COORD))
    right_pad = max(max_end - len(consensus) - left_pad, 0)

    quality = contig.consensus_quality
    contig.set_consensus(LocatableSeq(
        GAP * left_pad + consensus.sequence + GAP * right_pad,
        start=consensus.start,
        strand=consensus.strand,
        id=consensus.id,
    ))
    if quality is not None:
        contig.set_consensus_quality([0] * left_pad + quality + [0] * right_pad)

    logger.debug(f"Contig {contig.id}: padded 454 consensus by {left_pad} + {right_pad}")


# =============================================================================
# SECTION 4: ACE WRITER
# =============================================================================

class AceWriter:
    """
    ACE writer.

    write_assembly() writes a whole Scaffold. For incremental output, call
    write_contig() per contig, then write_header() (which re-reads what was
    written when no contig list is given) and write_footer().

    Example:
        >>> with AceWriter("out.ace") as writer:
        ...     writer.write_assembly(scaffold)
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
            self._handle: TextIO = open_file(target, 'w+')
            self._owns_handle = True
        else:
            self.name = getattr(target, 'name', '<stream>')
            self._handle = target
            self._owns_handle = False
        self._has_output = False

    def _print(self, text: str):
        self._handle.write(text)
        self._has_output = True

    # ------------------------------------------------------------------
    # Assembly
    # ------------------------------------------------------------------

    def write_assembly(self, scaffold: Scaffold, singlets: Optional[bool] = None):
        """
        Write a whole assembly: header, contigs in natural id order, footer.

        Args:
            scaffold: Assembly to write
            singlets: Include singlets (defaults to settings.include_singlets)
        """
        if singlets is None:
            singlets = self.settings.include_singlets
        units = sorted(scaffold.all_units(singlets), key=lambda u: natural_sort_key(u.id))

        self.write_header(units)
        for unit in units:
            self.write_contig(unit)
        self.write_footer(scaffold, singlets=singlets)

        logger.info(f"Wrote {len(units)} contigs/singlets to {self.name}")

    def write_header(self, source: Optional[Union[Scaffold, Sequence[Contig]]] = None):
        """
        Write the AS header at the start of the output.

        Args:
            source: Scaffold or list of contigs to count; when None, the
                    output written so far is parsed to count them

        Raises:
            ValueError: If counts are needed from an output that cannot be read back
        """
        if isinstance(source, Scaffold):
            units = source.all_units()
        elif source is not None:
            units = list(source)
        else:
            units = None

        if units is not None:
            num_contigs = len(units)
            num_reads = sum(unit.num_reads for unit in units)
        else:
            num_contigs, num_reads = self._count_written()

        self._insert_at_start(f"AS {num_contigs} {num_reads}\n\n")

    def write_contig(self, contig: Contig):
        """
        Write one contig or singlet: CO, BQ, AF, BS, then each read.
        """
        line_width = self.settings.line_width
        consensus = contig.consensus.sequence if contig.consensus is not None else ''
        segments = sorted(contig.resolve_tags_by_class(BASE_SEGMENTS), key=lambda t: t.start)

        self._print(
            f"CO {contig.id} {len(consensus)} {contig.num_reads} {len(segments)} "
            f"{_strand_letter(contig.strand)}\n"
            + _formatted_seq(consensus, line_width)
            + "\n"
        )

        self._print(
            "BQ\n"
            + _formatted_qual(contig.consensus_quality, consensus, line_width,
                              self.settings.default_quality)
            + "\n"
        )

        for read in contig.reads:
            start = contig.change_coord(aligned_frame(read.id), GAPPED_CONSENSUS, 1)
            self._print(f"AF {read.id} {_strand_letter(read.strand)} {start}\n")
        self._print("\n")

        if segments:
            for segment in segments:
                self._print(f"BS {segment.start} {segment.end} {segment.get('contig_id', '')}\n")
            self._print("\n")

        for read in contig.reads:
            self._write_read(read, contig)

    def _write_read(self, read: LocatableSeq, contig: Contig):
        read_id = read.id
        frame = aligned_frame(read_id)
        read_tags = list(contig.resolve_tags_by_class(f"{READ_TAGS}{read_id}"))

        self._print(
            f"RD {read_id} {len(read)} 0 {len(read_tags)}\n"
            + _formatted_seq(read.sequence, self.settings.line_width)
            + "\n"
        )

        clips = []
        for prefix in (QUALITY_CLIPPING, ALIGN_CLIPPING):
            tag = contig.first_tag(f"{prefix}{read_id}")
            if tag is None:
                clips.extend([1, len(read)])
            else:
                clips.extend([contig.change_coord(GAPPED_CONSENSUS, frame, tag.start),
                              contig.change_coord(GAPPED_CONSENSUS, frame, tag.end)])
        self._print("QA {} {} {} {}\n\n".format(*clips))

        description = contig.first_tag(f"{READ_DESC}{read_id}")
        if description is not None:
            fields = ''.join(f" {key}: {value}" for key, value in description.attributes.items())
            self._print(f"DS{fields}\n\n")

        for tag in read_tags:
            start = contig.change_coord(GAPPED_CONSENSUS, frame, tag.start)
            end = contig.change_coord(GAPPED_CONSENSUS, frame, tag.end)
            flags = f" {tag.get('flags')}" if tag.get('flags') else ''
            self._print(
                "RT{\n"
                f"{read_id} {tag.get('type')} {tag.get('source')} {start} {end} "
                f"{tag.get('creation_date')}{flags}\n"
                + _block_text(tag.get('extra_info'))
                + "}\n\n"
            )

    def write_footer(self, scaffold: Optional[Scaffold] = None, singlets: bool = True):
        """
        Write the WA and CT blocks of a scaffold.

        Args:
            scaffold: Assembly whose annotations are written (nothing if None)
            singlets: Include the contig tags of singlets
        """
        if scaffold is None:
            return

        for tag in scaffold.annotations.filter(lambda t: t.matches(WHOLE_ASSEMBLY)):
            self._print(
                "WA{\n"
                f"{tag.get('type')} {tag.get('program')} {tag.get('date')}\n"
                + _block_text(tag.get('extra_info'))
                + "}\n\n"
            )

        units = sorted(scaffold.all_units(singlets), key=lambda u: natural_sort_key(u.id))
        for unit in units:
            for tag in unit.features.filter(lambda t: not t.primary_tag.startswith('_')):
                flags = f" {tag.get('flags')}" if tag.get('flags') else ''
                comment = ''
                if tag.get('comment'):
                    comment = "COMMENT{\n" + _block_text(tag.get('comment')) + "C}\n"
                self._print(
                    "CT{\n"
                    f"{unit.id} {tag.primary_tag} {tag.get('source')} {tag.start} {tag.end} "
                    f"{tag.get('creation_date')}{flags}\n"
                    + _block_text(tag.get('extra_info'))
                    + comment
                    + "}\n\n"
                )

    # ------------------------------------------------------------------
    # Output rewriting
    # ------------------------------------------------------------------

    def _written_content(self) -> str:
        try:
            self._handle.flush()
            self._handle.seek(0)
            content = self._handle.read()
        except (io.UnsupportedOperation, OSError) as e:
            raise ValueError(f"Cannot read back ACE output {self.name}: {e}") from e
        self._handle.seek(0, io.SEEK_END)
        return content

    def _count_written(self) -> Tuple[int, int]:
        num_contigs = 0
        num_reads = 0
        reader = AceReader(io.StringIO(self._written_content()), self.settings)
        for contig in reader:
            num_contigs += 1
            num_reads += contig.num_reads
        return num_contigs, num_reads

    def _insert_at_start(self, text: str):
        if not self._has_output:
            self._print(text)
            return
        content = self._written_content()
        self._handle.seek(0)
        self._handle.write(text + content)
        self._handle.truncate()

    # ------------------------------------------------------------------
    # Resource handling
    # ------------------------------------------------------------------

    def close(self):
        """Flush and close the output if the writer opened it."""
        if self._owns_handle and not self._handle.closed:
            self._handle.close()
        elif not self._handle.closed:
            self._handle.flush()

    def __enter__(self) -> 'AceWriter':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


# =============================================================================
# SECTION 5: CONVENIENCE FUNCTIONS
# =============================================================================

def read_ace(filepath: Union[str, Path, TextIO], variant: str = 'consed',
             settings: Optional[CodecSettings] = None) -> Scaffold:
    """
    Read a whole ACE file.

    Args:
        filepath: ACE file path (plain or .gz) or text handle
        variant: 'consed' or '454'
        settings: Codec settings

    Returns:
        Scaffold
    """
    with AceReader(filepath, settings=settings, variant=variant) as reader:
        return reader.next_assembly()


def write_ace(scaffold: Scaffold, filepath: Union[str, Path, TextIO],
              settings: Optional[CodecSettings] = None, singlets: bool = True):
    """
    Write a whole assembly in ACE format.

    Args:
        scaffold: Assembly to write
        filepath: Output path or text handle
        settings: Codec settings
        singlets: Include singlets
    """
    with AceWriter(filepath, settings=settings) as writer:
        writer.write_assembly(scaffold, singlets=singlets)


__all__ = ['AceReader', 'AceWriter', 'read_ace', 'write_ace']
