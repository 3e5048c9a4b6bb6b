#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
AceTasm v0.1.0

Tests for the assembly model: sequences, tags, contigs and scaffolds.

Author: AceTasm Development Team
License: MIT - See LICENSE
"""

import pytest

from acetasm.assembly_core import (
    ALIGNED_COORD,
    QUALITY_CLIPPING,
    READ_TAGS,
    Contig,
    DuplicateRead,
    FeatureCollection,
    LocatableSeq,
    Scaffold,
    Tag,
    UnknownContig,
    UnknownRead,
)


class TestLocatableSeq:
    """Test the sequence value type."""

    def test_basic_properties(self):
        """Test length, end and ungapped view."""
        seq = LocatableSeq("AC-GT", start=3, id="r1")

        assert len(seq) == 5
        assert seq.end == 7
        assert seq.ungapped == "ACGT"
        assert seq.num_gaps == 1

    def test_invalid_strand(self):
        """Test strands other than 1 and -1 are rejected."""
        with pytest.raises(ValueError):
            LocatableSeq("ACGT", strand=0)

    def test_to_seqrecord_ungapped_quality(self):
        """Test gap positions are dropped from sequence and scores."""
        seq = LocatableSeq("AC-GT", id="c1")
        record = seq.to_seqrecord(quality=[10, 20, 25, 30, 40], ungapped=True)

        assert str(record.seq) == "ACGT"
        assert record.id == "c1"
        assert record.letter_annotations['phred_quality'] == [10, 20, 30, 40]


class TestTag:
    """Test tag classification matching."""

    def test_prefix_match(self):
        """Test family prefixes ending with ':'."""
        tag = Tag(f"{READ_TAGS}read1", 1, 5)

        assert tag.matches(READ_TAGS)
        assert tag.matches(f"{READ_TAGS}read1")
        assert not tag.matches(f"{READ_TAGS}read")

    def test_location(self):
        """Test tags with and without a position."""
        assert Tag("repeat", 2, 5).location == (2, 5)
        assert Tag("whole assembly").location is None

    def test_feature_collection_order(self):
        """Test insertion order and filtering."""
        features = FeatureCollection()
        features.add(Tag("b", 1, 1))
        features.add(Tag("a", 2, 2))
        features.add(Tag("b", 3, 3))

        assert [t.start for t in features] == [1, 2, 3]
        assert [t.start for t in features.filter(lambda t: t.matches("b"))] == [1, 3]
        assert len(features) == 3


class TestContig:
    """Test contig read and tag management."""

    def test_add_read_anchor(self):
        """Test the anchor defaults to the read length."""
        contig = Contig("c1", consensus="ACGTACGT")
        anchor = contig.add_read(LocatableSeq("GTAC", id="r1"), 3)

        assert anchor.primary_tag == f"{ALIGNED_COORD}r1"
        assert (anchor.start, anchor.end) == (3, 6)
        assert contig.get_anchor("r1") is anchor
        assert contig.num_reads == 1

    def test_duplicate_read(self):
        """Test a read id cannot be registered twice."""
        contig = Contig("c1", consensus="ACGT")
        contig.add_read(LocatableSeq("AC", id="r1"), 1)

        with pytest.raises(DuplicateRead):
            contig.add_read(LocatableSeq("GT", id="r1"), 3)

    def test_unknown_read(self):
        """Test lookup of a missing read."""
        contig = Contig("c1", consensus="ACGT")

        with pytest.raises(UnknownRead):
            contig.get_read("missing")

    def test_quality_length_checked(self):
        """Test quality must match the gapped consensus length."""
        contig = Contig("c1", consensus="AC-GT")

        with pytest.raises(ValueError):
            contig.set_consensus_quality([20, 20, 20, 20])

    def test_quality_dropped_on_consensus_change(self):
        """Test mismatched quality is dropped when the consensus changes."""
        contig = Contig("c1", consensus="ACGT", quality=[1, 2, 3, 4])
        contig.set_consensus("ACGTA")

        assert contig.consensus_quality is None

    def test_resolve_tags_by_class_order(self):
        """Test tags are yielded in insertion order, sub-features after their anchor."""
        contig = Contig("c1", consensus="ACGTACGT")
        contig.add_read(LocatableSeq("ACGT", id="r1"), 1)
        contig.add_tag(Tag(f"{QUALITY_CLIPPING}r1", 2, 3))
        contig.add_tag(Tag(f"{READ_TAGS}r1", 1, 2), anchor="r1")
        contig.add_read(LocatableSeq("ACGT", id="r2"), 5)
        contig.add_tag(Tag(f"{READ_TAGS}r2", 5, 6), anchor="r2")

        read_tags = list(contig.resolve_tags_by_class(READ_TAGS))
        assert [t.primary_tag for t in read_tags] == [f"{READ_TAGS}r1", f"{READ_TAGS}r2"]
        assert contig.first_tag(f"{QUALITY_CLIPPING}r1").start == 2
        assert contig.first_tag("absent") is None

    def test_singlet(self):
        """Test singlets built from one read."""
        read = LocatableSeq("ACGTA", id="read9")
        singlet = Contig.singlet(read, quality=[30] * 5)

        assert singlet.is_singlet
        assert singlet.id == "read9"
        assert singlet.consensus.sequence == "ACGTA"
        assert (singlet.get_anchor("read9").start, singlet.get_anchor("read9").end) == (1, 5)
        assert singlet.validate() == []

    def test_validate_reports_bad_tag(self):
        """Test tags outside the consensus are reported."""
        contig = Contig("c1", consensus="ACGT")
        contig.add_tag(Tag("repeat", 3, 9))

        errors = contig.validate()
        assert len(errors) == 1
        assert "repeat" in errors[0]


class TestScaffold:
    """Test scaffold containers."""

    def test_contigs_and_singlets(self):
        """Test units are sorted into contigs and singlets."""
        scaffold = Scaffold()
        scaffold.add(Contig("c1", consensus="ACGT"))
        scaffold.add(Contig.singlet(LocatableSeq("GG", id="s1")))

        assert scaffold.contig_ids == ["c1"]
        assert scaffold.singlet_ids == ["s1"]
        assert scaffold.get_contig_by_id("s1") is None
        assert scaffold.get_singlet_by_id("s1").id == "s1"
        assert scaffold.num_reads == 1
        assert len(scaffold) == 2

    def test_duplicate_unit(self):
        """Test two units cannot share an id."""
        scaffold = Scaffold()
        scaffold.add_contig(Contig("c1", consensus="ACGT"))

        with pytest.raises(ValueError):
            scaffold.add_contig(Contig("c1", consensus="ACGT"))

    def test_unknown_unit(self):
        """Test get_unit raises for a missing id."""
        with pytest.raises(UnknownContig) as excinfo:
            Scaffold().get_unit("nope")

        assert excinfo.value.contig_id == "nope"
