#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
AceTasm v0.1.0

Tests for line streaming, pushback and rewind.

Author: AceTasm Development Team
License: MIT - See LICENSE
"""

import gzip
import io

from acetasm.io.line_stream import LineStream, is_gzipped, open_file


class _Unseekable(io.StringIO):
    def seekable(self):
        return False


class TestLineStream:
    """Test the LineStream reader."""

    def test_line_numbers(self):
        """Test lines are counted as they are read."""
        stream = LineStream(io.StringIO("a\nb\n"))

        assert stream.readline() == "a\n"
        assert stream.line_number == 1
        assert stream.readline() == "b\n"
        assert stream.readline() is None
        assert stream.line_number == 2

    def test_pushback(self):
        """Test a pushed-back line is read again."""
        stream = LineStream(io.StringIO("a\nb\n"))
        line = stream.readline()

        stream.pushback(line)

        assert stream.line_number == 0
        assert stream.readline() == "a\n"
        assert stream.readline() == "b\n"

    def test_rewind(self):
        """Test rewinding restarts from the first line."""
        stream = LineStream(io.StringIO("a\nb\n"))
        list(stream)

        stream.rewind()

        assert stream.readline() == "a\n"
        assert stream.line_number == 1

    def test_unseekable_handle_buffered(self):
        """Test non-seekable handles can still be rewound."""
        stream = LineStream(_Unseekable("x\ny\n"))
        assert list(stream) == ["x\n", "y\n"]

        stream.rewind()

        assert stream.readline() == "x\n"

    def test_path_source(self, temp_output_dir):
        """Test opening and closing a path."""
        path = temp_output_dir / "lines.txt"
        path.write_text("one\ntwo\n")

        with LineStream(path) as stream:
            assert stream.name == str(path)
            assert list(stream) == ["one\n", "two\n"]


class TestOpenFile:
    """Test gzip-aware file opening."""

    def test_is_gzipped(self):
        """Test gzip detection by extension."""
        assert is_gzipped("assembly.ace.gz")
        assert not is_gzipped("assembly.ace")

    def test_open_gzip_roundtrip(self, temp_output_dir):
        """Test writing and reading a gzip file in text mode."""
        path = temp_output_dir / "x.tasm.gz"
        with open_file(path, 'w') as f:
            f.write("asmbl_id\t1\n")

        with gzip.open(path, 'rt') as f:
            assert f.read() == "asmbl_id\t1\n"
        with open_file(path) as f:
            assert f.read() == "asmbl_id\t1\n"
