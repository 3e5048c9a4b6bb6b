#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
AceTasm v0.1.0

Line stream with pushback, line numbering and rewind, used by the codecs.

Author: AceTasm Development Team
License: MIT - See LICENSE
"""

import gzip
import io
from pathlib import Path
from typing import Iterator, List, Optional, TextIO, Union


class LineStream:
    """
    Sequential line reader over a file path or text handle.

    Lines are returned with their trailing newline so that free-text blocks
    can be kept verbatim. Non-seekable handles are buffered in memory so the
    stream can always be rewound for a second pass.
    """

    def __init__(self, source: Union[str, Path, TextIO]):
        """
        Initialize the stream.

        Args:
            source: Path to a text file, or an open text handle
        """
        if isinstance(source, (str, Path)):
            self.name = str(source)
            self._handle: TextIO = open_file(source, 'r')
            self._owns_handle = True
        else:
            self.name = getattr(source, 'name', '<stream>')
            if not _is_seekable(source):
                source = io.StringIO(source.read())
            self._handle = source
            self._owns_handle = False

        self._pushback: List[str] = []
        self.line_number = 0

    def readline(self) -> Optional[str]:
        """
        Read the next line.

        Returns:
            The line including its newline, or None at end of input
        """
        if self._pushback:
            line = self._pushback.pop()
        else:
            line = self._handle.readline()
            if line == '':
                return None
        self.line_number += 1
        return line

    def pushback(self, line: str):
        """Return a line to the stream; the next readline yields it again."""
        self._pushback.append(line)
        self.line_number -= 1

    def rewind(self):
        """Go back to the start of the input."""
        self._handle.seek(0)
        self._pushback.clear()
        self.line_number = 0

    def close(self):
        """Close the underlying file if this stream opened it."""
        if self._owns_handle and not self._handle.closed:
            self._handle.close()

    def __iter__(self) -> Iterator[str]:
        while True:
            line = self.readline()
            if line is None:
                return
            yield line

    def __enter__(self) -> 'LineStream':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        return f"LineStream({self.name!r}, line={self.line_number})"


def _is_seekable(handle) -> bool:
    try:
        return bool(handle.seekable())
    except (AttributeError, ValueError):
        return False


def is_gzipped(filepath: Union[str, Path]) -> bool:
    """Check if a file path names a gzip-compressed file."""
    return str(filepath).endswith('.gz')


def open_file(filepath: Union[str, Path], mode: str = 'r') -> TextIO:
    """
    Open file with automatic gzip detection.

    Args:
        filepath: Path to file
        mode: File mode ('r', 'w' or 'w+')

    Returns:
        File handle
    """
    filepath = Path(filepath)

    if is_gzipped(filepath):
        if 'r' in mode:
            return gzip.open(filepath, 'rt')
        else:
            return gzip.open(filepath, 'wt')
    else:
        return open(filepath, mode)


__all__ = ['LineStream', 'is_gzipped', 'open_file']

# AceTasm v0.1.0
# Any usage is subject to this software's license.
