#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
AceTasm v0.1.0

Typed failures raised by the assembly model, the coordinate engine and the
format codecs.

Author: AceTasm Development Team
License: MIT - See LICENSE
"""

from typing import Optional, Tuple


class AssemblyError(Exception):
    """Base class for every failure raised by acetasm."""
    pass


class MalformedRecord(AssemblyError):
    """A line does not match any record syntax expected in the current state."""

    def __init__(self, message: str, line_number: Optional[int] = None,
                 line: Optional[str] = None):
        self.line_number = line_number
        self.line = line
        if line_number is not None:
            message = f"line {line_number}: {message}"
        if line is not None:
            message = f"{message}\n  {line.rstrip()!r}"
        super().__init__(message)


class UnrecognizedField(MalformedRecord):
    """A TIGR key is not part of the known contig or read field set."""

    def __init__(self, field_name: str, line_number: Optional[int] = None,
                 line: Optional[str] = None):
        self.field_name = field_name
        super().__init__(
            f"unrecognized field '{field_name}' (is this really a TIGR tasm file?)",
            line_number=line_number,
            line=line,
        )


class OutOfRange(AssemblyError):
    """A position lies outside the coordinate space of its frame."""

    def __init__(self, frame: str, position: int, bounds: Tuple[int, int]):
        self.frame = frame
        self.position = position
        self.bounds = bounds
        super().__init__(
            f"position {position} is outside '{frame}' bounds "
            f"[{bounds[0]}, {bounds[1]}]"
        )


class UnknownRead(AssemblyError):
    """A read identifier is not registered on the contig."""

    def __init__(self, read_id: str, contig_id: Optional[str] = None):
        self.read_id = read_id
        self.contig_id = contig_id
        where = f" in contig '{contig_id}'" if contig_id is not None else ""
        super().__init__(f"unknown read '{read_id}'{where}")


class UnknownContig(AssemblyError):
    """A contig or singlet identifier is not part of the scaffold."""

    def __init__(self, contig_id: str):
        self.contig_id = contig_id
        super().__init__(f"cannot find contig or singlet '{contig_id}'")


class DuplicateRead(AssemblyError):
    """A read identifier is registered twice on the same contig."""

    def __init__(self, read_id: str, contig_id: Optional[str] = None):
        self.read_id = read_id
        self.contig_id = contig_id
        where = f" in contig '{contig_id}'" if contig_id is not None else ""
        super().__init__(f"read '{read_id}' already exists{where}")


__all__ = [
    'AssemblyError',
    'MalformedRecord',
    'UnrecognizedField',
    'OutOfRange',
    'UnknownRead',
    'UnknownContig',
    'DuplicateRead',
]

# AceTasm v0.1.0
# Any usage is subject to this software's license.
