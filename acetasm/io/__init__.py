"""
Assembly I/O module for AceTasm.

Reads and writes assembly exchange formats into the in-memory model.

MODULES:
- ace_io_module.py: ACE reader/writer (consed and 454 variants)
- tigr_io_module.py: TIGR Assembler tasm reader/writer
- line_stream.py: Line reading with pushback and rewind, gzip-aware opening
"""

from pathlib import Path
from typing import Optional, TextIO, Union

from .ace_io_module import (
    AceReader,
    AceWriter,
    read_ace,
    write_ace,
)

from .tigr_io_module import (
    TigrReader,
    TigrWriter,
    read_tigr,
    write_tigr,
)

from .line_stream import LineStream, open_file

from ..config.schema import CodecSettings

# Format name -> file extensions
ASSEMBLY_FORMATS = {
    'ace': ('.ace',),
    'tigr': ('.tasm',),
}

# Reader/writer names accepted by open_reader / open_writer
_FORMAT_ALIASES = {
    'ace': ('ace', None),
    'ace-454': ('ace', '454'),
    'tigr': ('tigr', None),
    'tasm': ('tigr', None),
}


def guess_format(path: Union[str, Path]) -> str:
    """
    Guess the assembly format from a file name.

    Example:
        >>> guess_format("assembly.ace.gz")
        'ace'

    Raises:
        ValueError: If the extension is not a known assembly format
    """
    name = Path(path).name.lower()
    if name.endswith('.gz'):
        name = name[:-3]
    for fmt, extensions in ASSEMBLY_FORMATS.items():
        if name.endswith(extensions):
            return fmt
    raise ValueError(
        f"Cannot guess assembly format of '{path}' "
        f"(known extensions: {', '.join(e for exts in ASSEMBLY_FORMATS.values() for e in exts)})"
    )


def _resolve(path, fmt: Optional[str]):
    fmt = (fmt or guess_format(path)).lower()
    if fmt not in _FORMAT_ALIASES:
        raise ValueError(f"Unknown assembly format: {fmt} (expected one of {', '.join(_FORMAT_ALIASES)})")
    return _FORMAT_ALIASES[fmt]


def open_reader(source: Union[str, Path, TextIO], fmt: Optional[str] = None,
                settings: Optional[CodecSettings] = None):
    """
    Open an assembly reader.

    Args:
        source: File path or text handle
        fmt: 'ace', 'ace-454' or 'tigr' (guessed from the path if None)
        settings: Codec settings

    Returns:
        AceReader or TigrReader
    """
    codec, variant = _resolve(source, fmt)
    if codec == 'ace':
        return AceReader(source, settings=settings, variant=variant)
    return TigrReader(source, settings=settings)


def open_writer(target: Union[str, Path, TextIO], fmt: Optional[str] = None,
                settings: Optional[CodecSettings] = None):
    """
    Open an assembly writer.

    Args:
        target: File path or text handle
        fmt: 'ace', 'ace-454' or 'tigr' (guessed from the path if None)
        settings: Codec settings

    Returns:
        AceWriter or TigrWriter
    """
    codec, _ = _resolve(target, fmt)
    if codec == 'ace':
        return AceWriter(target, settings=settings)
    return TigrWriter(target, settings=settings)


__all__ = [
    # ACE
    "AceReader",
    "AceWriter",
    "read_ace",
    "write_ace",

    # TIGR
    "TigrReader",
    "TigrWriter",
    "read_tigr",
    "write_tigr",

    # Streams
    "LineStream",
    "open_file",

    # Registry
    "ASSEMBLY_FORMATS",
    "guess_format",
    "open_reader",
    "open_writer",
]
