"""Reading DDR files from disk.

FileMaker writes DDR XML as UTF-16 with a byte-order mark; hand-edited
or re-saved copies are usually UTF-8. Decoding happens here so the
mapper only ever sees text.
"""

from __future__ import annotations

import codecs
from dataclasses import dataclass
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

_UTF16_BOMS = (codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)


@dataclass
class SourceDocument:
    """Raw DDR text plus the name it was supplied under."""

    name: str
    text: str


def decode_document(data: bytes) -> str:
    """Decode DDR bytes, re-decoding as UTF-16 when a BOM is present."""
    if data.startswith(_UTF16_BOMS):
        return data.decode("utf-16")
    if data.startswith(codecs.BOM_UTF8):
        return data[len(codecs.BOM_UTF8) :].decode("utf-8", errors="replace")
    return data.decode("utf-8", errors="replace")


def read_document(path: Path) -> SourceDocument:
    """Read and decode one DDR file. OSError propagates."""
    data = path.read_bytes()
    text = decode_document(data)
    logger.debug("read ddr", path=str(path), bytes=len(data))
    return SourceDocument(name=path.name, text=text)


def discover_documents(paths: list[Path]) -> list[Path]:
    """Expand directories into the .xml files they contain (any case).

    Files are kept as given; directories are searched recursively and
    their matches sorted so runs are reproducible.
    """
    found: list[Path] = []
    for path in paths:
        if path.is_dir():
            found.extend(
                sorted(
                    p
                    for p in path.rglob("*")
                    if p.is_file() and p.suffix.lower() == ".xml"
                )
            )
        else:
            found.append(path)
    return found
