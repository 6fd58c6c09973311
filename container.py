"""
HuffZip artifact format

Layout:
  line 1:                     <distinct_symbol_count>\\n
  next count lines:           <symbol> <frequency>\\n      (ASCII decimal, ascending symbol)
  remaining bytes:            packed bitstream, MSB-first, zero-padded to a byte boundary

The total number of symbols is the sum of the frequencies; it is what lets the
decoder stop before the padding bits.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Optional

import huffman as huff
from huffman import CorruptStreamError


MAX_SYMBOLS = 256
MAX_FREQUENCY = 2**63 - 1
LEGACY_HEADER_BYTES_PER_SYMBOL = 10 # rough per-symbol header estimate used by old reports

_COUNT_LINE = re.compile(rb"\d{1,3}")
_ENTRY_LINE = re.compile(rb"(\d{1,3}) (\d{1,19})")


@dataclass
class ArtifactHeader:
    frequencies: Dict[int, int] = field(default_factory=dict)
    payload_offset: int = 0

    @property
    def total_symbols(self) -> int:
        return sum(self.frequencies.values())

    @property
    def distinct_symbols(self) -> int:
        return len(self.frequencies)


@dataclass
class CompressionReport:
    original_size: int
    compressed_size: int
    payload_size: int
    header_size: int
    distinct_symbols: int

    @property
    def ratio(self) -> float:
        return 1 - self.compressed_size / self.original_size

    @property
    def estimated_compressed_size(self) -> int:
        return self.payload_size + self.distinct_symbols * LEGACY_HEADER_BYTES_PER_SYMBOL

    @property
    def estimated_ratio(self) -> float:
        return 1 - self.estimated_compressed_size / self.original_size


def write_header(frequencies: Dict[int, int]) -> bytes:
    if not frequencies:
        raise huff.EmptyInputError("cannot write a header for an empty frequency table")
    if len(frequencies) > MAX_SYMBOLS:
        raise ValueError(f"too many distinct symbols: {len(frequencies)}")

    lines = [b"%d\n" % len(frequencies)]
    for symbol in sorted(frequencies):
        lines.append(b"%d %d\n" % (symbol, frequencies[symbol]))
    return b"".join(lines)


def _next_line(artifact: bytes, pos: int, what: str):
    end = artifact.find(b"\n", pos)
    if end < 0:
        raise CorruptStreamError(f"truncated header: missing {what}")
    return artifact[pos:end], end + 1


def read_header(artifact: bytes) -> ArtifactHeader:
    line, pos = _next_line(artifact, 0, "symbol count")
    if not _COUNT_LINE.fullmatch(line):
        raise CorruptStreamError(f"malformed symbol count line: {line[:32]!r}")
    count = int(line)
    if not 1 <= count <= MAX_SYMBOLS:
        raise CorruptStreamError(f"symbol count out of range: {count}")

    frequencies: Dict[int, int] = {}
    for i in range(count):
        line, pos = _next_line(artifact, pos, f"entry {i + 1} of {count}")
        m = _ENTRY_LINE.fullmatch(line)
        if m is None:
            raise CorruptStreamError(f"malformed header entry {i + 1}: {line[:32]!r}")
        symbol, frequency = int(m.group(1)), int(m.group(2))
        if symbol > 255:
            raise CorruptStreamError(f"symbol out of byte range: {symbol}")
        if symbol in frequencies:
            raise CorruptStreamError(f"duplicate symbol in header: {symbol}")
        if not 1 <= frequency <= MAX_FREQUENCY:
            raise CorruptStreamError(f"frequency out of range for symbol {symbol}: {frequency}")
        frequencies[symbol] = frequency

    return ArtifactHeader(frequencies=frequencies, payload_offset=pos)


def encode(data: bytes) -> bytes:
    ft = huff.build_frequency_table(data)
    tree = huff.build_huffman_tree(ft)
    code_map = huff.generate_huffman_codes(tree)
    packed, _ = huff.pack_bits_from_codes(data, code_map)
    return write_header(ft) + packed


def decode(artifact: bytes) -> bytes:
    header = read_header(artifact)
    tree = huff.build_huffman_tree(header.frequencies)
    payload = memoryview(artifact)[header.payload_offset:]
    return huff.unpack_and_decode(payload, tree, header.total_symbols)


def make_report(original_size: int, artifact: bytes, header: Optional[ArtifactHeader] = None) -> CompressionReport:
    if original_size <= 0:
        raise huff.EmptyInputError("cannot report on an empty original")
    if header is None:
        header = read_header(artifact)
    return CompressionReport(
        original_size=original_size,
        compressed_size=len(artifact),
        payload_size=len(artifact) - header.payload_offset,
        header_size=header.payload_offset,
        distinct_symbols=header.distinct_symbols,
    )
