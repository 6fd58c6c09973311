"""
HuffZip: Huffman coding file compressor

How to run:
  huffzip compress notes.txt notes.huf
  huffzip decompress notes.huf notes.out
  huffzip info notes.huf
"""

from __future__ import annotations

import argparse
import os
import sys
import tempfile
from pathlib import Path
from typing import List, Optional

import container
from huffman import HuffmanError


class IOUnavailableError(HuffmanError, OSError):
    pass


def read_input(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise IOUnavailableError(f"cannot read {path}: {e.strerror or e}") from e


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def write_output(path: Path, data: bytes) -> None:
    """
    Writes data to a temporary file beside path, then moves it into place.
    mkstemp creates the file as 0600, so it gets the usual umask-based mode first
    """
    tmp = None
    try:
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=path.name + ".tmp_")
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.chmod(tmp, 0o666 & ~_current_umask())
        os.replace(tmp, path)
    except OSError as e:
        if tmp is not None and os.path.exists(tmp):
            os.remove(tmp)
        raise IOUnavailableError(f"cannot write {path}: {e.strerror or e}") from e


def compress_file(input_path: Path, output_path: Path) -> container.CompressionReport:
    data = read_input(input_path)
    artifact = container.encode(data)
    write_output(output_path, artifact)
    return container.make_report(len(data), artifact)


def decompress_file(input_path: Path, output_path: Path) -> int:
    artifact = read_input(input_path)
    data = container.decode(artifact)
    write_output(output_path, data)
    return len(data)


def print_report(report: container.CompressionReport, output_path: Path) -> None:
    print("\nCompression successful!")
    print(f"Original size: {report.original_size} bytes")
    print(f"Compressed size: {report.compressed_size} bytes")
    print(f"Compression ratio: {report.ratio * 100:.2f}%")
    print(f"Saved as: {output_path}")


# Commands

def cmd_compress(args) -> int:
    report = compress_file(Path(args.input), Path(args.output))
    if not args.quiet:
        print_report(report, Path(args.output))
    return 0

def cmd_decompress(args) -> int:
    size = decompress_file(Path(args.input), Path(args.output))
    if not args.quiet:
        print(f"\nDecompression successful! {size} bytes saved as: {args.output}")
    return 0

def cmd_info(args) -> int:
    artifact = read_input(Path(args.input))
    header = container.read_header(artifact)
    print(f"Distinct symbols: {header.distinct_symbols}")
    print(f"Total symbols:    {header.total_symbols}")
    print(f"Header bytes:     {header.payload_offset}")
    print(f"Payload bytes:    {len(artifact) - header.payload_offset}")
    print("symbol frequency")
    for symbol in sorted(header.frequencies):
        print(f"{symbol:6d} {header.frequencies[symbol]}")
    return 0


# Main

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="huffzip", description="Huffman coding file compressor")
    sub = ap.add_subparsers(dest="cmd", required=True)

    c = sub.add_parser("compress", help="Compress a file")
    c.add_argument("input", help="File to compress")
    c.add_argument("output", help="Where to write the compressed artifact")
    c.add_argument("--quiet", action="store_true", help="Do not print the compression report")
    c.set_defaults(func=cmd_compress)

    d = sub.add_parser("decompress", help="Decompress a file")
    d.add_argument("input", help="Compressed artifact")
    d.add_argument("output", help="Where to write the restored file")
    d.add_argument("--quiet", action="store_true", help="Do not print a summary")
    d.set_defaults(func=cmd_decompress)

    i = sub.add_parser("info", help="Show the frequency table header of an artifact")
    i.add_argument("input", help="Compressed artifact")
    i.set_defaults(func=cmd_info)

    return ap

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except HuffmanError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
