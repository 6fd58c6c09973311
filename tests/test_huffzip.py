import os
import stat

import pytest

import container
import huffzip
from huffzip import IOUnavailableError


def test_compress_then_decompress_files(tmp_path, capsys):
    src = tmp_path / "input.txt"
    packed = tmp_path / "input.huf"
    restored = tmp_path / "restored.txt"
    src.write_bytes(b"aaaaaaaaaabbbbbbbbbbcccccccccc" * 10)

    assert huffzip.main(["compress", str(src), str(packed)]) == 0
    out = capsys.readouterr().out
    assert "Compression successful!" in out
    assert "Original size: 300 bytes" in out
    assert f"Compressed size: {packed.stat().st_size} bytes" in out
    assert f"Saved as: {packed}" in out

    assert huffzip.main(["decompress", str(packed), str(restored)]) == 0
    assert "Decompression successful!" in capsys.readouterr().out
    assert restored.read_bytes() == src.read_bytes()


def test_quiet_prints_nothing(tmp_path, capsys):
    src = tmp_path / "in.bin"
    src.write_bytes(bytes(range(256)))
    assert huffzip.main(["compress", "--quiet", str(src), str(tmp_path / "out.huf")]) == 0
    assert capsys.readouterr().out == ""


def test_compress_file_returns_report(tmp_path):
    src = tmp_path / "in.bin"
    src.write_bytes(b"\x00" * 64)
    report = huffzip.compress_file(src, tmp_path / "out.huf")
    assert report.original_size == 64
    assert report.compressed_size == (tmp_path / "out.huf").stat().st_size
    assert report.distinct_symbols == 1


def test_info_lists_header(tmp_path, capsys):
    artifact = tmp_path / "a.huf"
    artifact.write_bytes(container.encode(b"ABBCCC"))
    assert huffzip.main(["info", str(artifact)]) == 0
    out = capsys.readouterr().out
    assert "Distinct symbols: 3" in out
    assert "Total symbols:    6" in out
    assert "    67 3" in out


def test_missing_input_reports_error(tmp_path, capsys):
    code = huffzip.main(["compress", str(tmp_path / "missing.txt"), str(tmp_path / "out.huf")])
    assert code == 1
    assert "Error: cannot read" in capsys.readouterr().err
    assert not (tmp_path / "out.huf").exists()


def test_empty_input_writes_nothing(tmp_path, capsys):
    src = tmp_path / "empty.txt"
    src.write_bytes(b"")
    assert huffzip.main(["compress", str(src), str(tmp_path / "out.huf")]) == 1
    assert "empty input" in capsys.readouterr().err
    assert not (tmp_path / "out.huf").exists()


def test_corrupt_artifact_writes_nothing(tmp_path, capsys):
    bad = tmp_path / "bad.huf"
    bad.write_bytes(b"2\n65 1\n")
    assert huffzip.main(["decompress", str(bad), str(tmp_path / "out.txt")]) == 1
    assert "truncated header" in capsys.readouterr().err
    assert not (tmp_path / "out.txt").exists()


def test_oversized_single_symbol_count_is_reported(tmp_path, capsys):
    bad = tmp_path / "huge.huf"
    bad.write_bytes(b"1\n65 9223372036854775807\n\x00")
    assert huffzip.main(["decompress", str(bad), str(tmp_path / "out.txt")]) == 1
    assert "single-symbol payload" in capsys.readouterr().err
    assert not (tmp_path / "out.txt").exists()


def test_read_input_missing_file_raises(tmp_path):
    with pytest.raises(IOUnavailableError) as excinfo:
        huffzip.read_input(tmp_path / "nope")
    assert isinstance(excinfo.value, OSError)
    assert isinstance(excinfo.value.__cause__, FileNotFoundError)


def test_write_output_missing_directory_raises(tmp_path):
    with pytest.raises(IOUnavailableError):
        huffzip.write_output(tmp_path / "no" / "such" / "dir" / "out.huf", b"data")


def test_write_output_leaves_no_temp_files(tmp_path):
    target = tmp_path / "out.huf"
    huffzip.write_output(target, b"payload")
    assert target.read_bytes() == b"payload"
    assert [p.name for p in tmp_path.iterdir()] == ["out.huf"]


@pytest.mark.skipif(os.name != "posix", reason="POSIX file modes")
@pytest.mark.parametrize("mask, expected", [(0o022, 0o644), (0o077, 0o600), (0o002, 0o664)])
def test_write_output_follows_umask(tmp_path, mask, expected):
    previous = os.umask(mask)
    try:
        huffzip.write_output(tmp_path / "out.huf", b"payload")
    finally:
        os.umask(previous)
    assert stat.S_IMODE((tmp_path / "out.huf").stat().st_mode) == expected


def test_write_output_replace_failure_cleans_up(tmp_path, monkeypatch):
    def fail_replace(src, dst):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(huffzip.os, "replace", fail_replace)
    with pytest.raises(IOUnavailableError):
        huffzip.write_output(tmp_path / "out.huf", b"payload")
    assert list(tmp_path.iterdir()) == []


def test_missing_subcommand_is_usage_error():
    with pytest.raises(SystemExit) as excinfo:
        huffzip.main([])
    assert excinfo.value.code == 2
