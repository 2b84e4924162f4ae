"""Unit tests for the local-header ZIP table scanner."""

from __future__ import annotations

import zipfile
import zlib

import pytest

from insider_tape.errors import ContainerError
from insider_tape.sec.zipscan import ByteCursor, extract_table, read_local_header
from tests.archive_fixtures import DERIV_TSV, NONDERIV_TSV, build_archive, local_entry, standard_tables


def _raw_deflate(data: bytes) -> bytes:
    c = zlib.compressobj(6, zlib.DEFLATED, -zlib.MAX_WBITS)
    return c.compress(data) + c.flush()


@pytest.mark.parametrize("compression", [zipfile.ZIP_STORED, zipfile.ZIP_DEFLATED])
def test_extract_table_reads_stored_and_deflated_entries(compression: int) -> None:
    """Both supported methods should yield the entry's text lines."""
    buf = build_archive(standard_tables(), compression=compression)

    lines = extract_table(buf, "NONDERIV_TRANS")

    assert lines is not None
    assert "\n".join(lines) == NONDERIV_TSV


def test_deriv_prefix_does_not_match_nonderiv_entry() -> None:
    """DERIV_TRANS must resolve to its own entry even though NONDERIV_TRANS comes first."""
    buf = build_archive(standard_tables())

    lines = extract_table(buf, "DERIV_TRANS")

    assert lines is not None
    assert lines[0].startswith("ACCESSION_NUMBER")
    assert "\n".join(lines) == DERIV_TSV


def test_extract_table_ignores_directories_and_case() -> None:
    """Entries nested in folders and lower-cased names should still match."""
    buf = build_archive({"2026q1_form345/submission.tsv": "ACCESSION_NUMBER\nX\n"})

    assert extract_table(buf, "SUBMISSION") == ["ACCESSION_NUMBER", "X", ""]


def test_extract_table_returns_none_when_absent() -> None:
    """A missing table is reported as None, not as an error."""
    buf = build_archive(standard_tables(with_deriv=False))

    assert extract_table(buf, "DERIV_TRANS") is None


def test_extract_table_on_empty_buffer_returns_none() -> None:
    """No local headers at all means no table."""
    assert extract_table(b"", "SUBMISSION") is None


def test_extract_table_rejects_blank_prefix() -> None:
    """A blank prefix would match everything and is refused."""
    with pytest.raises(ValueError):
        extract_table(build_archive(standard_tables()), "  ")


def test_signature_inside_skipped_entry_data_is_not_followed() -> None:
    """Bytes that look like a header inside another entry's data must be skipped over."""
    decoy = b"junk PK\x03\x04 more junk"
    buf = local_entry(b"README.bin", decoy) + local_entry(b"SUBMISSION.tsv", b"A\tB\n1\t2\n")

    assert extract_table(buf, "SUBMISSION") == ["A\tB", "1\t2", ""]


def test_extract_table_strips_utf8_bom() -> None:
    """A leading BOM should not leak into the first column name."""
    buf = local_entry(b"SUBMISSION.tsv", "\ufeffACCESSION_NUMBER\nX\n".encode("utf-8"))

    lines = extract_table(buf, "SUBMISSION")

    assert lines is not None
    assert lines[0] == "ACCESSION_NUMBER"


def test_hand_built_deflated_entry_is_inflated() -> None:
    """Raw deflate data (no zlib header) should be inflated."""
    payload = b"ACCESSION_NUMBER\tRPTOWNERNAME\nA1\tDoe Jane\n"
    buf = local_entry(b"REPORTINGOWNER.tsv", _raw_deflate(payload), method=8)

    assert extract_table(buf, "REPORTINGOWNER") == ["ACCESSION_NUMBER\tRPTOWNERNAME", "A1\tDoe Jane", ""]


def test_data_descriptor_entry_raises_container_error() -> None:
    """Streaming-mode entries carry no size in the local header and are refused."""
    buf = local_entry(b"SUBMISSION.tsv", _raw_deflate(b"A\n1\n"), method=8, flags=0x0008, compressed_size=0)

    with pytest.raises(ContainerError):
        extract_table(buf, "SUBMISSION")


def test_truncated_entry_raises_container_error() -> None:
    """A declared size running past the end of the buffer is an error."""
    buf = local_entry(b"SUBMISSION.tsv", b"A\tB\n", compressed_size=1000)

    with pytest.raises(ContainerError):
        extract_table(buf, "SUBMISSION")


def test_unsupported_method_raises_container_error() -> None:
    """Only stored (0) and deflated (8) entries can be read."""
    buf = local_entry(b"SUBMISSION.tsv", b"BZh91AY&SY", method=12)

    with pytest.raises(ContainerError):
        extract_table(buf, "SUBMISSION")


def test_corrupt_deflate_stream_raises_container_error() -> None:
    """Garbage in a deflated entry surfaces as ContainerError, not zlib.error."""
    buf = local_entry(b"SUBMISSION.tsv", b"\xff\xff\xff\xff\xff\xff", method=8)

    with pytest.raises(ContainerError):
        extract_table(buf, "SUBMISSION")


def test_unreadable_non_matching_entry_is_skipped() -> None:
    """Only the matching entry is decoded; a bad neighbour does not matter."""
    buf = local_entry(b"OTHER.bin", b"\xff\xff\xff", method=8) + local_entry(b"SUBMISSION.tsv", b"A\n")

    assert extract_table(buf, "SUBMISSION") == ["A", ""]


def test_read_local_header_decodes_fields() -> None:
    """Header fields are read little-endian at their fixed offsets."""
    buf = local_entry(b"dir/NONDERIV_TRANS.tsv", b"hello", method=0)
    cursor = ByteCursor(buf)

    entry = read_local_header(cursor)

    assert entry.name == "dir/NONDERIV_TRANS.tsv"
    assert entry.base_name == "NONDERIV_TRANS.tsv"
    assert entry.method == 0
    assert entry.compressed_size == 5
    assert entry.data_start == 30 + len("dir/NONDERIV_TRANS.tsv")
    assert bytes(cursor.span(entry.data_start, entry.data_end)) == b"hello"


def test_read_local_header_rejects_short_buffer() -> None:
    """Fewer than 30 bytes cannot hold a local header."""
    with pytest.raises(ContainerError):
        read_local_header(ByteCursor(b"PK\x03\x04\x14\x00"))


def test_byte_cursor_seek_and_move_to() -> None:
    """seek finds the next signature; move_to is clamped to the buffer."""
    cursor = ByteCursor(b"xxPKyyPK")

    assert cursor.seek(b"PK")
    assert cursor.pos == 2
    cursor.move_to(3)
    assert cursor.seek(b"PK")
    assert cursor.pos == 6
    cursor.move_to(100)
    assert cursor.pos == len(cursor)
    assert cursor.remaining() == 0
    assert not cursor.seek(b"PK")
