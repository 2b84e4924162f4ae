"""Pull one table out of a quarterly form345 ZIP without the central directory.

The archive is walked front to back over its local file headers. Each header
(30 bytes, little-endian) is laid out as:

    +0  signature  PK\\x03\\x04      +14 crc-32
    +4  version needed              +18 compressed size
    +6  general purpose flags       +22 uncompressed size
    +8  compression method          +26 file name length
    +10 mod time / +12 mod date     +28 extra field length

followed by the file name, the extra field, and the entry data.

HARD PRECONDITION: every local header carries the real compressed size. This
holds for the SEC insider data sets. It is NOT true of ZIPs written in
streaming mode (flag bit 3, sizes deferred to a data descriptor); such an entry
is reported as a ContainerError rather than guessed at. This module is not a
general ZIP reader; use zipfile for that.
"""

from __future__ import annotations

import struct
import zlib
from dataclasses import dataclass
from typing import List

from insider_tape.errors import ContainerError


def _debug(msg: str) -> None:
    print(f"[zip] {msg}")


LOCAL_HEADER_SIG = b"PK\x03\x04"
LOCAL_HEADER_LEN = 30

METHOD_STORED = 0
METHOD_DEFLATED = 8

_FLAG_DATA_DESCRIPTOR = 0x0008
_FLAG_UTF8_NAME = 0x0800
_ZIP64_MARKER = 0xFFFFFFFF


class ByteCursor:
    """Read-only byte buffer plus a movable offset."""

    def __init__(self, buf: bytes | bytearray, pos: int = 0):
        self._buf = buf
        self._view = memoryview(buf)
        self._pos = int(pos)

    @property
    def pos(self) -> int:
        return self._pos

    def __len__(self) -> int:
        return len(self._buf)

    def remaining(self) -> int:
        return max(0, len(self._buf) - self._pos)

    def move_to(self, pos: int) -> None:
        self._pos = min(max(0, int(pos)), len(self._buf))

    def seek(self, signature: bytes) -> bool:
        """Move to the next occurrence of `signature` at or after the cursor."""
        idx = self._buf.find(signature, self._pos)
        if idx < 0:
            self._pos = len(self._buf)
            return False
        self._pos = idx
        return True

    def u16(self, offset: int) -> int:
        return struct.unpack_from("<H", self._buf, self._pos + offset)[0]

    def u32(self, offset: int) -> int:
        return struct.unpack_from("<I", self._buf, self._pos + offset)[0]

    def span(self, start: int, end: int) -> memoryview:
        """Absolute [start, end) window; no copy."""
        return self._view[start:end]


@dataclass(frozen=True)
class LocalEntry:
    name: str
    flags: int
    method: int
    compressed_size: int
    data_start: int

    @property
    def base_name(self) -> str:
        return self.name.replace("\\", "/").rsplit("/", 1)[-1]

    @property
    def data_end(self) -> int:
        return self.data_start + self.compressed_size


def read_local_header(cursor: ByteCursor) -> LocalEntry:
    """Decode the local header at the cursor (which must sit on a signature)."""
    if cursor.remaining() < LOCAL_HEADER_LEN:
        raise ContainerError(f"Truncated local header at offset {cursor.pos}")

    flags = cursor.u16(6)
    method = cursor.u16(8)
    compressed_size = cursor.u32(18)
    name_len = cursor.u16(26)
    extra_len = cursor.u16(28)

    name_start = cursor.pos + LOCAL_HEADER_LEN
    data_start = name_start + name_len + extra_len
    if data_start > len(cursor):
        raise ContainerError(f"Truncated file name/extra field at offset {cursor.pos}")

    raw_name = bytes(cursor.span(name_start, name_start + name_len))
    name = raw_name.decode("utf-8" if flags & _FLAG_UTF8_NAME else "cp437", errors="replace")

    return LocalEntry(
        name=name,
        flags=flags,
        method=method,
        compressed_size=compressed_size,
        data_start=data_start,
    )


def _entry_bytes(cursor: ByteCursor, entry: LocalEntry) -> bytes:
    if entry.flags & _FLAG_DATA_DESCRIPTOR and entry.compressed_size == 0:
        raise ContainerError(
            f"{entry.name}: size deferred to a data descriptor; local header sizes are required"
        )
    if entry.compressed_size == _ZIP64_MARKER:
        raise ContainerError(f"{entry.name}: ZIP64 entries are not supported")
    if entry.data_end > len(cursor):
        raise ContainerError(
            f"{entry.name}: data runs past end of archive ({entry.data_end} > {len(cursor)})"
        )

    data = cursor.span(entry.data_start, entry.data_end)
    if entry.method == METHOD_STORED:
        return bytes(data)
    if entry.method == METHOD_DEFLATED:
        try:
            inflater = zlib.decompressobj(-zlib.MAX_WBITS)  # raw deflate, no zlib header
            return inflater.decompress(data) + inflater.flush()
        except zlib.error as e:
            raise ContainerError(f"{entry.name}: bad deflate stream: {e}") from e
    raise ContainerError(f"{entry.name}: unsupported compression method {entry.method}")


def extract_table(buf: bytes | bytearray, name_prefix: str) -> List[str] | None:
    """Return the text lines of the first entry whose base name starts with `name_prefix`.

    Matching is case-insensitive and ignores directories inside the archive.
    Returns None when no entry matches ("table absent"); the caller treats that
    as zero rows. Raises ContainerError when the matching entry is unreadable.
    """
    want = str(name_prefix or "").strip().upper()
    if not want:
        raise ValueError("name_prefix is blank")

    cursor = ByteCursor(buf)
    while cursor.seek(LOCAL_HEADER_SIG):
        entry = read_local_header(cursor)
        base = entry.base_name
        if base and base.upper().startswith(want):
            raw = _entry_bytes(cursor, entry)
            text = raw.decode("utf-8-sig", errors="replace")
            del raw
            lines = text.split("\n")
            _debug(f"  {base}: {len(lines)} lines")
            return lines
        # Skip this entry's data entirely; never scan inside compressed bytes.
        cursor.move_to(max(entry.data_end, cursor.pos + 1))

    return None
