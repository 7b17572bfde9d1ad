"""Streaming decompression of compressed trace files."""

from __future__ import annotations

import bz2
import gzip
import lzma
import os
import zlib
from enum import Enum
from typing import Union

__all__ = ["Compression", "InflateReader", "deflate"]

_CHUNK = 1 << 16


class Compression(Enum):
    """Supported compressed container formats."""

    GZIP = "gzip"
    BZIP2 = "bzip2"
    LZMA = "lzma"


def _new_decompressor(compression: Compression):
    if compression is Compression.GZIP:
        return zlib.decompressobj(15 + 16)
    if compression is Compression.BZIP2:
        return bz2.BZ2Decompressor()
    if compression is Compression.LZMA:
        return lzma.LZMADecompressor(format=lzma.FORMAT_XZ)
    raise ValueError(f"unknown compression: {compression!r}")


def deflate(data: bytes, compression: Compression) -> bytes:
    """Compress ``data`` into the container format of ``compression``."""
    if compression is Compression.GZIP:
        return gzip.compress(data)
    if compression is Compression.BZIP2:
        return bz2.compress(data, compresslevel=9)
    if compression is Compression.LZMA:
        return lzma.compress(data, format=lzma.FORMAT_XZ, check=lzma.CHECK_CRC64)
    raise ValueError(f"unknown compression: {compression!r}")


class InflateReader:
    """Reads decompressed bytes from a compressed binary stream or file path."""

    def __init__(self, source: Union[str, os.PathLike, object], compression: Compression):
        self._owns_source = isinstance(source, (str, os.PathLike))
        self._source = open(source, "rb") if self._owns_source else source
        self._decompressor = _new_decompressor(compression)
        self._buffer = bytearray()
        self._total_out = 0
        self._input_done = False
        self._eof = False

    def _fill(self) -> bool:
        """Decompress one more chunk of input; return False when nothing is left."""
        if self._input_done:
            return False
        if self._decompressor.eof:
            self._input_done = True
            return False
        chunk = self._source.read(_CHUNK)
        if not chunk:
            self._input_done = True
            return False
        try:
            out = self._decompressor.decompress(chunk)
        except (zlib.error, OSError, lzma.LZMAError, EOFError) as exc:
            raise ValueError(f"corrupt compressed stream: {exc}") from exc
        self._buffer += out
        self._total_out += len(out)
        return True

    def read(self, size: int = -1) -> bytes:
        """Return up to ``size`` bytes (all remaining when negative).

        A read that comes back short marks the reader as at end of file.
        """
        while (size < 0 or len(self._buffer) < size) and self._fill():
            pass
        if size < 0:
            data = bytes(self._buffer)
            self._buffer.clear()
            self._eof = True
            return data
        data = bytes(self._buffer[:size])
        del self._buffer[:size]
        self._eof = len(data) < size
        return data

    def eof(self) -> bool:
        return self._eof

    def bytes_read(self) -> int:
        """Number of decompressed bytes handed out so far."""
        return self._total_out - len(self._buffer)

    def close(self) -> None:
        if self._owns_source:
            self._source.close()

    def __enter__(self) -> InflateReader:
        return self

    def __exit__(self, *exc) -> None:
        self.close()