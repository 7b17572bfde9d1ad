import io

import pytest

from champsim.decompress import Compression, InflateReader, deflate

PAYLOAD = bytes(range(256)) * 1000

ALL = list(Compression)


@pytest.mark.parametrize("compression", ALL)
def test_round_trip_exact_read(compression):
    reader = InflateReader(io.BytesIO(deflate(PAYLOAD, compression)), compression)
    assert reader.read(len(PAYLOAD)) == PAYLOAD
    assert not reader.eof()
    assert reader.read(10) == b""
    assert reader.eof()


@pytest.mark.parametrize("compression", ALL)
def test_chunked_reads_and_bytes_read(compression):
    reader = InflateReader(io.BytesIO(deflate(PAYLOAD, compression)), compression)
    parts = []
    while not reader.eof():
        parts.append(reader.read(1000))
        assert reader.bytes_read() == sum(len(p) for p in parts)
    assert b"".join(parts) == PAYLOAD


@pytest.mark.parametrize("compression", ALL)
def test_short_read_returns_remainder(compression):
    data = b"hello trace"
    reader = InflateReader(io.BytesIO(deflate(data, compression)), compression)
    assert reader.read(4) == data[:4]
    assert reader.read(1000) == data[4:]
    assert reader.eof()
    assert reader.bytes_read() == len(data)


@pytest.mark.parametrize("compression", ALL)
def test_read_all(compression):
    reader = InflateReader(io.BytesIO(deflate(PAYLOAD, compression)), compression)
    assert reader.read() == PAYLOAD
    assert reader.eof()


def test_from_path(tmp_path):
    path = tmp_path / "trace.xz"
    path.write_bytes(deflate(PAYLOAD, Compression.LZMA))
    with InflateReader(path, Compression.LZMA) as reader:
        assert reader.read(len(PAYLOAD) + 1) == PAYLOAD
        assert reader.eof()


def test_magic_numbers():
    assert deflate(b"x", Compression.GZIP)[:2] == b"\x1f\x8b"
    assert deflate(b"x", Compression.LZMA)[:6] == b"\xfd7zXZ\x00"
    assert deflate(b"x", Compression.BZIP2)[:3] == b"BZh"


@pytest.mark.parametrize("compression", ALL)
def test_corrupt_input_raises(compression):
    reader = InflateReader(io.BytesIO(b"this is not a compressed stream at all"), compression)
    with pytest.raises(ValueError):
        reader.read(10)


def test_empty_source_is_eof():
    reader = InflateReader(io.BytesIO(b""), Compression.GZIP)
    assert reader.read(5) == b""
    assert reader.eof()
    assert reader.bytes_read() == 0