import base64
import io
import random

import pytest

from streammail.errors import CompositionError
from streammail.mime.encoder import PartEncoder


def _encode(data: bytes, chunk_sizes) -> bytes:
    out = io.BytesIO()
    encoder = PartEncoder(out)
    i = 0
    for size in chunk_sizes:
        encoder.write(data[i:i + size])
        i += size
    encoder.write(data[i:])
    encoder.close()
    return out.getvalue()


@pytest.mark.parametrize("n", [0, 1, 2, 3, 4, 56, 57, 58, 114, 1000, 4096])
def test_round_trip_ignoring_line_breaks(n):
    rng = random.Random(n)
    data = bytes(rng.getrandbits(8) for _ in range(n))
    chunks = [rng.randint(1, 17) for _ in range(n // 10)]

    encoded = _encode(data, chunks)

    assert base64.b64decode(encoded.replace(b"\r\n", b"")) == data


@pytest.mark.parametrize("n", [1, 57, 100, 1000])
def test_line_structure_matches_mime_base64(n):
    data = bytes(range(256)) * (n // 256 + 1)
    data = data[:n]

    encoded = _encode(data, [5, 3, 11])

    # base64.encodebytes wraps at 76 columns too, with bare LF
    expected = base64.encodebytes(data).rstrip(b"\n")
    assert encoded.replace(b"\r\n", b"\n").rstrip(b"\n") == expected
    assert all(len(line) <= 76 for line in encoded.split(b"\r\n"))


def test_partial_group_is_held_back():
    out = io.BytesIO()
    encoder = PartEncoder(out)

    encoder.write(b"ab")
    assert out.getvalue() == b""

    encoder.write(b"c")
    assert out.getvalue() == b"YWJj"


def test_close_pads_final_group():
    out = io.BytesIO()
    with PartEncoder(out) as encoder:
        encoder.write(b"hello")
    assert out.getvalue() == b"aGVsbG8="
    assert encoder.closed


def test_close_twice_is_a_no_op():
    out = io.BytesIO()
    encoder = PartEncoder(out)
    encoder.write(b"a")
    encoder.close()
    encoder.close()
    assert out.getvalue() == b"YQ=="


def test_write_after_close_fails():
    encoder = PartEncoder(io.BytesIO())
    encoder.close()
    with pytest.raises(CompositionError):
        encoder.write(b"late")


def test_empty_write_writes_nothing():
    out = io.BytesIO()
    encoder = PartEncoder(out)
    assert encoder.write(b"") == 0
    encoder.close()
    assert out.getvalue() == b""
