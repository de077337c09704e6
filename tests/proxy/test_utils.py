"""Tests for inbound body decoding."""

import zlib

import brotli
import pytest
from soap_proxy.proxy.utils import decompress_content, is_encoded

# Test data
ORIGINAL_CONTENT = b"<soap:Envelope><soap:Body>payload</soap:Body></soap:Envelope>"

GZIP_CONTENT = zlib.compress(ORIGINAL_CONTENT, wbits=16 + zlib.MAX_WBITS)  # gzip format
DEFLATE_CONTENT = zlib.compress(ORIGINAL_CONTENT, wbits=-zlib.MAX_WBITS)  # raw deflate
ZLIB_CONTENT = zlib.compress(ORIGINAL_CONTENT)  # zlib-wrapped deflate
BR_CONTENT = brotli.compress(ORIGINAL_CONTENT)

# === Tests for decompress_content ===


def test_decompress_content_no_encoding():
    assert decompress_content(ORIGINAL_CONTENT, None) == ORIGINAL_CONTENT
    assert decompress_content(ORIGINAL_CONTENT, "") == ORIGINAL_CONTENT
    assert decompress_content(ORIGINAL_CONTENT, "identity") == ORIGINAL_CONTENT


def test_decompress_content_gzip():
    assert decompress_content(GZIP_CONTENT, "gzip") == ORIGINAL_CONTENT
    assert decompress_content(GZIP_CONTENT, "GZIP") == ORIGINAL_CONTENT  # Case-insensitive
    assert decompress_content(GZIP_CONTENT, "x-gzip") == ORIGINAL_CONTENT


def test_decompress_content_deflate():
    assert decompress_content(DEFLATE_CONTENT, "deflate") == ORIGINAL_CONTENT
    assert decompress_content(ZLIB_CONTENT, "Deflate") == ORIGINAL_CONTENT


def test_decompress_content_brotli():
    assert decompress_content(BR_CONTENT, "br") == ORIGINAL_CONTENT
    assert decompress_content(BR_CONTENT, "BR") == ORIGINAL_CONTENT  # Case-insensitive


def test_decompress_content_stacked_encodings():
    # gzip applied first, then brotli: "gzip, br"
    stacked = brotli.compress(GZIP_CONTENT)

    assert decompress_content(stacked, "gzip, br") == ORIGINAL_CONTENT


def test_decompress_content_unsupported():
    with pytest.raises(ValueError, match="Unsupported encoding: compress"):
        decompress_content(ORIGINAL_CONTENT, "compress")


@pytest.mark.parametrize("encoding", ["gzip", "deflate", "br"])
def test_decompress_content_corrupt(encoding):
    with pytest.raises(ValueError, match=f"Failed to decompress {'brotli' if encoding == 'br' else encoding}"):
        decompress_content(b"definitely not compressed", encoding)


@pytest.mark.parametrize(
    "encoding, expected",
    [(None, False), ("", False), ("identity", False), ("gzip", True), ("identity, br", True)],
)
def test_is_encoded(encoding, expected):
    assert is_encoded(encoding) is expected


@pytest.mark.parametrize(
    "encoding, compress",
    [
        ("gzip", lambda data: zlib.compress(data, wbits=16 + zlib.MAX_WBITS)),
        ("deflate", lambda data: zlib.compress(data, wbits=-zlib.MAX_WBITS)),
        ("deflate", zlib.compress),
        ("br", brotli.compress),
    ],
)
def test_decompress_content_output_is_capped(mocker, encoding, compress):
    mocker.patch("soap_proxy.proxy.utils.MAX_DECOMPRESSED_BYTES", 1024)
    bomb = compress(b"a" * 100_000)

    with pytest.raises(ValueError, match="Decompressed body exceeds 1024 bytes"):
        decompress_content(bomb, encoding)


def test_decompress_content_at_cap_is_accepted(mocker):
    mocker.patch("soap_proxy.proxy.utils.MAX_DECOMPRESSED_BYTES", len(ORIGINAL_CONTENT))

    assert decompress_content(GZIP_CONTENT, "gzip") == ORIGINAL_CONTENT
    assert decompress_content(BR_CONTENT, "br") == ORIGINAL_CONTENT


def test_decompress_content_truncated_gzip():
    with pytest.raises(ValueError, match="Failed to decompress gzip content"):
        decompress_content(GZIP_CONTENT[:-8], "gzip")
