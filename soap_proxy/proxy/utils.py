"""Content-Encoding handling for inbound SOAP bodies."""

import zlib
from typing import Optional

import brotli

# Upper bound on a decoded body, applied to every coding in a stacked list
MAX_DECOMPRESSED_BYTES = 10 * 1024 * 1024


def _too_large() -> ValueError:
    return ValueError(f"Decompressed body exceeds {MAX_DECOMPRESSED_BYTES} bytes")


def _inflate(content: bytes, wbits: int) -> bytes:
    decompressor = zlib.decompressobj(wbits=wbits)
    output = decompressor.decompress(content, MAX_DECOMPRESSED_BYTES + 1)
    if len(output) > MAX_DECOMPRESSED_BYTES or decompressor.unconsumed_tail:
        raise _too_large()
    if not decompressor.eof:
        raise zlib.error("incomplete or truncated stream")
    return output


def _unbrotli(content: bytes) -> bytes:
    decompressor = brotli.Decompressor()
    output = decompressor.process(content, output_buffer_limit=MAX_DECOMPRESSED_BYTES + 1)
    if len(output) > MAX_DECOMPRESSED_BYTES:
        raise _too_large()
    if not decompressor.is_finished():
        raise brotli.error("incomplete or truncated stream")
    return output


def _decode_one(content: bytes, encoding: str) -> bytes:
    if encoding in ("", "identity"):
        return content
    if encoding in ("gzip", "x-gzip"):
        try:
            return _inflate(content, 16 + zlib.MAX_WBITS)
        except zlib.error as e:
            raise ValueError(f"Failed to decompress gzip content: {e}") from e
    if encoding == "deflate":
        # Raw deflate first, then the zlib-wrapped variant some clients send
        try:
            return _inflate(content, -zlib.MAX_WBITS)
        except zlib.error as e:
            try:
                return _inflate(content, zlib.MAX_WBITS)
            except zlib.error:
                raise ValueError(f"Failed to decompress deflate content: {e}") from e
    if encoding == "br":
        try:
            return _unbrotli(content)
        except brotli.error as e:
            raise ValueError(f"Failed to decompress brotli content: {e}") from e
    raise ValueError(f"Unsupported encoding: {encoding}")


def decompress_content(content: bytes, encoding: Optional[str]) -> bytes:
    """Undoes a Content-Encoding header value.

    Args:
        content: The encoded body.
        encoding: Header value, case-insensitive. A list such as "gzip, br" is
            undone last-applied first.

    Returns:
        The identity-encoded body.

    Raises:
        ValueError: If an encoding is unsupported, the content is corrupt, or a
            decoded stage would be larger than MAX_DECOMPRESSED_BYTES.
    """
    if not encoding:
        return content
    codings = [coding.strip().lower() for coding in encoding.split(",")]
    for coding in reversed(codings):
        content = _decode_one(content, coding)
    return content


def is_encoded(encoding: Optional[str]) -> bool:
    """True if the header value names anything other than identity."""
    if not encoding:
        return False
    return any(coding.strip().lower() not in ("", "identity") for coding in encoding.split(","))
