"""
Streaming decompression of package index blobs.
"""

import bz2
import zlib
from typing import Dict, Iterable, Optional

from driverbuilder.exceptions import DecompressionError


class Codec:
    """Base class for index codecs."""

    name = ""
    extension = ""

    def _new_decompressor(self):
        raise NotImplementedError

    def decompress(self, chunks: Iterable[bytes], url: Optional[str] = None) -> bytes:
        """
        Drain a compressed stream into memory.

        Concatenated members (as written by parallel compressors) are
        decoded one after the other.

        Args:
            chunks: Compressed data in arbitrary pieces
            url: Origin of the data, for error messages

        Returns:
            The decompressed bytes

        Raises:
            DecompressionError: If the data is malformed or truncated
        """
        output = bytearray()
        decompressor = self._new_decompressor()
        members = 0
        pending = False

        try:
            for chunk in chunks:
                data = chunk
                while data:
                    output += decompressor.decompress(data)
                    pending = True
                    if not decompressor.eof:
                        break
                    data = decompressor.unused_data
                    decompressor = self._new_decompressor()
                    members += 1
                    pending = False
        except (OSError, EOFError, ValueError, zlib.error) as e:
            raise DecompressionError(self.name, str(e), url) from e

        if pending:
            raise DecompressionError(self.name, "compressed stream ended unexpectedly", url)
        if members == 0:
            raise DecompressionError(self.name, "no data", url)
        return bytes(output)


class GzipCodec(Codec):
    """gzip (RFC 1952) streams."""

    name = "gzip"
    extension = "gz"

    def _new_decompressor(self):
        return zlib.decompressobj(16 + zlib.MAX_WBITS)


class Bzip2Codec(Codec):
    """bzip2 streams."""

    name = "bzip2"
    extension = "bz2"

    def _new_decompressor(self):
        return bz2.BZ2Decompressor()


CODECS: Dict[str, Codec] = {
    GzipCodec.name: GzipCodec(),
    Bzip2Codec.name: Bzip2Codec(),
}


def get_codec(name: str) -> Codec:
    """Get a codec by name."""
    try:
        return CODECS[name]
    except KeyError:
        raise ValueError(f"Unknown codec: {name}") from None
