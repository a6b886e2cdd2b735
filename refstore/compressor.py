import lzma
import zlib
from abc import ABC, abstractmethod

import brotli
import zstandard as zstd


# Raised by the libraries above when asked to decompress bytes they did not produce.
DECOMPRESSION_ERRORS = (zstd.ZstdError, zlib.error, lzma.LZMAError, brotli.error)


class Compressor(ABC):
    @abstractmethod
    def compress(self, data: bytes) -> bytes:
        pass

    @abstractmethod
    def decompress(self, data: bytes) -> bytes:
        pass


class DummyCompressor(Compressor):
    """No compression; values are stored as raw bytes."""

    @staticmethod
    def compress(data: bytes) -> bytes:
        return data

    @staticmethod
    def decompress(data: bytes) -> bytes:
        return data


class ZstdCompressor(Compressor):
    """Compressor using the Zstandard algorithm, optionally primed with a shared dictionary."""

    def __init__(self, level: int = 3, dictionary: bytes | None = None):
        dict_data = zstd.ZstdCompressionDict(dictionary) if dictionary else None
        self.compressor = zstd.ZstdCompressor(level=level, dict_data=dict_data)
        self.decompressor = zstd.ZstdDecompressor(dict_data=dict_data)

    def compress(self, data: bytes) -> bytes:
        return self.compressor.compress(data)

    def decompress(self, data: bytes) -> bytes:
        return self.decompressor.decompress(data)


class ZlibCompressor(Compressor):
    def __init__(self, level: int = -1):
        self.level = level

    def compress(self, data: bytes) -> bytes:
        return zlib.compress(data, self.level)

    @staticmethod
    def decompress(data: bytes) -> bytes:
        return zlib.decompress(data)


class LzmaCompressor(Compressor):
    @staticmethod
    def compress(data: bytes) -> bytes:
        return lzma.compress(data)

    @staticmethod
    def decompress(data: bytes) -> bytes:
        return lzma.decompress(data)


class BrotliCompressor(Compressor):
    def __init__(self, quality: int = 11):
        self.quality = quality

    def compress(self, data: bytes) -> bytes:
        return brotli.compress(data, quality=self.quality)

    @staticmethod
    def decompress(data: bytes) -> bytes:
        return brotli.decompress(data)
