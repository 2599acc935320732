# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

import bz2
import lzma
import struct
import zlib
from dataclasses import dataclass
from logging import getLogger
from typing import IO, Literal, Optional, Union

from google.protobuf.message import DecodeError as ProtobufDecodeError
from google.protobuf.message import Message

from .err import FramingError
from .pbf import fileformat_pb2, osmformat_pb2

logger = getLogger("pbf2sqlite.blocks")

SUPPORTED_FEATURES = frozenset({"OsmSchema-V0.6", "DenseNodes", "HistoricalInformation"})
"""Required features of a HeaderBlock which pbf2sqlite understands."""

MAX_BLOB_HEADER_SIZE = 64 * 1024
MAX_BLOB_SIZE = 32 * 1024 * 1024

COMPRESSION_T = Literal["raw", "zlib", "lzma", "bz2"]


@dataclass
class UnknownBlock:
    """UnknownBlock is a blob with a type other than ``OSMHeader`` and ``OSMData``.
    Its payload is not decoded."""

    type: str
    size: int


Block = Union[osmformat_pb2.HeaderBlock, osmformat_pb2.PrimitiveBlock, UnknownBlock]
"""Block is a single decoded blob of an `OSM PBF <https://wiki.openstreetmap.org/wiki/PBF_Format>`_ file."""


class BlockReader:
    """BlockReader pulls :py:obj:`Block` instances one at a time from a binary
    `OSM PBF <https://wiki.openstreetmap.org/wiki/PBF_Format>`_ stream.

    A malformed blob raises :py:exc:`FramingError` from :py:meth:`read_block`,
    but the reader remains usable - the next call continues with the following bytes
    of the stream. Every call either consumes some bytes or reports the end of the stream.
    """

    def __init__(self, buffer: IO[bytes]) -> None:
        self.buffer = buffer
        self.blocks_read = 0

    def read_block(self) -> Optional[Block]:
        """read_block returns the next :py:obj:`Block`, or ``None`` at the end of the stream."""
        blob_header = self._read_blob_header()
        if blob_header is None:
            return None

        self.blocks_read += 1
        if blob_header.type == "OSMHeader":
            header = osmformat_pb2.HeaderBlock()
            self._parse(header, self._read_blob(blob_header.datasize))
            self._check_required_features(header)
            return header
        elif blob_header.type == "OSMData":
            block = osmformat_pb2.PrimitiveBlock()
            self._parse(block, self._read_blob(blob_header.datasize))
            return block
        else:
            self._skip(blob_header.datasize)
            return UnknownBlock(blob_header.type, blob_header.datasize)

    def _read_exactly(self, size: int, what: str) -> bytes:
        data = self.buffer.read(size)
        if len(data) != size:
            raise FramingError(f"Unexpected EOF when trying to read {what}")
        return data

    def _read_blob_header(self) -> Optional[fileformat_pb2.BlobHeader]:
        header_len_bytes = self.buffer.read(4)
        if len(header_len_bytes) == 0:
            return None
        elif len(header_len_bytes) != 4:
            raise FramingError("Unexpected EOF when trying to read BlobHeader length")

        header_len: int = struct.unpack("!L", header_len_bytes)[0]
        if header_len > MAX_BLOB_HEADER_SIZE:
            raise FramingError(f"BlobHeader too large: {header_len} bytes")

        blob_header = fileformat_pb2.BlobHeader()
        self._parse(blob_header, self._read_exactly(header_len, "BlobHeader"))

        if blob_header.datasize < 0 or blob_header.datasize > MAX_BLOB_SIZE:
            raise FramingError(f"Blob has invalid size: {blob_header.datasize} bytes")

        return blob_header

    def _read_blob(self, blob_len: int) -> bytes:
        blob = fileformat_pb2.Blob()
        self._parse(blob, self._read_exactly(blob_len, "Blob"))

        try:
            if blob.HasField("raw"):
                return blob.raw
            elif blob.HasField("zlib_data"):
                return zlib.decompress(blob.zlib_data)
            elif blob.HasField("lzma_data"):
                return lzma.decompress(blob.lzma_data)
            elif blob.HasField("OBSOLETE_bzip2_data"):
                return bz2.decompress(blob.OBSOLETE_bzip2_data)
        except (zlib.error, lzma.LZMAError, OSError, EOFError) as e:
            raise FramingError(f"Blob data can't be decompressed: {e}") from e

        if blob.HasField("lz4_data"):
            raise FramingError("Blob uses unsupported compression, LZ4")
        elif blob.HasField("zstd_data"):
            raise FramingError("Blob uses unsupported compression, ZSTD")

        raise FramingError("Blob has no data or uses an unsupported compression")

    def _skip(self, size: int) -> None:
        self._read_exactly(size, "Blob")

    @staticmethod
    def _parse(message: Message, data: bytes) -> None:
        try:
            message.ParseFromString(data)
        except ProtobufDecodeError as e:
            raise FramingError(f"Invalid {type(message).__name__}: {e}") from e

    @staticmethod
    def _check_required_features(header: osmformat_pb2.HeaderBlock) -> None:
        unknown_required_features = set(header.required_features) - SUPPORTED_FEATURES
        if unknown_required_features:
            logger.warning(
                "HeaderBlock requests unsupported features: %s",
                ", ".join(sorted(unknown_required_features)),
            )


def encode_block(
    block: Union[osmformat_pb2.HeaderBlock, osmformat_pb2.PrimitiveBlock],
    compression: COMPRESSION_T = "zlib",
    type: Optional[str] = None,
) -> bytes:
    """encode_block serializes a block into a framed blob, ready to be written
    to an `OSM PBF <https://wiki.openstreetmap.org/wiki/PBF_Format>`_ file.

    ``type`` defaults to ``OSMHeader`` for header blocks and ``OSMData`` for primitive blocks.
    """
    if type is None:
        type = "OSMHeader" if isinstance(block, osmformat_pb2.HeaderBlock) else "OSMData"

    data = block.SerializeToString()
    blob = fileformat_pb2.Blob()
    if compression != "raw":
        blob.raw_size = len(data)

    if compression == "raw":
        blob.raw = data
    elif compression == "zlib":
        blob.zlib_data = zlib.compress(data)
    elif compression == "lzma":
        blob.lzma_data = lzma.compress(data)
    elif compression == "bz2":
        blob.OBSOLETE_bzip2_data = bz2.compress(data)
    else:
        raise ValueError(f"unknown compression: {compression!r}")

    blob_bytes = blob.SerializeToString()
    header_bytes = fileformat_pb2.BlobHeader(type=type, datasize=len(blob_bytes)).SerializeToString()
    return struct.pack("!L", len(header_bytes)) + header_bytes + blob_bytes
