# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

import io
import struct
from unittest import TestCase

from .blocks import BlockReader, UnknownBlock, encode_block
from .err import FramingError
from .pbf import fileformat_pb2, osmformat_pb2

HEADER = osmformat_pb2.HeaderBlock(
    required_features=["OsmSchema-V0.6", "DenseNodes"],
    writingprogram="pbf2sqlite-tests",
)

PRIMITIVE = osmformat_pb2.PrimitiveBlock(
    stringtable=osmformat_pb2.StringTable(s=[b"", b"highway", b"primary"]),
    primitivegroup=[
        osmformat_pb2.PrimitiveGroup(
            dense=osmformat_pb2.DenseNodes(id=[1, 1], lat=[10, 10], lon=[20, 20], keys_vals=[1, 2, 0, 0]),
        ),
    ],
)


def raw_blob(type: str, payload: bytes) -> bytes:
    blob = fileformat_pb2.Blob(raw=payload).SerializeToString()
    header = fileformat_pb2.BlobHeader(type=type, datasize=len(blob)).SerializeToString()
    return struct.pack("!L", len(header)) + header + blob


class TestBlockReader(TestCase):
    def test_compressions(self) -> None:
        for compression in ("raw", "zlib", "lzma", "bz2"):
            with self.subTest(compression=compression):
                reader = BlockReader(
                    io.BytesIO(
                        encode_block(HEADER, compression)  # type: ignore
                        + encode_block(PRIMITIVE, compression)  # type: ignore
                    )
                )

                header = reader.read_block()
                self.assertIsInstance(header, osmformat_pb2.HeaderBlock)
                self.assertEqual(header, HEADER)

                primitive = reader.read_block()
                self.assertIsInstance(primitive, osmformat_pb2.PrimitiveBlock)
                self.assertEqual(primitive, PRIMITIVE)

                self.assertIsNone(reader.read_block())
                self.assertEqual(reader.blocks_read, 2)

    def test_empty_stream(self) -> None:
        self.assertIsNone(BlockReader(io.BytesIO(b"")).read_block())

    def test_unknown_block(self) -> None:
        reader = BlockReader(
            io.BytesIO(raw_blob("OSMSomethingElse", b"\x01\x02\x03") + encode_block(PRIMITIVE))
        )

        unknown = reader.read_block()
        self.assertIsInstance(unknown, UnknownBlock)
        assert isinstance(unknown, UnknownBlock)  # for type checker
        self.assertEqual(unknown.type, "OSMSomethingElse")

        self.assertEqual(reader.read_block(), PRIMITIVE)
        self.assertIsNone(reader.read_block())

    def test_recovers_after_invalid_payload(self) -> None:
        reader = BlockReader(
            io.BytesIO(raw_blob("OSMData", b"\xff\xff\xff\xff") + encode_block(PRIMITIVE))
        )

        with self.assertRaises(FramingError):
            reader.read_block()
        self.assertEqual(reader.read_block(), PRIMITIVE)
        self.assertIsNone(reader.read_block())

    def test_unsupported_compression(self) -> None:
        blob = fileformat_pb2.Blob(raw_size=3, zstd_data=b"abc").SerializeToString()
        header = fileformat_pb2.BlobHeader(type="OSMData", datasize=len(blob)).SerializeToString()
        reader = BlockReader(io.BytesIO(struct.pack("!L", len(header)) + header + blob))

        with self.assertRaisesRegex(FramingError, "ZSTD"):
            reader.read_block()
        self.assertIsNone(reader.read_block())

    def test_corrupt_compressed_data(self) -> None:
        blob = fileformat_pb2.Blob(raw_size=3, zlib_data=b"not zlib").SerializeToString()
        header = fileformat_pb2.BlobHeader(type="OSMData", datasize=len(blob)).SerializeToString()
        reader = BlockReader(io.BytesIO(struct.pack("!L", len(header)) + header + blob))

        with self.assertRaises(FramingError):
            reader.read_block()

    def test_truncated_length(self) -> None:
        reader = BlockReader(io.BytesIO(b"\x00\x00"))
        with self.assertRaises(FramingError):
            reader.read_block()
        self.assertIsNone(reader.read_block())

    def test_truncated_blob(self) -> None:
        data = encode_block(PRIMITIVE)
        reader = BlockReader(io.BytesIO(data[:-5]))
        with self.assertRaises(FramingError):
            reader.read_block()
        self.assertIsNone(reader.read_block())

    def test_unsupported_required_features(self) -> None:
        header = osmformat_pb2.HeaderBlock(required_features=["OsmSchema-V0.6", "LocationsOnWays"])
        reader = BlockReader(io.BytesIO(encode_block(header)))

        with self.assertLogs("pbf2sqlite.blocks", "WARNING") as logs:
            self.assertEqual(reader.read_block(), header)
        self.assertIn("LocationsOnWays", logs.output[0])
