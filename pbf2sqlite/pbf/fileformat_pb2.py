# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

"""Messages of the OSM PBF ``fileformat.proto``: the blob envelope."""

from google.protobuf.descriptor_pb2 import FieldDescriptorProto as _F

from . import _descriptor as _d

_file = _d.new_file("fileformat.proto", "OSMPBF")

_blob = _file.message_type.add(name="Blob")
_blob.oneof_decl.add(name="data")
_d.add_field(_blob, "raw_size", 2, _F.TYPE_INT32)
_d.add_field(_blob, "raw", 1, _F.TYPE_BYTES, oneof_index=0)
_d.add_field(_blob, "zlib_data", 3, _F.TYPE_BYTES, oneof_index=0)
_d.add_field(_blob, "lzma_data", 4, _F.TYPE_BYTES, oneof_index=0)
_d.add_field(_blob, "OBSOLETE_bzip2_data", 5, _F.TYPE_BYTES, oneof_index=0)
_d.add_field(_blob, "lz4_data", 6, _F.TYPE_BYTES, oneof_index=0)
_d.add_field(_blob, "zstd_data", 7, _F.TYPE_BYTES, oneof_index=0)

_blob_header = _file.message_type.add(name="BlobHeader")
_d.add_field(_blob_header, "type", 1, _F.TYPE_STRING, _d.REQUIRED)
_d.add_field(_blob_header, "indexdata", 2, _F.TYPE_BYTES)
_d.add_field(_blob_header, "datasize", 3, _F.TYPE_INT32, _d.REQUIRED)

DESCRIPTOR = _d.build(_file, __name__, globals())
