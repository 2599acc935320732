# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

"""Messages of the OSM PBF ``osmformat.proto``: header and primitive blocks."""

from google.protobuf.descriptor_pb2 import FieldDescriptorProto as _F

from . import _descriptor as _d

_file = _d.new_file("osmformat.proto", "OSMPBF")

_header_block = _file.message_type.add(name="HeaderBlock")
_d.add_field(_header_block, "bbox", 1, _F.TYPE_MESSAGE, type_name=".OSMPBF.HeaderBBox")
_d.add_field(_header_block, "required_features", 4, _F.TYPE_STRING, _d.REPEATED)
_d.add_field(_header_block, "optional_features", 5, _F.TYPE_STRING, _d.REPEATED)
_d.add_field(_header_block, "writingprogram", 16, _F.TYPE_STRING)
_d.add_field(_header_block, "source", 17, _F.TYPE_STRING)
_d.add_field(_header_block, "osmosis_replication_timestamp", 32, _F.TYPE_INT64)
_d.add_field(_header_block, "osmosis_replication_sequence_number", 33, _F.TYPE_INT64)
_d.add_field(_header_block, "osmosis_replication_base_url", 34, _F.TYPE_STRING)

_header_bbox = _file.message_type.add(name="HeaderBBox")
_d.add_field(_header_bbox, "left", 1, _F.TYPE_SINT64, _d.REQUIRED)
_d.add_field(_header_bbox, "right", 2, _F.TYPE_SINT64, _d.REQUIRED)
_d.add_field(_header_bbox, "top", 3, _F.TYPE_SINT64, _d.REQUIRED)
_d.add_field(_header_bbox, "bottom", 4, _F.TYPE_SINT64, _d.REQUIRED)

_primitive_block = _file.message_type.add(name="PrimitiveBlock")
_d.add_field(
    _primitive_block,
    "stringtable",
    1,
    _F.TYPE_MESSAGE,
    _d.REQUIRED,
    type_name=".OSMPBF.StringTable",
)
_d.add_field(
    _primitive_block,
    "primitivegroup",
    2,
    _F.TYPE_MESSAGE,
    _d.REPEATED,
    type_name=".OSMPBF.PrimitiveGroup",
)
_d.add_field(_primitive_block, "granularity", 17, _F.TYPE_INT32, default="100")
_d.add_field(_primitive_block, "lat_offset", 19, _F.TYPE_INT64, default="0")
_d.add_field(_primitive_block, "lon_offset", 20, _F.TYPE_INT64, default="0")
_d.add_field(_primitive_block, "date_granularity", 18, _F.TYPE_INT32, default="1000")

_primitive_group = _file.message_type.add(name="PrimitiveGroup")
_d.add_field(_primitive_group, "nodes", 1, _F.TYPE_MESSAGE, _d.REPEATED, type_name=".OSMPBF.Node")
_d.add_field(_primitive_group, "dense", 2, _F.TYPE_MESSAGE, type_name=".OSMPBF.DenseNodes")
_d.add_field(_primitive_group, "ways", 3, _F.TYPE_MESSAGE, _d.REPEATED, type_name=".OSMPBF.Way")
_d.add_field(
    _primitive_group,
    "relations",
    4,
    _F.TYPE_MESSAGE,
    _d.REPEATED,
    type_name=".OSMPBF.Relation",
)
_d.add_field(
    _primitive_group,
    "changesets",
    5,
    _F.TYPE_MESSAGE,
    _d.REPEATED,
    type_name=".OSMPBF.ChangeSet",
)

_string_table = _file.message_type.add(name="StringTable")
_d.add_field(_string_table, "s", 1, _F.TYPE_BYTES, _d.REPEATED)

_info = _file.message_type.add(name="Info")
_d.add_field(_info, "version", 1, _F.TYPE_INT32, default="-1")
_d.add_field(_info, "timestamp", 2, _F.TYPE_INT64)
_d.add_field(_info, "changeset", 3, _F.TYPE_INT64)
_d.add_field(_info, "uid", 4, _F.TYPE_INT32)
_d.add_field(_info, "user_sid", 5, _F.TYPE_UINT32)
_d.add_field(_info, "visible", 6, _F.TYPE_BOOL)

_dense_info = _file.message_type.add(name="DenseInfo")
_d.add_field(_dense_info, "version", 1, _F.TYPE_INT32, _d.REPEATED, packed=True)
_d.add_field(_dense_info, "timestamp", 2, _F.TYPE_SINT64, _d.REPEATED, packed=True)
_d.add_field(_dense_info, "changeset", 3, _F.TYPE_SINT64, _d.REPEATED, packed=True)
_d.add_field(_dense_info, "uid", 4, _F.TYPE_SINT32, _d.REPEATED, packed=True)
_d.add_field(_dense_info, "user_sid", 5, _F.TYPE_SINT32, _d.REPEATED, packed=True)
_d.add_field(_dense_info, "visible", 6, _F.TYPE_BOOL, _d.REPEATED, packed=True)

_change_set = _file.message_type.add(name="ChangeSet")
_d.add_field(_change_set, "id", 1, _F.TYPE_INT64, _d.REQUIRED)

_node = _file.message_type.add(name="Node")
_d.add_field(_node, "id", 1, _F.TYPE_SINT64, _d.REQUIRED)
_d.add_field(_node, "keys", 2, _F.TYPE_UINT32, _d.REPEATED, packed=True)
_d.add_field(_node, "vals", 3, _F.TYPE_UINT32, _d.REPEATED, packed=True)
_d.add_field(_node, "info", 4, _F.TYPE_MESSAGE, type_name=".OSMPBF.Info")
_d.add_field(_node, "lat", 8, _F.TYPE_SINT64, _d.REQUIRED)
_d.add_field(_node, "lon", 9, _F.TYPE_SINT64, _d.REQUIRED)

_dense_nodes = _file.message_type.add(name="DenseNodes")
_d.add_field(_dense_nodes, "id", 1, _F.TYPE_SINT64, _d.REPEATED, packed=True)
_d.add_field(_dense_nodes, "denseinfo", 5, _F.TYPE_MESSAGE, type_name=".OSMPBF.DenseInfo")
_d.add_field(_dense_nodes, "lat", 8, _F.TYPE_SINT64, _d.REPEATED, packed=True)
_d.add_field(_dense_nodes, "lon", 9, _F.TYPE_SINT64, _d.REPEATED, packed=True)
_d.add_field(_dense_nodes, "keys_vals", 10, _F.TYPE_INT32, _d.REPEATED, packed=True)

_way = _file.message_type.add(name="Way")
_d.add_field(_way, "id", 1, _F.TYPE_INT64, _d.REQUIRED)
_d.add_field(_way, "keys", 2, _F.TYPE_UINT32, _d.REPEATED, packed=True)
_d.add_field(_way, "vals", 3, _F.TYPE_UINT32, _d.REPEATED, packed=True)
_d.add_field(_way, "info", 4, _F.TYPE_MESSAGE, type_name=".OSMPBF.Info")
_d.add_field(_way, "refs", 8, _F.TYPE_SINT64, _d.REPEATED, packed=True)
_d.add_field(_way, "lat", 9, _F.TYPE_SINT64, _d.REPEATED, packed=True)
_d.add_field(_way, "lon", 10, _F.TYPE_SINT64, _d.REPEATED, packed=True)

_relation = _file.message_type.add(name="Relation")
_member_type = _relation.enum_type.add(name="MemberType")
_member_type.value.add(name="NODE", number=0)
_member_type.value.add(name="WAY", number=1)
_member_type.value.add(name="RELATION", number=2)
_d.add_field(_relation, "id", 1, _F.TYPE_INT64, _d.REQUIRED)
_d.add_field(_relation, "keys", 2, _F.TYPE_UINT32, _d.REPEATED, packed=True)
_d.add_field(_relation, "vals", 3, _F.TYPE_UINT32, _d.REPEATED, packed=True)
_d.add_field(_relation, "info", 4, _F.TYPE_MESSAGE, type_name=".OSMPBF.Info")
_d.add_field(_relation, "roles_sid", 8, _F.TYPE_INT32, _d.REPEATED, packed=True)
_d.add_field(_relation, "memids", 9, _F.TYPE_SINT64, _d.REPEATED, packed=True)
_d.add_field(
    _relation,
    "types",
    10,
    _F.TYPE_ENUM,
    _d.REPEATED,
    type_name=".OSMPBF.Relation.MemberType",
    packed=True,
)

DESCRIPTOR = _d.build(_file, __name__, globals())
