# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

"""Helpers for describing proto2 files without running ``protoc``.

The ``*_pb2`` modules in this package describe the upstream
`OSM PBF <https://wiki.openstreetmap.org/wiki/PBF_Format>`_ ``.proto`` files
with a :py:class:`FileDescriptorProto` and register it in the default descriptor pool,
the same way ``protoc``-generated modules register their serialized descriptors.
"""

from typing import Any, Dict, Optional

from google.protobuf import descriptor_pb2
from google.protobuf import descriptor_pool as _descriptor_pool
from google.protobuf.descriptor import FileDescriptor
from google.protobuf.internal import builder as _builder

F = descriptor_pb2.FieldDescriptorProto

OPTIONAL = F.LABEL_OPTIONAL
REQUIRED = F.LABEL_REQUIRED
REPEATED = F.LABEL_REPEATED


def new_file(name: str, package: str) -> descriptor_pb2.FileDescriptorProto:
    return descriptor_pb2.FileDescriptorProto(name=name, package=package, syntax="proto2")


def add_field(
    message: descriptor_pb2.DescriptorProto,
    name: str,
    number: int,
    type: "descriptor_pb2.FieldDescriptorProto.Type.ValueType",
    label: "descriptor_pb2.FieldDescriptorProto.Label.ValueType" = OPTIONAL,
    type_name: Optional[str] = None,
    default: Optional[str] = None,
    packed: bool = False,
    oneof_index: Optional[int] = None,
) -> None:
    """add_field appends a field to a message description.
    ``type_name`` must be fully qualified, e.g. ``.OSMPBF.Info``.
    """
    field = message.field.add(name=name, number=number, type=type, label=label)
    if type_name is not None:
        field.type_name = type_name
    if default is not None:
        field.default_value = default
    if packed:
        field.options.packed = True
    if oneof_index is not None:
        field.oneof_index = oneof_index


def build(file: descriptor_pb2.FileDescriptorProto, module_name: str, module_globals: Dict[str, Any]) -> FileDescriptor:
    """build registers the described file in the default descriptor pool and
    populates ``module_globals`` with the message classes."""
    descriptor = _descriptor_pool.Default().AddSerializedFile(file.SerializeToString())
    _builder.BuildMessageAndEnumDescriptors(descriptor, module_globals)
    _builder.BuildTopDescriptorsAndMessages(descriptor, module_name, module_globals)
    return descriptor
