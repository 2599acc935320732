# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

from contextlib import contextmanager
from dataclasses import dataclass, field
from itertools import repeat
from typing import (
    AbstractSet,
    Dict,
    Iterable,
    Iterator,
    List,
    Literal,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from typing_extensions import Self

from .err import DecodeError
from .pbf import osmformat_pb2
from .protocols import Tag

MemberType = Literal["node", "way", "relation"]

_MEMBER_TYPES: Tuple[MemberType, ...] = ("node", "way", "relation")

HeaderValue = Union[int, str]


@dataclass
class Info:
    """Info holds the metadata of a single OpenStreetMap feature.
    Fields not present in the source block are ``None``."""

    version: Optional[int] = None
    timestamp: Optional[int] = None
    """timestamp of the last modification, in seconds since the Unix epoch."""

    uid: Optional[int] = None
    user: Optional[str] = None
    visible: Optional[bool] = None


@dataclass
class Node:
    """Node represents a single `OpenStreetMap node <https://wiki.openstreetmap.org/wiki/Node>`_."""

    id: int
    lat: float
    lon: float
    tags: List[Tag] = field(default_factory=list)
    info: Optional[Info] = None


@dataclass
class Way:
    """Way represents a single `OpenStreetMap way <https://wiki.openstreetmap.org/wiki/Way>`_."""

    id: int
    refs: List[int] = field(default_factory=list)
    tags: List[Tag] = field(default_factory=list)
    info: Optional[Info] = None


@dataclass
class RelationMember:
    """RelationMember represents a single member of a
    `OpenStreetMap relation <https://wiki.openstreetmap.org/wiki/Relation>`_.
    """

    type: MemberType
    ref: int
    role: str

    @property
    def node_id(self) -> Optional[int]:
        return self.ref if self.type == "node" else None

    @property
    def way_id(self) -> Optional[int]:
        return self.ref if self.type == "way" else None

    @property
    def relation_id(self) -> Optional[int]:
        return self.ref if self.type == "relation" else None


@dataclass
class Relation:
    """Relation represents a single `OpenStreetMap relation <https://wiki.openstreetmap.org/wiki/Relation>`_."""

    id: int
    members: List[RelationMember] = field(default_factory=list)
    tags: List[Tag] = field(default_factory=list)
    info: Optional[Info] = None


def decode_deltas(deltas: Iterable[int]) -> Iterator[int]:
    """decode_deltas generates absolute values from a delta-coded sequence.

    Every call starts with its own accumulator set to zero, so each delta-coded
    array must be passed to a separate call.
    """
    value = 0
    for delta in deltas:
        value += delta
        yield value


class StringTable:
    """StringTable resolves indices into the string table of a single
    :py:class:`osmformat_pb2.PrimitiveBlock`.

    Entries are decoded from UTF-8 on first use, so invalid entries
    which are never referenced don't cause errors.
    """

    def __init__(self, table: osmformat_pb2.StringTable) -> None:
        self._raw = table.s
        self._decoded: Dict[int, str] = {}

    def __len__(self) -> int:
        return len(self._raw)

    def resolve(self, index: int) -> str:
        """resolve returns the string at the provided index. Raises :py:exc:`DecodeError`
        if the index is out of range, or if the entry is not valid UTF-8.
        """
        s = self._decoded.get(index)
        if s is not None:
            return s

        if index < 0 or index >= len(self._raw):
            raise DecodeError(
                f"string table index {index} out of range (table has {len(self._raw)} entries)"
            )

        try:
            s = self._raw[index].decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"string table entry {index} is not valid UTF-8") from e

        self._decoded[index] = s
        return s


@dataclass(frozen=True)
class BlockScale:
    """BlockScale converts raw coordinates and timestamps of a
    :py:class:`osmformat_pb2.PrimitiveBlock` into degrees and Unix seconds.
    """

    granularity: int = 100
    """granularity is the number of nanodegrees per coordinate unit."""

    lat_offset: int = 0
    lon_offset: int = 0
    date_granularity: int = 1000
    """date_granularity is the number of milliseconds per timestamp unit."""

    @classmethod
    def from_block(cls, block: osmformat_pb2.PrimitiveBlock) -> Self:
        return cls(
            granularity=block.granularity,
            lat_offset=block.lat_offset,
            lon_offset=block.lon_offset,
            date_granularity=block.date_granularity,
        )

    def lat(self, raw: int) -> float:
        return 1e-9 * (self.lat_offset + (self.granularity * raw))

    def lon(self, raw: int) -> float:
        return 1e-9 * (self.lon_offset + (self.granularity * raw))

    def timestamp(self, raw: int) -> int:
        return raw * self.date_granularity // 1000


@contextmanager
def _context(what: str) -> Iterator[None]:
    try:
        yield
    except DecodeError as e:
        raise DecodeError(f"{what}: {e}") from e


class BlockDecoder:
    """BlockDecoder reconstructs OpenStreetMap features from a single
    :py:class:`osmformat_pb2.PrimitiveBlock`.

    Tags, metadata, way refs and relation members are only decoded when requested,
    which allows callers to avoid work for data which is going to be discarded.
    Tags with keys in ``skip_tag_keys`` are dropped.

    Any invalid content raises :py:exc:`DecodeError`.
    """

    def __init__(
        self,
        block: osmformat_pb2.PrimitiveBlock,
        skip_tag_keys: AbstractSet[str] = frozenset(),
    ) -> None:
        self.block = block
        self.strings = StringTable(block.stringtable)
        self.scale = BlockScale.from_block(block)
        self.skip_tag_keys = skip_tag_keys

    def nodes(
        self,
        group: osmformat_pb2.PrimitiveGroup,
        tags: bool = True,
        info: bool = True,
    ) -> Iterator[Node]:
        """nodes generates all nodes from a group. Dense nodes take precedence -
        plain nodes are only read if the group has no dense nodes."""
        if group.HasField("dense"):
            yield from self.dense_nodes(group.dense, tags, info)
        else:
            for node in group.nodes:
                yield self.node(node, tags, info)

    def node(self, node: osmformat_pb2.Node, tags: bool = True, info: bool = True) -> Node:
        with _context(f"node {node.id}"):
            return Node(
                id=node.id,
                lat=self.scale.lat(node.lat),
                lon=self.scale.lon(node.lon),
                tags=self.tags(node.keys, node.vals) if tags else [],
                info=self.info(node.info) if info and node.HasField("info") else None,
            )

    def dense_nodes(
        self,
        dense: osmformat_pb2.DenseNodes,
        tags: bool = True,
        info: bool = True,
    ) -> Iterator[Node]:
        count = len(dense.id)
        if len(dense.lat) != count or len(dense.lon) != count:
            raise DecodeError(
                f"dense nodes: id, lat and lon have different lengths "
                f"({count}, {len(dense.lat)} and {len(dense.lon)})"
            )

        tag_lists: Iterator[List[Tag]] = (
            self._dense_tags(dense.keys_vals, count) if tags else (list() for _ in range(count))
        )
        infos: Iterator[Optional[Info]] = (
            self._dense_infos(dense.denseinfo, count)
            if info and dense.HasField("denseinfo")
            else repeat(None)
        )

        with _context("dense nodes"):
            for id, lat, lon, node_tags, node_info in zip(
                decode_deltas(dense.id),
                decode_deltas(dense.lat),
                decode_deltas(dense.lon),
                tag_lists,
                infos,
            ):
                yield Node(
                    id=id,
                    lat=self.scale.lat(lat),
                    lon=self.scale.lon(lon),
                    tags=node_tags,
                    info=node_info,
                )

    def way(
        self,
        way: osmformat_pb2.Way,
        tags: bool = True,
        info: bool = True,
        refs: bool = True,
    ) -> Way:
        with _context(f"way {way.id}"):
            return Way(
                id=way.id,
                refs=list(decode_deltas(way.refs)) if refs else [],
                tags=self.tags(way.keys, way.vals) if tags else [],
                info=self.info(way.info) if info and way.HasField("info") else None,
            )

    def relation(
        self,
        relation: osmformat_pb2.Relation,
        tags: bool = True,
        info: bool = True,
        members: bool = True,
    ) -> Relation:
        with _context(f"relation {relation.id}"):
            return Relation(
                id=relation.id,
                members=self.members(relation) if members else [],
                tags=self.tags(relation.keys, relation.vals) if tags else [],
                info=self.info(relation.info) if info and relation.HasField("info") else None,
            )

    def tags(self, keys: Sequence[int], vals: Sequence[int]) -> List[Tag]:
        """tags resolves positional key-value string index pairs of a plain node, way or relation."""
        if len(keys) != len(vals):
            raise DecodeError(f"keys and vals have different lengths ({len(keys)} and {len(vals)})")

        tags: List[Tag] = []
        for key_sid, val_sid in zip(keys, vals):
            key = self.strings.resolve(key_sid)
            if key not in self.skip_tag_keys:
                tags.append((key, self.strings.resolve(val_sid)))
        return tags

    def info(self, info: osmformat_pb2.Info) -> Info:
        """info converts the non-delta-coded metadata of a plain node, way or relation."""
        return Info(
            version=info.version if info.HasField("version") else None,
            timestamp=self.scale.timestamp(info.timestamp) if info.HasField("timestamp") else None,
            uid=info.uid if info.HasField("uid") else None,
            user=self.strings.resolve(info.user_sid) if info.HasField("user_sid") else None,
            visible=info.visible if info.HasField("visible") else None,
        )

    def members(self, relation: osmformat_pb2.Relation) -> List[RelationMember]:
        """members decodes the memids, types and roles_sid arrays of a relation in lock-step."""
        count = len(relation.memids)
        if len(relation.types) != count or len(relation.roles_sid) != count:
            raise DecodeError(
                f"memids, types and roles_sid have different lengths "
                f"({count}, {len(relation.types)} and {len(relation.roles_sid)})"
            )

        members: List[RelationMember] = []
        for i, (ref, type, role_sid) in enumerate(
            zip(decode_deltas(relation.memids), relation.types, relation.roles_sid)
        ):
            with _context(f"member #{i}"):
                members.append(
                    RelationMember(
                        type=self._parse_member_type(type),
                        ref=ref,
                        role=self.strings.resolve(role_sid),
                    )
                )
        return members

    def _dense_tags(self, keys_vals: Sequence[int], count: int) -> Iterator[List[Tag]]:
        # No tags on any node
        if not keys_vals:
            for _ in range(count):
                yield []
            return

        if count == 0:
            raise DecodeError("keys_vals present in a dense block without nodes")

        idx = 0
        end = len(keys_vals)
        for node_idx in range(count):
            tags: List[Tag] = []

            while True:
                if idx >= end:
                    raise DecodeError(
                        f"keys_vals has {node_idx} sentinels, but there are {count} nodes"
                    )

                key_sid = keys_vals[idx]
                if key_sid == 0:
                    idx += 1
                    break

                if idx + 1 >= end:
                    raise DecodeError(f"keys_vals ends with a key without a value (node #{node_idx})")

                val_sid = keys_vals[idx + 1]
                idx += 2

                with _context(f"node #{node_idx}"):
                    key = self.strings.resolve(key_sid)
                    if key not in self.skip_tag_keys:
                        tags.append((key, self.strings.resolve(val_sid)))

            if node_idx == count - 1 and idx != end:
                raise DecodeError(
                    f"keys_vals has data after the last of {count} sentinels "
                    f"({end - idx} extra entries)"
                )

            yield tags

    def _dense_infos(self, dense_info: osmformat_pb2.DenseInfo, count: int) -> Iterator[Info]:
        versions = self._dense_column(dense_info.version, count, "version")
        timestamps = self._dense_column(dense_info.timestamp, count, "timestamp")
        uids = self._dense_column(dense_info.uid, count, "uid")
        user_sids = self._dense_column(dense_info.user_sid, count, "user_sid")

        visibles: Iterator[bool]
        if not dense_info.visible:
            # Absent visible column - all nodes are visible
            visibles = repeat(True)
        elif len(dense_info.visible) != count:
            raise DecodeError(
                f"denseinfo.visible has {len(dense_info.visible)} entries, "
                f"but there are {count} nodes"
            )
        else:
            visibles = iter(dense_info.visible)

        for node_idx, (version, timestamp, uid, user_sid, visible) in enumerate(
            zip(versions, timestamps, uids, user_sids, visibles)
        ):
            with _context(f"node #{node_idx}"):
                yield Info(
                    version=version,
                    timestamp=self.scale.timestamp(timestamp) if timestamp is not None else None,
                    uid=uid,
                    user=self.strings.resolve(user_sid) if user_sid is not None else None,
                    visible=visible,
                )

    @staticmethod
    def _dense_column(column: Sequence[int], count: int, name: str) -> Iterator[Optional[int]]:
        if not column:
            return repeat(None)
        elif len(column) != count:
            raise DecodeError(f"denseinfo.{name} has {len(column)} entries, but there are {count} nodes")
        return decode_deltas(column)

    @staticmethod
    def _parse_member_type(t: int) -> MemberType:
        if t < 0 or t >= len(_MEMBER_TYPES):
            raise DecodeError(f"unknown member type {t}")
        return _MEMBER_TYPES[t]


def header_pairs(header: osmformat_pb2.HeaderBlock) -> List[Tuple[str, HeaderValue]]:
    """header_pairs flattens a :py:class:`osmformat_pb2.HeaderBlock` into ordered
    key-value pairs. Bounding box coordinates are kept in raw nanodegrees."""
    pairs: List[Tuple[str, HeaderValue]] = []

    if header.HasField("bbox"):
        pairs.append(("bbox_left", header.bbox.left))
        pairs.append(("bbox_right", header.bbox.right))
        pairs.append(("bbox_top", header.bbox.top))
        pairs.append(("bbox_bottom", header.bbox.bottom))

    pairs.extend(("required_feature", feature) for feature in header.required_features)
    pairs.extend(("optional_feature", feature) for feature in header.optional_features)

    if header.HasField("writingprogram"):
        pairs.append(("writing_program", header.writingprogram))
    if header.HasField("source"):
        pairs.append(("source", header.source))
    if header.HasField("osmosis_replication_timestamp"):
        pairs.append(("osmosis_replication_timestamp", header.osmosis_replication_timestamp))
    if header.HasField("osmosis_replication_sequence_number"):
        pairs.append(
            ("osmosis_replication_sequence_number", header.osmosis_replication_sequence_number)
        )
    if header.HasField("osmosis_replication_base_url"):
        pairs.append(("osmosis_replication_base_url", header.osmosis_replication_base_url))

    return pairs
