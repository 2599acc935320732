# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

from enum import Enum
from logging import getLogger
from typing import IO, Dict, Iterable, Optional

from . import schema
from .blocks import Block, BlockReader, UnknownBlock
from .config import Config
from .db import Database, Statement
from .decode import BlockDecoder, header_pairs
from .err import DecodeError, FramingError, PathError, StorageError
from .pbf import osmformat_pb2
from .protocols import OsmPrimitive, Tag

logger = getLogger("pbf2sqlite.loader")


class RowRouter:
    """RowRouter writes rows decoded from blocks into the active tables.

    Which tables are active is decided once, at construction; statements for
    inactive tables are never prepared, and data needed only by inactive tables
    is not requested from the :py:class:`BlockDecoder`.

    Within every primitive group, nodes are written first, followed by ways,
    followed by relations, all in the order they appear in the group.
    """

    def __init__(self, db: Database, config: Config) -> None:
        self.config = config
        self.statements: Dict[str, Statement] = {
            table.name: db.prepare(table.insert_sql()) for table in schema.active_tables(config)
        }

    def row_counts(self) -> Dict[str, int]:
        return {name: stmt.rows for name, stmt in self.statements.items()}

    def process_header(self, header: osmformat_pb2.HeaderBlock) -> None:
        insert = self.statements.get("header")
        if insert is None:
            logger.debug("Skipping HeaderBlock - header table is not created")
            return

        for key, value in header_pairs(header):
            insert.execute((key, value))

    def process_primitive(self, block: osmformat_pb2.PrimitiveBlock) -> None:
        decoder = BlockDecoder(block, self.config.skip_tag_keys)
        for group in block.primitivegroup:
            self._process_nodes(decoder, group)
            self._process_ways(decoder, group)
            self._process_relations(decoder, group)

    def _process_nodes(self, decoder: BlockDecoder, group: osmformat_pb2.PrimitiveGroup) -> None:
        insert_node = self.statements.get("nodes")
        if insert_node is None:
            return

        insert_tag = self.statements.get("node_tags")
        insert_info = self.statements.get("node_info")

        for node in decoder.nodes(group, tags=insert_tag is not None, info=insert_info is not None):
            insert_node.execute((node.id, node.lat, node.lon))
            self._insert_tags(node.id, node.tags, insert_tag)
            self._insert_info(node, insert_info)

    def _process_ways(self, decoder: BlockDecoder, group: osmformat_pb2.PrimitiveGroup) -> None:
        insert_way = self.statements.get("ways")
        if insert_way is None:
            return

        insert_tag = self.statements.get("way_tags")
        insert_info = self.statements.get("way_info")
        insert_ref = self.statements.get("way_refs")

        for msg in group.ways:
            way = decoder.way(
                msg,
                tags=insert_tag is not None,
                info=insert_info is not None,
                refs=insert_ref is not None,
            )

            insert_way.execute((way.id,))
            self._insert_tags(way.id, way.tags, insert_tag)
            self._insert_info(way, insert_info)

            if insert_ref is not None:
                for node_id in way.refs:
                    insert_ref.execute((way.id, node_id))

    def _process_relations(
        self,
        decoder: BlockDecoder,
        group: osmformat_pb2.PrimitiveGroup,
    ) -> None:
        insert_relation = self.statements.get("relations")
        if insert_relation is None:
            return

        insert_tag = self.statements.get("relation_tags")
        insert_info = self.statements.get("relation_info")
        insert_member = self.statements.get("relation_members")

        for msg in group.relations:
            relation = decoder.relation(
                msg,
                tags=insert_tag is not None,
                info=insert_info is not None,
                members=insert_member is not None,
            )

            insert_relation.execute((relation.id,))
            self._insert_tags(relation.id, relation.tags, insert_tag)
            self._insert_info(relation, insert_info)

            if insert_member is not None:
                for member in relation.members:
                    insert_member.execute(
                        (
                            relation.id,
                            member.node_id,
                            member.way_id,
                            member.relation_id,
                            member.role,
                        )
                    )

    @staticmethod
    def _insert_tags(id: int, tags: Iterable[Tag], insert: Optional[Statement]) -> None:
        if insert is not None:
            for key, value in tags:
                insert.execute((id, key, value))

    @staticmethod
    def _insert_info(primitive: OsmPrimitive, insert: Optional[Statement]) -> None:
        info = primitive.info
        if insert is not None and info is not None:
            insert.execute(
                (primitive.id, info.version, info.timestamp, info.uid, info.user, info.visible)
            )


class LoadState(Enum):
    """LoadState describes the progress of a :py:class:`Loader`."""

    IDLE = 0
    SCHEMA_BUILDING = 1
    LOADING = 2
    COMMITTED = 3
    FAILED = 4


class Loader:
    """Loader converts a single OSM PBF file into a new SQLite database.

    The schema is created and committed first. Afterwards all blocks are loaded
    inside a single transaction, which is committed only after the whole input was read.

    Blocks which can't be framed or parsed (:py:exc:`FramingError`) and blocks of unknown
    types are reported through the ``pbf2sqlite.loader`` logger and skipped.
    Invalid content of a parsed block (:py:exc:`DecodeError`) and database errors
    (:py:exc:`StorageError`) abort the load - nothing from the loading transaction
    is committed.
    """

    def __init__(self, config: Config) -> None:
        self.config = config
        self.state = LoadState.IDLE
        self.row_counts: Dict[str, int] = {}

    def run(self) -> Dict[str, int]:
        """run performs the load and returns the number of rows written to every active table."""
        if self.state is not LoadState.IDLE:
            raise RuntimeError(f"Loader can only be run once (state: {self.state.name})")

        try:
            schema.validate_indexes(self.config)
            with self._open_input() as input_pbf:
                self._prepare_output()
                with Database.open(self.config.output_db) as db:
                    self.state = LoadState.SCHEMA_BUILDING
                    schema.build_schema(db, self.config)
                    logger.info("Created %d tables", len(schema.active_tables(self.config)))

                    db.configure_bulk_load()

                    self.state = LoadState.LOADING
                    self._load(db, input_pbf)
                    self.state = LoadState.COMMITTED
        except BaseException:
            self.state = LoadState.FAILED
            raise

        return self.row_counts

    def _open_input(self) -> IO[bytes]:
        try:
            return open(self.config.input_pbf, "rb")
        except OSError as e:
            raise PathError(f"Failed to open input PBF {str(self.config.input_pbf)!r}: {e}") from e

    def _prepare_output(self) -> None:
        output = self.config.output_db
        if not output.exists():
            return
        elif not self.config.overwrite_output:
            raise PathError(
                f"Output database {str(output)!r} already exists (set overwrite_output to replace it)"
            )

        try:
            output.unlink()
        except OSError as e:
            raise PathError(f"Failed to remove {str(output)!r}: {e}") from e

    def _load(self, db: Database, input_pbf: IO[bytes]) -> None:
        reader = BlockReader(input_pbf)

        with db.transaction():
            router = RowRouter(db, self.config)
            block_number = 0

            while True:
                try:
                    block = reader.read_block()
                except FramingError as e:
                    block_number += 1
                    logger.warning("Skipping block #%d: %s", block_number, e)
                    continue

                if block is None:
                    break

                block_number += 1
                try:
                    self._process_block(router, block, block_number)
                except (DecodeError, StorageError) as e:
                    raise type(e)(f"block #{block_number}: {e}") from e

            self.row_counts = router.row_counts()

        logger.info(
            "Loaded %d blocks: %s",
            block_number,
            ", ".join(f"{name}={count}" for name, count in self.row_counts.items()),
        )

    @staticmethod
    def _process_block(router: RowRouter, block: Block, block_number: int) -> None:
        if isinstance(block, osmformat_pb2.HeaderBlock):
            logger.debug("Block #%d: HeaderBlock", block_number)
            router.process_header(block)
        elif isinstance(block, osmformat_pb2.PrimitiveBlock):
            logger.debug("Block #%d: PrimitiveBlock", block_number)
            router.process_primitive(block)
        elif isinstance(block, UnknownBlock):
            logger.info(
                "Skipping block #%d of unknown type %r (%d bytes)",
                block_number,
                block.type,
                block.size,
            )


def load(config: Config) -> Dict[str, int]:
    """load converts ``config.input_pbf`` into a new SQLite database at ``config.output_db``.
    Returns the number of rows written to every active table."""
    return Loader(config).run()
