# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

import sqlite3
from pathlib import Path
from typing import Dict, List
from unittest import TestCase

from . import schema
from .config import Config, TableConfig
from .db import Database
from .err import ConfigError


def config_with(**tables: TableConfig) -> Config:
    return Config(Path("in.osm.pbf"), Path("out.db"), tables=tables)


def table_names(conn: sqlite3.Connection) -> List[str]:
    return [r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table' ORDER BY name")]


def index_names(conn: sqlite3.Connection) -> Dict[str, str]:
    return dict(
        conn.execute("SELECT name, tbl_name FROM sqlite_master WHERE type = 'index' AND sql IS NOT NULL")
    )


class TestActiveTables(TestCase):
    def test_all_active_by_default(self) -> None:
        self.assertListEqual(
            [t.name for t in schema.active_tables(config_with())],
            [t.name for t in schema.TABLES],
        )

    def test_skipped_parent_disables_children(self) -> None:
        active = [t.name for t in schema.active_tables(config_with(ways=TableConfig(skip=True)))]
        self.assertNotIn("ways", active)
        self.assertNotIn("way_tags", active)
        self.assertNotIn("way_info", active)
        self.assertNotIn("way_refs", active)
        self.assertIn("nodes", active)
        self.assertIn("relation_members", active)

    def test_skipped_child(self) -> None:
        config = config_with(node_info=TableConfig(skip=True))
        self.assertFalse(schema.is_active(schema.TABLES_BY_NAME["node_info"], config))
        self.assertTrue(schema.is_active(schema.TABLES_BY_NAME["nodes"], config))
        self.assertTrue(schema.is_active(schema.TABLES_BY_NAME["node_tags"], config))

    def test_parents_before_children(self) -> None:
        seen = set()
        for table in schema.TABLES:
            if table.parent is not None:
                self.assertIn(table.parent, seen)
            seen.add(table.name)


class TestStatements(TestCase):
    def test_insert_sql(self) -> None:
        self.assertEqual(
            schema.TABLES_BY_NAME["way_refs"].insert_sql(),
            "INSERT INTO way_refs (way_id, ref_node_id) VALUES (?, ?)",
        )

    def test_index_statements(self) -> None:
        self.assertListEqual(
            schema.index_statements(
                schema.TABLES_BY_NAME["node_tags"],
                TableConfig(create_index_on=["node_id, key", "value"]),
            ),
            [
                "CREATE INDEX node_tags_node_id_key ON node_tags (node_id, key)",
                "CREATE INDEX node_tags_value ON node_tags (value)",
            ],
        )

    def test_validate_indexes(self) -> None:
        schema.validate_indexes(config_with(node_tags=TableConfig(create_index_on=["node_id,key"])))

        with self.assertRaisesRegex(ConfigError, "tag_key"):
            schema.validate_indexes(config_with(node_tags=TableConfig(create_index_on=["tag_key"])))

        with self.assertRaises(ConfigError):
            schema.validate_indexes(config_with(nodes=TableConfig(create_index_on=["lat,"])))


class TestBuildSchema(TestCase):
    def test(self) -> None:
        config = config_with(
            relations=TableConfig(skip=True),
            way_info=TableConfig(skip=True),
            node_tags=TableConfig(create_index_on=["node_id, key"]),
            way_refs=TableConfig(create_index_on=["ref_node_id"]),
        )

        with Database(sqlite3.connect(":memory:")) as db:
            schema.build_schema(db, config)

            self.assertListEqual(
                table_names(db.conn),
                [
                    "header",
                    "node_info",
                    "node_tags",
                    "nodes",
                    "way_refs",
                    "way_tags",
                    "ways",
                ],
            )
            self.assertDictEqual(
                index_names(db.conn),
                {"node_tags_node_id_key": "node_tags", "way_refs_ref_node_id": "way_refs"},
            )
            self.assertFalse(db.conn.in_transaction)
