# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .config import Config, TableConfig
from .db import Database
from .err import ConfigError


@dataclass(frozen=True)
class TableDescriptor:
    """TableDescriptor describes a single table of the output database."""

    name: str
    columns: Tuple[Tuple[str, str], ...]
    """columns lists (name, declaration) pairs, in table order."""

    parent: Optional[str] = None
    """parent is the name of the table this table depends on. A table is only created
    if both it and its parent are not skipped."""

    constraints: Tuple[str, ...] = ()

    @property
    def column_names(self) -> List[str]:
        return [name for name, _ in self.columns]

    def create_table_sql(self) -> str:
        definitions = [f"{name} {type}" for name, type in self.columns]
        definitions.extend(self.constraints)
        return f"CREATE TABLE {self.name} (\n    " + ",\n    ".join(definitions) + "\n)"

    def insert_sql(self) -> str:
        placeholders = ", ".join("?" for _ in self.columns)
        return f"INSERT INTO {self.name} ({', '.join(self.column_names)}) VALUES ({placeholders})"


def _tags_table(name: str, parent: str, id_column: str) -> TableDescriptor:
    return TableDescriptor(
        name=name,
        parent=parent,
        columns=((id_column, "INTEGER"), ("key", "TEXT"), ("value", "TEXT")),
        constraints=(f"FOREIGN KEY({id_column}) REFERENCES {parent}(id)",),
    )


def _info_table(name: str, parent: str, id_column: str) -> TableDescriptor:
    return TableDescriptor(
        name=name,
        parent=parent,
        columns=(
            (id_column, "INTEGER"),
            ("version", "INTEGER"),
            ("timestamp", "INTEGER"),
            ("user_id", "INTEGER"),
            ("user", "TEXT"),
            ("visible", "BOOL"),
        ),
        constraints=(f"FOREIGN KEY({id_column}) REFERENCES {parent}(id)",),
    )


TABLES: Tuple[TableDescriptor, ...] = (
    TableDescriptor("header", columns=(("key", "TEXT"), ("value", "TEXT"))),
    TableDescriptor(
        "nodes",
        columns=(("id", "INTEGER PRIMARY KEY"), ("lat", "REAL NOT NULL"), ("lon", "REAL NOT NULL")),
    ),
    _tags_table("node_tags", "nodes", "node_id"),
    _info_table("node_info", "nodes", "node_id"),
    TableDescriptor("ways", columns=(("id", "INTEGER PRIMARY KEY"),)),
    _tags_table("way_tags", "ways", "way_id"),
    _info_table("way_info", "ways", "way_id"),
    TableDescriptor(
        "way_refs",
        parent="ways",
        columns=(("way_id", "INTEGER"), ("ref_node_id", "INTEGER")),
        constraints=(
            "FOREIGN KEY(way_id) REFERENCES ways(id)",
            "FOREIGN KEY(ref_node_id) REFERENCES nodes(id) DEFERRABLE INITIALLY DEFERRED",
        ),
    ),
    TableDescriptor("relations", columns=(("id", "INTEGER PRIMARY KEY"),)),
    TableDescriptor(
        "relation_members",
        parent="relations",
        columns=(
            ("relation_id", "INTEGER"),
            ("member_node_id", "INTEGER"),
            ("member_way_id", "INTEGER"),
            ("member_relation_id", "INTEGER"),
            ("role", "TEXT"),
        ),
        constraints=("FOREIGN KEY(relation_id) REFERENCES relations(id)",),
    ),
    _tags_table("relation_tags", "relations", "relation_id"),
    _info_table("relation_info", "relations", "relation_id"),
)
"""TABLES describes every table of the output database, in creation order.
Parents are always listed before their children."""

TABLES_BY_NAME: Dict[str, TableDescriptor] = {t.name: t for t in TABLES}


def is_active(table: TableDescriptor, config: Config) -> bool:
    """is_active returns True if the table and its parent (if any) are not skipped."""
    if config.table(table.name).skip:
        return False
    return table.parent is None or not config.table(table.parent).skip


def active_tables(config: Config) -> List[TableDescriptor]:
    return [t for t in TABLES if is_active(t, config)]


def parse_index(spec: str) -> List[str]:
    """parse_index splits a comma-separated index specification into column names."""
    return [column.strip() for column in spec.split(",")]


def index_statements(table: TableDescriptor, table_config: TableConfig) -> List[str]:
    """index_statements generates CREATE INDEX statements for a table.
    Index names are built from the table and column names, e.g. ``node_tags_node_id_key``."""
    statements: List[str] = []
    for spec in table_config.create_index_on:
        columns = parse_index(spec)
        statements.append(
            f"CREATE INDEX {table.name}_{'_'.join(columns)} ON {table.name} ({', '.join(columns)})"
        )
    return statements


def validate_indexes(config: Config) -> None:
    """validate_indexes ensures every index refers to existing columns of its table.
    Raises :py:exc:`ConfigError` otherwise."""
    for table in TABLES:
        known_columns = set(table.column_names)
        for spec in config.table(table.name).create_index_on:
            columns = parse_index(spec)
            if not all(columns):
                raise ConfigError(f"[{table.name}] index {spec!r} has an empty column name")

            unknown_columns = [c for c in columns if c not in known_columns]
            if unknown_columns:
                raise ConfigError(
                    f"[{table.name}] index {spec!r} refers to unknown columns: "
                    + ", ".join(unknown_columns)
                )


def schema_statements(config: Config) -> Iterable[str]:
    """schema_statements generates all DDL statements for the active tables:
    first every table is created, then its indexes."""
    for table in active_tables(config):
        yield table.create_table_sql()
        yield from index_statements(table, config.table(table.name))


def build_schema(db: Database, config: Config) -> None:
    """build_schema creates all active tables with their indexes in a single transaction."""
    with db.transaction():
        for sql in schema_statements(config):
            db.execute_ddl(sql)
