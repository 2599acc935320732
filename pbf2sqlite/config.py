# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Mapping, Union

from typing_extensions import Self

from .err import ConfigError

if sys.version_info < (3, 11):
    import tomli as tomllib
else:
    import tomllib

TABLE_NAMES = (
    "header",
    "nodes",
    "node_info",
    "node_tags",
    "ways",
    "way_info",
    "way_refs",
    "way_tags",
    "relations",
    "relation_info",
    "relation_members",
    "relation_tags",
)
"""TABLE_NAMES lists all tables which can be configured."""


@dataclass
class TableConfig:
    """TableConfig controls whether and how a single table is created."""

    skip: bool = False
    """skip prevents the table (and all tables depending on it) from being created."""

    create_index_on: List[str] = field(default_factory=list)
    """create_index_on lists indexes to create, each as comma-separated column names,
    e.g. ``"node_id, key"``."""

    @classmethod
    def from_dict(cls, name: str, d: Any) -> Self:
        if not isinstance(d, Mapping):
            raise ConfigError(f"[{name}] must be a table")

        unknown_keys = set(d) - {"skip", "create_index_on"}
        if unknown_keys:
            raise ConfigError(f"[{name}] has unknown keys: {', '.join(sorted(unknown_keys))}")

        skip = d.get("skip", False)
        if not isinstance(skip, bool):
            raise ConfigError(f"[{name}] skip must be a boolean")

        create_index_on = d.get("create_index_on", [])
        if not isinstance(create_index_on, list) or not all(
            isinstance(i, str) for i in create_index_on
        ):
            raise ConfigError(f"[{name}] create_index_on must be a list of strings")

        return cls(skip=skip, create_index_on=create_index_on)


@dataclass
class Config:
    """Config holds all options of a single load."""

    input_pbf: Path
    output_db: Path
    overwrite_output: bool = False
    skip_tag_keys: FrozenSet[str] = frozenset()
    """skip_tag_keys contains tag keys which are not written to any of the ``*_tags`` tables."""

    tables: Dict[str, TableConfig] = field(default_factory=dict)

    def table(self, name: str) -> TableConfig:
        """table returns the configuration of a table. Tables without explicit
        configuration get the default :py:class:`TableConfig`."""
        if name not in TABLE_NAMES:
            raise KeyError(name)
        return self.tables.get(name) or TableConfig()

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> Self:
        unknown_keys = set(d) - {"input_pbf", "output_db", "overwrite_output", "skip_tag_keys"}
        unknown_keys.difference_update(TABLE_NAMES)
        if unknown_keys:
            raise ConfigError(f"unknown configuration keys: {', '.join(sorted(unknown_keys))}")

        for required in ("input_pbf", "output_db"):
            if required not in d:
                raise ConfigError(f"missing required key: {required}")
            elif not isinstance(d[required], str):
                raise ConfigError(f"{required} must be a string")

        overwrite_output = d.get("overwrite_output", False)
        if not isinstance(overwrite_output, bool):
            raise ConfigError("overwrite_output must be a boolean")

        skip_tag_keys = d.get("skip_tag_keys", [])
        if not isinstance(skip_tag_keys, list) or not all(isinstance(k, str) for k in skip_tag_keys):
            raise ConfigError("skip_tag_keys must be a list of strings")

        return cls(
            input_pbf=Path(d["input_pbf"]),
            output_db=Path(d["output_db"]),
            overwrite_output=overwrite_output,
            skip_tag_keys=frozenset(skip_tag_keys),
            tables={name: TableConfig.from_dict(name, d[name]) for name in TABLE_NAMES if name in d},
        )

    @classmethod
    def from_toml(cls, text: str) -> Self:
        try:
            d = tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"invalid TOML: {e}") from e
        return cls.from_dict(d)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> Self:
        """from_file reads the configuration from a TOML file.
        Any problems are reported with :py:exc:`ConfigError`."""
        try:
            with open(path, "rb") as f:
                d = tomllib.load(f)
        except OSError as e:
            raise ConfigError(f"Failed to read configuration from {str(path)!r}: {e}") from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Failed to parse configuration from {str(path)!r}: {e}") from e
        return cls.from_dict(d)
