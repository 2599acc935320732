# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

"""Convert OpenStreetMap PBF files into SQLite databases"""

__title__ = "pbf2sqlite"
__description__ = "Convert OpenStreetMap PBF files into SQLite databases"
__author__ = "Mikołaj Kuranowski"
__copyright__ = "© Copyright 2024 Mikołaj Kuranowski"
__license__ = "GPL-3.0-or-later"
__version__ = "1.0.0"
__email__ = "mkuranowski+pypackages@gmail.com"

from . import protocols
from .blocks import Block, BlockReader, UnknownBlock, encode_block
from .config import TABLE_NAMES, Config, TableConfig
from .decode import (
    BlockDecoder,
    BlockScale,
    Info,
    Node,
    Relation,
    RelationMember,
    StringTable,
    Way,
    decode_deltas,
    header_pairs,
)
from .err import (
    ConfigError,
    DecodeError,
    FramingError,
    PathError,
    Pbf2SqliteError,
    StorageError,
)
from .loader import Loader, LoadState, RowRouter, load

__all__ = [
    "Block",
    "BlockDecoder",
    "BlockReader",
    "BlockScale",
    "Config",
    "ConfigError",
    "decode_deltas",
    "DecodeError",
    "encode_block",
    "FramingError",
    "header_pairs",
    "Info",
    "load",
    "Loader",
    "LoadState",
    "Node",
    "PathError",
    "Pbf2SqliteError",
    "protocols",
    "Relation",
    "RelationMember",
    "RowRouter",
    "StorageError",
    "StringTable",
    "TABLE_NAMES",
    "TableConfig",
    "UnknownBlock",
    "Way",
]
