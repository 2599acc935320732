# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

import argparse
import logging
from typing import List, Optional

from .config import Config
from .err import Pbf2SqliteError
from .loader import load

logger = logging.getLogger("pbf2sqlite")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="pbf2sqlite",
        description="Convert an OpenStreetMap PBF file into a SQLite database",
    )
    parser.add_argument(
        "config",
        nargs="?",
        default="config.toml",
        help="path to the TOML configuration file, default '%(default)s'",
    )
    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="replace the output database if it exists, regardless of overwrite_output",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="log every processed block")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="only log warnings and errors")
    args = parser.parse_args(argv)

    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        config = Config.from_file(args.config)
        if args.overwrite:
            config.overwrite_output = True
        load(config)
    except Pbf2SqliteError as e:
        logger.error("%s", e)
        return 1

    return 0
