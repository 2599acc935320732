# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

"""Contains errors used by pbf2sqlite"""


class Pbf2SqliteError(Exception):
    """Base for all errors thrown by pbf2sqlite."""

    pass


class ConfigError(Pbf2SqliteError, ValueError):
    """Configuration is unreadable, can't be parsed or has invalid values."""

    pass


class PathError(Pbf2SqliteError):
    """Input file can't be opened, or the output database can't be (re)created."""

    pass


class FramingError(Pbf2SqliteError, ValueError):
    """A blob of the `OSM PBF <https://wiki.openstreetmap.org/wiki/PBF_Format>`_ stream
    is malformed. The affected block is skipped and the load continues."""

    pass


class DecodeError(Pbf2SqliteError, ValueError):
    """Content of a correctly framed block is invalid: a string table index
    is out of range, a string is not valid UTF-8, a member type is unknown,
    or columnar arrays have mismatched lengths. Aborts the load."""

    pass


class StorageError(Pbf2SqliteError):
    """The output database rejected a statement. Aborts the load."""

    pass
