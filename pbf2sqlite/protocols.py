# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

from typing import TYPE_CHECKING, Optional, Protocol, Tuple

if TYPE_CHECKING:
    from .decode import Info

Tag = Tuple[str, str]
"""Tag is a single key-value pair attached to an OpenStreetMap feature."""


class OsmPrimitive(Protocol):
    """OsmPrimitive describes any decoded OpenStreetMap feature -
    a node (plain or dense), a way or a relation.
    Used to write ``*_info`` rows with a single routine for every feature kind.
    """

    @property
    def id(self) -> int:
        """id of the feature, unique among features of the same kind."""
        ...

    @property
    def info(self) -> "Optional[Info]":
        """info returns the metadata of the feature, or ``None`` if the block
        didn't carry metadata or it wasn't requested from the decoder.
        """
        ...
