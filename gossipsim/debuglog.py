"""Debug and statistics log files written during a simulation."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, TextIO, Union

from .member import Address
from .params import Params

MAGIC_NUMBER = "CS425"
DBG_LOG = "dbg.log"
STATS_LOG = "stats.log"
STATS_PREFIX = "#STATSLOG#"


class DebugLog:
    """Writes timestamped lines tagged with a node address to two log files."""

    def __init__(
        self,
        params: Params,
        directory: Union[str, "os.PathLike[str]"] = ".",
    ) -> None:
        self._params = params
        self._directory = Path(directory)
        self._debug: Optional[TextIO] = None
        self._stats: Optional[TextIO] = None
        self._prefix = ""
        self._magic_written = False

    @property
    def debug_path(self) -> Path:
        return self._directory / DBG_LOG

    @property
    def stats_path(self) -> Path:
        return self._directory / STATS_LOG

    def _open(self) -> bool:
        """Open both files if they are not yet open; True if just opened."""
        if self._debug is not None:
            return False
        self._debug = open(self.debug_path, "w", encoding="utf-8")
        self._stats = open(self.stats_path, "w", encoding="utf-8")
        return True

    def log(self, address: Address, message: str) -> None:
        """Write ``message`` for the node at ``address``.

        Messages beginning with ``#STATSLOG#`` go to the statistics log.
        The address tag is taken up only once the files are open, so the
        very first line carries an empty tag.
        """
        if not self._open():
            self._prefix = f"{address.dotted} "
        assert self._debug is not None and self._stats is not None

        if not self._magic_written:
            magic = sum(ord(char) for char in MAGIC_NUMBER)
            self._debug.write(f"{magic:x}\n")
            self._magic_written = True

        target = self._stats if message.startswith(STATS_PREFIX) else self._debug
        target.write(f"\n {self._prefix}")
        target.write(f"[{self._params.current_time()}] ")
        target.write(message)
        self._debug.flush()
        self._stats.flush()

    def log_node_add(self, this_node: Address, added: Address) -> None:
        """Record that ``this_node`` learned of ``added`` joining."""
        self.log(
            this_node,
            f"Node {added.dotted} joined at time {self._params.current_time()}",
        )

    def log_node_remove(self, this_node: Address, removed: Address) -> None:
        """Record that ``this_node`` removed ``removed`` from its list."""
        self.log(
            this_node,
            f"Node {removed.dotted} removed at time {self._params.current_time()}",
        )

    def close(self) -> None:
        """Close both files, if open."""
        for handle in (self._debug, self._stats):
            if handle is not None:
                handle.close()
        self._debug = None
        self._stats = None

    def __enter__(self) -> "DebugLog":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()