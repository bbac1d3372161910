"""Simulation parameters read from a test-case configuration file."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Union

RING_SIZE = 512
SUCCESS = 0
FAILURE = -1

DEFAULT_PORT = 8001
DEFAULT_STEP_RATE = 0.25
DEFAULT_MAX_MSG_SIZE = 4000

_INT = r"([+-]?\d+)"
_FLOAT = r"([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
_CONFIG_PATTERN = re.compile(
    rf"MAX_NNB:\s*{_INT}"
    rf"\s*SINGLE_FAILURE:\s*{_INT}"
    rf"\s*DROP_MSG:\s*{_INT}"
    rf"\s*MSG_DROP_PROB:\s*{_FLOAT}"
)


class ConfigError(ValueError):
    """Raised when a configuration file cannot be understood."""


@dataclass
class Params:
    """Parameters of one simulation run, plus the global clock."""

    max_nnb: int = 0
    single_failure: bool = False
    drop_msg: bool = False
    msg_drop_prob: float = 0.0
    step_rate: float = DEFAULT_STEP_RATE
    en_gpsz: int = 0
    max_msg_size: int = DEFAULT_MAX_MSG_SIZE
    dropmsg: bool = False
    globaltime: int = 0
    all_nodes_joined: int = 0
    portnum: int = DEFAULT_PORT

    @classmethod
    def parse(cls, text: str) -> "Params":
        """Read parameters from configuration text."""
        match = _CONFIG_PATTERN.match(text)
        if match is None:
            raise ConfigError(
                "expected MAX_NNB, SINGLE_FAILURE, DROP_MSG and MSG_DROP_PROB in order"
            )
        max_nnb = int(match.group(1))
        if max_nnb < 1:
            raise ConfigError(f"MAX_NNB must be at least 1, got {max_nnb}")
        return cls(
            max_nnb=max_nnb,
            single_failure=bool(int(match.group(2))),
            drop_msg=bool(int(match.group(3))),
            msg_drop_prob=float(match.group(4)),
            en_gpsz=max_nnb,
            all_nodes_joined=sum(range(max_nnb)),
        )

    @classmethod
    def from_file(cls, path: Union[str, "os.PathLike[str]"]) -> "Params":
        """Read parameters from a configuration file."""
        with open(path, encoding="utf-8") as handle:
            return cls.parse(handle.read())

    def current_time(self) -> int:
        """The simulated time, in time units since the run started."""
        return self.globaltime