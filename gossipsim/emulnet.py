"""An emulated network that carries messages between simulated nodes."""

from __future__ import annotations

import os
import random
from collections import Counter
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Union

from .member import ADDRESS_SIZE, Address
from .params import Params

MAX_NODES = 1000
MAX_TIME = 3600
ENBUFFSIZE = 30000

# Size of the envelope header: a 4-byte length plus source and destination.
ENVELOPE_HEADER_SIZE = 4 + 2 * ADDRESS_SIZE

# Node whose counts are written one line per time step in the count report.
_SPECIAL_NODE = 67

DEFAULT_COUNT_LOG = "msgcount.log"


@dataclass(frozen=True)
class Envelope:
    """A message in flight: who sent it, who it is for, and its payload."""

    source: Address
    destination: Address
    data: bytes


class EmulNet:
    """A shared buffer of messages that every node sends to and receives from."""

    def __init__(self, params: Params, rng: Optional[random.Random] = None) -> None:
        self._params = params
        self._rng = rng if rng is not None else random.Random()
        self._next_id = 1
        self._buffer: List[Envelope] = []
        self._sent: Counter = Counter()
        self._received: Counter = Counter()

    @property
    def pending(self) -> int:
        """Number of messages waiting in the network buffer."""
        return len(self._buffer)

    def init_address(self) -> Address:
        """Hand out the next free node address."""
        address = Address(self._next_id, 0)
        self._next_id += 1
        return address

    def _checked_slot(self, node_id: int) -> Tuple[int, int]:
        time = self._params.current_time()
        if not 0 <= node_id <= MAX_NODES:
            raise ValueError(f"node id {node_id} outside 0..{MAX_NODES}")
        if not 0 <= time < MAX_TIME:
            raise ValueError(f"time {time} outside 0..{MAX_TIME - 1}")
        return node_id, time

    def send(self, source: Address, destination: Address, data: bytes) -> int:
        """Queue a message; return its size, or 0 if it was dropped."""
        roll = self._rng.randrange(100)
        payload = bytes(data)
        params = self._params
        if (
            len(self._buffer) >= ENBUFFSIZE
            or len(payload) + ENVELOPE_HEADER_SIZE >= params.max_msg_size
            or (params.dropmsg and roll < int(params.msg_drop_prob * 100))
        ):
            return 0
        slot = self._checked_slot(source.node_id)
        self._buffer.append(Envelope(source, destination, payload))
        self._sent[slot] += 1
        return len(payload)

    def receive(self, address: Address, enqueue: Callable[[bytes], object]) -> int:
        """Hand every message addressed to ``address`` to ``enqueue``.

        Messages are taken from the newest to the oldest; each one removed is
        replaced by the last message in the buffer. Returns how many were
        delivered.
        """
        slot = self._checked_slot(address.node_id)
        buffer = self._buffer
        delivered = 0
        for index in reversed(range(len(buffer))):
            envelope = buffer[index]
            if envelope.destination != address:
                continue
            buffer[index] = buffer[-1]
            buffer.pop()
            enqueue(envelope.data)
            self._received[slot] += 1
            delivered += 1
        return delivered

    def message_counts(self, node_id: int) -> List[Tuple[int, int]]:
        """(sent, received) counts of a node for each time step so far."""
        return [
            (self._sent[(node_id, time)], self._received[(node_id, time)])
            for time in range(self._params.current_time())
        ]

    def render_counts(self) -> str:
        """The per-node message count report."""
        lines: List[str] = []
        for node_id in range(1, self._params.en_gpsz + 1):
            parts = [f"node {node_id:3d} "]
            counts = self.message_counts(node_id)
            for time, (sent, received) in enumerate(counts):
                if node_id != _SPECIAL_NODE:
                    parts.append(f" ({sent:4d}, {received:4d})")
                    if time % 10 == 9:
                        parts.append("\n         ")
                else:
                    parts.append(f"special {time:4d} {sent:4d} {received:4d}\n")
            sent_total = sum(sent for sent, _ in counts)
            recv_total = sum(received for _, received in counts)
            parts.append("\n")
            parts.append(
                f"node {node_id:3d} sent_total {sent_total:6d}  recv_total {recv_total:6d}\n\n"
            )
            lines.append("".join(parts))
        return "".join(lines)

    def cleanup(self, path: Union[str, "os.PathLike[str]"] = DEFAULT_COUNT_LOG) -> str:
        """Discard undelivered messages and write the count report to ``path``."""
        self._next_id = 0
        self._buffer.clear()
        report = self.render_counts()
        with open(path, "w", encoding="utf-8") as handle:
            handle.write(report)
        return report