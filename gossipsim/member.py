"""Node addresses, membership-list entries and per-member state."""

from __future__ import annotations

import struct
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Iterator, List

_ADDRESS_FORMAT = "<ih"
ADDRESS_SIZE = struct.calcsize(_ADDRESS_FORMAT)


def _to_short(value: int) -> int:
    """Wrap an integer into the signed 16-bit range."""
    value &= 0xFFFF
    return value - 0x10000 if value >= 0x8000 else value


@dataclass(frozen=True)
class Address:
    """The address of one node: a numeric identifier and a port."""

    node_id: int = 0
    port: int = 0

    @classmethod
    def parse(cls, text: str) -> "Address":
        """Build an address from its ``"id:port"`` form."""
        head, sep, tail = text.partition(":")
        if not sep:
            raise ValueError(f"address {text!r} has no ':' separator")
        try:
            node_id = int(head.strip())
            port = int(tail.strip())
        except ValueError as exc:
            raise ValueError(f"malformed address {text!r}") from exc
        return cls(node_id, _to_short(port))

    @classmethod
    def null(cls) -> "Address":
        """The all-zero address."""
        return cls(0, 0)

    def is_null(self) -> bool:
        """True if every byte of the address is zero."""
        return self.to_bytes() == bytes(ADDRESS_SIZE)

    def to_bytes(self) -> bytes:
        """The six-byte wire form: a little-endian int then a short."""
        return struct.pack(_ADDRESS_FORMAT, self.node_id, _to_short(self.port))

    @classmethod
    def from_bytes(cls, data: bytes) -> "Address":
        """Decode the six-byte wire form."""
        if len(data) < ADDRESS_SIZE:
            raise ValueError(f"address needs {ADDRESS_SIZE} bytes, got {len(data)}")
        node_id, port = struct.unpack_from(_ADDRESS_FORMAT, data)
        return cls(node_id, port)

    @property
    def dotted(self) -> str:
        """The address as four signed bytes and a port, e.g. ``1.0.0.0:0``."""
        raw = self.to_bytes()
        octets = struct.unpack("<4b", raw[:4])
        return "{}.{}.{}.{}:{}".format(*octets, _to_short(self.port))

    def __str__(self) -> str:
        return f"{self.node_id}:{self.port}"


@dataclass
class MemberListEntry:
    """One row of a node's membership list."""

    node_id: int = 0
    port: int = 0
    heartbeat: int = 0
    timestamp: int = 0

    def same_node(self, node_id: int, port: int) -> bool:
        """True if this entry describes the node with the given id and port."""
        return self.node_id == node_id and self.port == port

    @property
    def address(self) -> Address:
        return Address(self.node_id, self.port)


@dataclass
class Member:
    """The state one member keeps about itself and the group."""

    address: Address = field(default_factory=Address.null)
    inited: bool = False
    in_group: bool = False
    failed: bool = False
    nnb: int = 0
    heartbeat: int = 0
    ping_counter: int = 0
    timeout_counter: int = 0
    member_list: List[MemberListEntry] = field(default_factory=list)
    queue: Deque[bytes] = field(default_factory=deque)

    def enqueue(self, payload: bytes) -> bool:
        """Append a received message to the back of the queue."""
        self.queue.append(bytes(payload))
        return True

    def drain(self) -> Iterator[bytes]:
        """Yield and remove queued messages, oldest first, until none are left."""
        while self.queue:
            yield self.queue.popleft()