"""The gossip-style membership protocol run by each simulated node."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple

from .debuglog import DebugLog
from .emulnet import EmulNet
from .member import ADDRESS_SIZE, Address, Member, MemberListEntry
from .params import SUCCESS, Params

TREMOVE = 20
TFAIL = 5

_HEADER = struct.Struct("<i")
# Address, one unused byte, then the sender's heartbeat as a 64-bit integer.
_ADDRESS_HEARTBEAT = struct.Struct(f"<{ADDRESS_SIZE}sxq")
# id, port, two bytes of padding, heartbeat, timestamp.
_ENTRY = struct.Struct("<ihxxqq")


class MessageType(enum.IntEnum):
    """Kinds of message exchanged by the protocol."""

    JOINREQ = 0
    JOINREP = 1
    HEARTBEAT = 2
    DUMMYLASTMSGTYPE = 3


@dataclass(frozen=True)
class Message:
    """A decoded protocol message."""

    type: MessageType
    address: Optional[Address] = None
    heartbeat: int = 0
    entries: Tuple[MemberListEntry, ...] = field(default_factory=tuple)


def _encode_address_heartbeat(kind: MessageType, address: Address, heartbeat: int) -> bytes:
    return _HEADER.pack(kind) + _ADDRESS_HEARTBEAT.pack(address.to_bytes(), heartbeat)


def encode_join_request(address: Address, heartbeat: int) -> bytes:
    """A request from ``address`` to join the group."""
    return _encode_address_heartbeat(MessageType.JOINREQ, address, heartbeat)


def encode_heartbeat(address: Address, heartbeat: int) -> bytes:
    """A heartbeat announcing that ``address`` is alive."""
    return _encode_address_heartbeat(MessageType.HEARTBEAT, address, heartbeat)


def encode_join_reply(entries: Iterable[MemberListEntry]) -> bytes:
    """A reply to a join request carrying a membership list."""
    body = b"".join(
        _ENTRY.pack(entry.node_id, entry.port, entry.heartbeat, entry.timestamp)
        for entry in entries
    )
    return _HEADER.pack(MessageType.JOINREP) + body


def decode_message(data: bytes) -> Message:
    """Decode a message produced by one of the ``encode_*`` functions."""
    data = bytes(data)
    if len(data) < _HEADER.size:
        raise ValueError(f"message of {len(data)} bytes has no header")
    (raw_type,) = _HEADER.unpack_from(data)
    try:
        kind = MessageType(raw_type)
    except ValueError as exc:
        raise ValueError(f"unknown message type {raw_type}") from exc

    body = data[_HEADER.size:]
    if kind in (MessageType.JOINREQ, MessageType.HEARTBEAT):
        if len(body) < _ADDRESS_HEARTBEAT.size:
            raise ValueError(f"{kind.name} body too short: {len(body)} bytes")
        raw_address, heartbeat = _ADDRESS_HEARTBEAT.unpack_from(body)
        return Message(kind, Address.from_bytes(raw_address), heartbeat)
    if kind is MessageType.JOINREP:
        count = len(body) // _ENTRY.size
        entries = tuple(
            MemberListEntry(*_ENTRY.unpack_from(body, offset * _ENTRY.size))
            for offset in range(count)
        )
        return Message(kind, entries=entries)
    return Message(kind)


def join_address() -> Address:
    """The address of the introducer that every node joins through."""
    return Address(1, 0)


class MembershipNode:
    """One member taking part in the membership protocol."""

    def __init__(
        self,
        member: Member,
        params: Params,
        network: EmulNet,
        log: Optional[DebugLog],
        address: Address,
    ) -> None:
        self.member = member
        self.params = params
        self.network = network
        self.log = log
        self.member.address = address

    @property
    def address(self) -> Address:
        return self.member.address

    def _log(self, message: str) -> None:
        if self.log is not None:
            self.log.log(self.member.address, message)

    def recv_loop(self) -> int:
        """Move messages waiting in the network into this member's queue."""
        if self.member.failed:
            return 0
        return self.network.receive(self.member.address, self.member.enqueue)

    def node_start(self) -> None:
        """Initialise this node and ask to join the group."""
        joinaddr = join_address()
        self.init_this_node()
        self.introduce_self_to_group(joinaddr)

    def init_this_node(self) -> int:
        """Reset this member's state so it can start up."""
        member = self.member
        member.failed = False
        member.inited = True
        member.in_group = False
        member.nnb = 0
        member.heartbeat = 0
        member.ping_counter = TFAIL
        member.timeout_counter = -1
        member.member_list.clear()
        return SUCCESS

    def introduce_self_to_group(self, join_addr: Address) -> bool:
        """Start the group if this is the introducer, else send a join request."""
        member = self.member
        if member.address == join_addr:
            self._log("Starting up group...")
            member.in_group = True
        else:
            self._log("Trying to join...")
            self.network.send(
                member.address,
                join_addr,
                encode_join_request(member.address, member.heartbeat),
            )
        return True

    def finish_up_this_node(self) -> int:
        """Wind this node up: drop queued messages and leave the group."""
        self.member.queue.clear()
        self.member.in_group = False
        self.member.inited = False
        return SUCCESS

    def node_loop(self) -> None:
        """Handle queued messages and, once in the group, do periodic duties."""
        if self.member.failed:
            return
        self.check_messages()
        if not self.member.in_group:
            return
        self.node_loop_ops()

    def check_messages(self) -> None:
        """Handle every queued message in arrival order."""
        for payload in self.member.drain():
            self.handle_message(payload)

    def _find(self, node_id: int, port: int) -> Optional[MemberListEntry]:
        return next(
            (entry for entry in self.member.member_list if entry.same_node(node_id, port)),
            None,
        )

    def _merge(self, node_id: int, port: int, heartbeat: int) -> bool:
        """Refresh a known entry with a newer heartbeat; True if it was known."""
        entry = self._find(node_id, port)
        if entry is None:
            return False
        if heartbeat > entry.heartbeat:
            entry.heartbeat = heartbeat
            entry.timestamp = self.params.current_time()
        return True

    def handle_message(self, data: bytes) -> bool:
        """Act on one received message."""
        message = decode_message(data)
        member = self.member
        now = self.params.current_time()

        if message.type is MessageType.JOINREQ:
            joiner = message.address
            assert joiner is not None
            member.member_list.append(
                MemberListEntry(joiner.node_id, joiner.port, message.heartbeat, now)
            )
            self.network.send(member.address, joiner, encode_join_reply(member.member_list))
            if self.log is not None:
                self.log.log_node_add(member.address, joiner)

        elif message.type is MessageType.JOINREP:
            for incoming in message.entries:
                if not self._merge(incoming.node_id, incoming.port, incoming.heartbeat):
                    member.in_group = True
                    member.member_list.append(
                        MemberListEntry(incoming.node_id, incoming.port, incoming.heartbeat, now)
                    )

        elif message.type is MessageType.HEARTBEAT:
            sender = message.address
            assert sender is not None
            if not self._merge(sender.node_id, sender.port, message.heartbeat):
                member.member_list.append(
                    MemberListEntry(sender.node_id, sender.port, message.heartbeat, now)
                )

        return True

    def node_loop_ops(self) -> None:
        """Beat, gossip the heartbeat to every known member and drop silent ones."""
        member = self.member
        member.heartbeat += 1
        now = self.params.current_time()
        own_id, own_port = member.address.node_id, member.address.port

        for entry in member.member_list:
            if entry.same_node(own_id, own_port):
                entry.heartbeat = member.heartbeat
                entry.timestamp = now

        heartbeat = encode_heartbeat(member.address, member.heartbeat)
        for entry in member.member_list:
            if entry.same_node(own_id, own_port):
                continue
            self.network.send(member.address, entry.address, heartbeat)

        member.member_list = [
            entry
            for entry in member.member_list
            if entry.same_node(own_id, own_port) or now - entry.timestamp <= TFAIL
        ]