import random

import pytest

from gossipsim.emulnet import (
    ENBUFFSIZE,
    ENVELOPE_HEADER_SIZE,
    MAX_NODES,
    MAX_TIME,
    EmulNet,
)
from gossipsim.member import Address
from gossipsim.params import Params


def make_net(**overrides):
    params = Params(max_nnb=3, en_gpsz=3, **overrides)
    return params, EmulNet(params, random.Random(7))


def test_init_address_hands_out_sequential_ids():
    _, net = make_net()
    addresses = [net.init_address() for _ in range(3)]
    assert addresses == [Address(1, 0), Address(2, 0), Address(3, 0)]


def test_send_and_receive_round_trip():
    _, net = make_net()
    a, b = Address(1, 0), Address(2, 0)
    assert net.send(a, b, b"hello") == 5
    received = []
    assert net.receive(b, received.append) == 1
    assert received == [b"hello"]
    assert net.pending == 0


def test_receive_only_takes_own_messages():
    _, net = make_net()
    a, b, c = Address(1, 0), Address(2, 0), Address(3, 0)
    net.send(a, b, b"for b")
    net.send(a, c, b"for c")
    received = []
    net.receive(b, received.append)
    assert received == [b"for b"]
    assert net.pending == 1
    others = []
    net.receive(c, others.append)
    assert others == [b"for c"]


def test_receive_delivers_newest_first():
    _, net = make_net()
    a, b = Address(1, 0), Address(2, 0)
    for payload in (b"one", b"two", b"three"):
        net.send(a, b, payload)
    received = []
    net.receive(b, received.append)
    assert received == [b"three", b"two", b"one"]


def test_oversized_message_is_dropped():
    params, net = make_net()
    a, b = Address(1, 0), Address(2, 0)
    limit = params.max_msg_size - ENVELOPE_HEADER_SIZE
    assert net.send(a, b, bytes(limit)) == 0
    assert net.send(a, b, bytes(limit - 1)) == limit - 1
    assert net.pending == 1


def test_drop_probability_one_drops_everything():
    params, net = make_net(msg_drop_prob=1.0)
    params.dropmsg = True
    a, b = Address(1, 0), Address(2, 0)
    results = [net.send(a, b, b"x") for _ in range(50)]
    assert set(results) == {0}
    assert net.pending == 0


def test_drop_probability_zero_drops_nothing():
    params, net = make_net(msg_drop_prob=0.0)
    params.dropmsg = True
    a, b = Address(1, 0), Address(2, 0)
    results = [net.send(a, b, b"x") for _ in range(50)]
    assert set(results) == {1}


def test_full_buffer_rejects_messages():
    _, net = make_net()
    a, b = Address(1, 0), Address(2, 0)
    for _ in range(ENBUFFSIZE):
        net.send(a, b, b"")
    assert net.pending == ENBUFFSIZE
    assert net.send(a, b, b"more") == 0


def test_message_counts_track_time():
    params, net = make_net()
    a, b = Address(1, 0), Address(2, 0)
    net.send(a, b, b"x")
    params.globaltime = 1
    net.send(a, b, b"y")
    net.receive(b, lambda data: None)
    params.globaltime = 2
    assert net.message_counts(1) == [(1, 0), (1, 0)]
    assert net.message_counts(2) == [(0, 0), (0, 2)]


def test_source_id_out_of_range_raises():
    _, net = make_net()
    with pytest.raises(ValueError):
        net.send(Address(MAX_NODES + 1, 0), Address(1, 0), b"x")


def test_time_out_of_range_raises():
    params, net = make_net()
    params.globaltime = MAX_TIME
    with pytest.raises(ValueError):
        net.send(Address(1, 0), Address(2, 0), b"x")


def test_render_counts_format():
    params = Params(max_nnb=1, en_gpsz=1)
    net = EmulNet(params, random.Random(1))
    net.send(Address(1, 0), Address(2, 0), b"x")
    params.globaltime = 1
    assert net.render_counts() == (
        "node   1  (   1,    0)\n"
        "node   1 sent_total      1  recv_total      0\n\n"
    )


def test_render_counts_wraps_every_ten_steps():
    params = Params(max_nnb=1, en_gpsz=1)
    net = EmulNet(params, random.Random(1))
    params.globaltime = 10
    first_line = net.render_counts().split("\n")[0]
    assert first_line.count("(") == 10


def test_cleanup_writes_report_and_clears(tmp_path):
    params, net = make_net()
    a, b = Address(1, 0), Address(2, 0)
    net.send(a, b, b"x")
    params.globaltime = 1
    path = tmp_path / "msgcount.log"
    report = net.cleanup(path)
    assert path.read_text(encoding="utf-8") == report
    assert net.pending == 0
    assert net.init_address() == Address(0, 0)
    received = []
    net.receive(b, received.append)
    assert received == []