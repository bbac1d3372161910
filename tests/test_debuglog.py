from gossipsim.debuglog import DebugLog
from gossipsim.member import Address
from gossipsim.params import Params


def read(path):
    return path.read_text(encoding="utf-8")


def test_files_created_only_on_first_log(tmp_path):
    params = Params(max_nnb=1, en_gpsz=1)
    with DebugLog(params, tmp_path) as log:
        assert not log.debug_path.exists()
        log.log(Address(1, 0), "hello")
        assert log.debug_path.exists()
        assert log.stats_path.exists()


def test_first_line_has_magic_and_empty_tag(tmp_path):
    params = Params(max_nnb=1, en_gpsz=1)
    with DebugLog(params, tmp_path) as log:
        log.log(Address(1, 0), "hello")
    assert read(tmp_path / "dbg.log") == "131\n\n [0] hello"


def test_later_lines_carry_address_and_time(tmp_path):
    params = Params(max_nnb=2, en_gpsz=2)
    with DebugLog(params, tmp_path) as log:
        log.log(Address(1, 0), "first")
        params.globaltime = 4
        log.log(Address(2, 0), "second")
    assert read(tmp_path / "dbg.log").endswith("\n 2.0.0.0:0 [4] second")


def test_magic_written_once(tmp_path):
    params = Params(max_nnb=1, en_gpsz=1)
    with DebugLog(params, tmp_path) as log:
        for _ in range(3):
            log.log(Address(1, 0), "x")
    assert read(tmp_path / "dbg.log").count("131\n") == 1


def test_stats_messages_go_to_stats_log(tmp_path):
    params = Params(max_nnb=1, en_gpsz=1)
    with DebugLog(params, tmp_path) as log:
        log.log(Address(1, 0), "start")
        log.log(Address(1, 0), "#STATSLOG# numbers")
    assert read(tmp_path / "stats.log") == "\n 1.0.0.0:0 [0] #STATSLOG# numbers"
    assert "#STATSLOG#" not in read(tmp_path / "dbg.log")


def test_log_node_add_and_remove(tmp_path):
    params = Params(max_nnb=3, en_gpsz=3)
    with DebugLog(params, tmp_path) as log:
        params.globaltime = 12
        log.log_node_add(Address(1, 0), Address(3, 0))
        log.log_node_remove(Address(1, 0), Address(3, 0))
    text = read(tmp_path / "dbg.log")
    assert "Node 3.0.0.0:0 joined at time 12" in text
    assert text.endswith("\n 1.0.0.0:0 [12] Node 3.0.0.0:0 removed at time 12")


def test_close_allows_reading_full_content(tmp_path):
    params = Params(max_nnb=1, en_gpsz=1)
    log = DebugLog(params, tmp_path)
    log.log(Address(1, 0), "a")
    log.log(Address(1, 0), "b")
    log.close()
    log.close()
    assert read(tmp_path / "dbg.log").splitlines()[-1] == " 1.0.0.0:0 [0] b"