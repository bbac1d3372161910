"""The application layer that drives a whole membership simulation."""

from __future__ import annotations

import os
import random
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .debuglog import DebugLog
from .emulnet import DEFAULT_COUNT_LOG, EmulNet
from .member import Member
from .node import MembershipNode
from .params import FAILURE, SUCCESS, Params

ARGS_COUNT = 2
TOTAL_RUNNING_TIME = 700

DROP_START_TIME = 50
FAILURE_TIME = 100
DROP_END_TIME = 300
DEBUG_TICK_INTERVAL = 500

USAGE_MESSAGE = "Configuration (i.e., *.conf) file File Required"


class Application:
    """Creates the nodes, steps the clock and injects failures."""

    def __init__(
        self,
        config_path: Union[str, "os.PathLike[str]"],
        rng: Optional[random.Random] = None,
        log_directory: Union[str, "os.PathLike[str]"] = ".",
    ) -> None:
        self.params = Params.from_file(config_path)
        self.rng = rng if rng is not None else random.Random()
        self.log_directory = Path(log_directory)
        self.log = DebugLog(self.params, self.log_directory)
        self.network = EmulNet(self.params, self.rng)
        self.node_count = 0
        self.nodes: List[MembershipNode] = []
        for _ in range(self.params.en_gpsz):
            address = self.network.init_address()
            node = MembershipNode(Member(), self.params, self.network, self.log, address)
            self.nodes.append(node)
            self.log.log(node.address, "APP")

    @property
    def count_log_path(self) -> Path:
        return self.log_directory / DEFAULT_COUNT_LOG

    def run(self) -> int:
        """Run the whole simulation, then write the message counts."""
        params = self.params
        try:
            for time in range(TOTAL_RUNNING_TIME):
                params.globaltime = time
                self.mp1_run()
                self.fail()
            params.globaltime = TOTAL_RUNNING_TIME
            self.network.cleanup(self.count_log_path)
            for node in self.nodes:
                node.finish_up_this_node()
        finally:
            self.log.close()
        return SUCCESS

    def _start_time(self, index: int) -> int:
        return int(self.params.step_rate * index)

    def mp1_run(self) -> None:
        """Do one time step of the membership protocol on every node."""
        now = self.params.current_time()

        for index, node in enumerate(self.nodes):
            if now > self._start_time(index) and not node.member.failed:
                node.recv_loop()

        for index in reversed(range(len(self.nodes))):
            node = self.nodes[index]
            start = self._start_time(index)
            if now == start:
                node.node_start()
                print(
                    f"{index}-th introduced node is assigned with the address: "
                    f"{node.address}"
                )
                self.node_count += index
            elif now > start and not node.member.failed:
                node.node_loop()
                if index == 0 and self.params.globaltime % DEBUG_TICK_INTERVAL == 0:
                    self.log.log(node.address, f"@@time={now}")

    def fail(self) -> None:
        """Turn message dropping on and off and fail nodes at fixed times."""
        params = self.params
        now = params.current_time()

        if params.drop_msg and now == DROP_START_TIME:
            params.dropmsg = True

        if now == FAILURE_TIME:
            size = params.en_gpsz
            if params.single_failure:
                victims = [self.rng.randrange(size)]
                template = "Node failed at time={}"
            else:
                first = self.rng.randrange(size) // 2
                victims = list(range(first, first + size // 2))
                template = "Node failed at time = {}"
            for index in victims:
                node = self.nodes[index]
                self.log.log(node.address, template.format(now))
                node.member.failed = True

        if params.drop_msg and now == DROP_END_TIME:
            params.dropmsg = False


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run a simulation described by the configuration file given as argument."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != ARGS_COUNT - 1:
        print(USAGE_MESSAGE)
        return FAILURE
    app = Application(args[0])
    app.run()
    return SUCCESS


if __name__ == "__main__":
    sys.exit(main())