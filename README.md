# gossipsim

A discrete-time simulator for a gossip-style heartbeat membership protocol.
A group of nodes joins through an introducer, exchanges heartbeats over an
emulated in-memory network, and drops members whose heartbeats stop arriving.
Part of the group is failed partway through the run, and the network can be
made to lose messages, so you can watch failure detection at work.

## Installation

```
pip install .
```

Install with `pip install .[test]` to get pytest for running the test suite.

## Running a simulation

The simulation is driven by a configuration file whose four keys must appear
in this order:

```
MAX_NNB: 10
SINGLE_FAILURE: 1
DROP_MSG: 0
MSG_DROP_PROB: 0.1
```

- `MAX_NNB` – number of nodes in the group (at least 1).
- `SINGLE_FAILURE` – `1` fails one random node at time 100; `0` fails half
  the group, a run of consecutive nodes starting at a random position.
- `DROP_MSG` – `1` makes the network drop messages from time 50 until time 300.
- `MSG_DROP_PROB` – probability that a message is dropped while dropping is on.

A file that does not match this layout raises
`gossipsim.params.ConfigError`.

Run it with:

```
gossipsim singlefailure.conf
```

Without exactly one argument the command prints a usage line and returns a
failure status. The run lasts 700 time units. Node `i` is introduced at time
`int(0.25 * i)`, and the command prints each node's `id:port` address as it
is introduced. It writes these files to the working directory:

- `dbg.log` – starts with a fixed magic-number line, then one line per logged
  event (node creation, join requests, joins seen by the introducer, node
  failures), each tagged with a node address and the current time.
- `stats.log` – lines whose message begins with `#STATSLOG#`.
- `msgcount.log` – messages sent and received by each node at each time step,
  with per-node totals.

## Using it from Python

```python
import random
from gossipsim.application import Application

app = Application("singlefailure.conf", random.Random(42), "out")
app.run()
```

Passing a seeded `random.Random` makes message drops and failure choices
repeatable; the third argument is the directory the log files go to.

The building blocks can be used on their own:

- `gossipsim.params.Params` reads configuration (`Params.parse`,
  `Params.from_file`) and holds the global clock.
- `gossipsim.emulnet.EmulNet` is the emulated network: `send`, `receive`,
  `message_counts`, `render_counts` and `cleanup`.
- `gossipsim.debuglog.DebugLog` writes the log files and works as a context
  manager.
- `gossipsim.node.MembershipNode` runs the protocol for one node; the message
  encoders (`encode_join_request`, `encode_heartbeat`, `encode_join_reply`)
  and `decode_message` live in the same module.
- `gossipsim.member` holds `Address`, `MemberListEntry` and `Member`.

A node drops a member from its list once that member's heartbeat has not
advanced for more than 5 time units.

## What it does not do

Everything runs in one process over an in-memory message buffer; there is no
real networking. Nodes do not write removal events to `dbg.log`
(`DebugLog.log_node_remove` exists but the protocol does not call it), and
the package does not check the logs or grade a run.