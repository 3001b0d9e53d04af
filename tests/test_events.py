import pytest
from autostake.core.clock import ManualClock
from autostake.core.events import EventLog
from autostake.core.runtime import Runtime
from autostake.protocol.types.common import EventType, InsufficientBalance
from autostake.storage.db import StorageDB

from conftest import DEVNET, E, T0, account, make_token


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "events.db")


def test_one_block_per_operation(runtime, factory, deployer, fee_collector):
    token = make_token(factory, deployer, fee_collector, supply=100)
    start_height = runtime.height

    token.transfer(deployer, account("a"), 10)
    token.transfer(deployer, account("b"), 10)

    assert runtime.height == start_height + 2
    blocks = [ev.block for ev in runtime.events.get_past_events(EventType.TRANSFER, address=token.address)]
    assert blocks[-2:] == [start_height + 1, start_height + 2]


def test_log_indices_are_contiguous(runtime, factory, deployer, fee_collector):
    make_token(factory, deployer, fee_collector, salt=1)
    make_token(factory, deployer, fee_collector, salt=2)

    events = runtime.events.get_past_events()
    assert [ev.log_index for ev in events] == list(range(len(events)))


def test_range_queries(runtime, clock, factory, deployer, fee_collector):
    token = make_token(factory, deployer, fee_collector, supply=100)
    created_at = runtime.height
    for i in range(3):
        clock.advance(10)
        token.transfer(deployer, account(f"h{i}"), 1)
    last = runtime.height

    transfers = runtime.events.get_past_events(EventType.TRANSFER, address=token.address)
    assert len(transfers) == 4  # mint + 3

    middle = runtime.events.get_past_events("Transfer", from_block=created_at + 1, to_block=created_at + 2)
    assert [ev.args["to"] for ev in middle] == [account("h0"), account("h1")]

    tail = runtime.events.get_past_events(from_block=last)
    assert len(tail) == 1
    assert tail[0].timestamp == T0 + 30

    assert runtime.events.get_past_events(from_block=last + 1) == []


def test_unknown_event_name_rejected(runtime):
    with pytest.raises(ValueError):
        runtime.events.get_past_events("NoSuchEvent")


def test_failed_operation_emits_nothing(runtime, factory, deployer, fee_collector):
    token = make_token(factory, deployer, fee_collector, supply=100)
    before = runtime.events.get_past_events()

    with pytest.raises(InsufficientBalance):
        token.transfer(account("nobody"), deployer, 1)

    assert runtime.events.get_past_events() == before


def test_subscribers(runtime, factory, deployer, fee_collector):
    seen, created = [], []
    runtime.events.subscribe(seen.append)
    runtime.events.subscribe(created.append, EventType.TOKEN_CREATED)

    def broken(ev):
        raise RuntimeError("listener failure")
    runtime.events.subscribe(broken)

    make_token(factory, deployer, fee_collector)

    assert [ev.event for ev in seen] == [EventType.TRANSFER, EventType.TOKEN_CREATED]
    assert len(created) == 1
    assert len(runtime.events) >= 2


def test_out_of_order_append_rejected(runtime, factory, deployer, fee_collector):
    make_token(factory, deployer, fee_collector)
    stale = runtime.events.get_past_events()[0]
    with pytest.raises(ValueError):
        runtime.events.append([stale])


def test_block_time_never_goes_backwards(deployer):
    class Jittery(ManualClock):
        def __init__(self, readings):
            super().__init__(readings[0])
            self.readings = list(readings)

        def now(self):
            return self.readings.pop(0) if self.readings else self._now

    runtime = Runtime(clock=Jittery([T0 + 50, T0 + 20, T0 + 60]), config=DEVNET)
    runtime.deploy_factory(deployer)
    runtime.deploy_factory(deployer)
    runtime.deploy_factory(deployer)

    assert runtime.last_timestamp == T0 + 60
    assert runtime.height == 3


def test_events_persist_across_restarts(db_path, deployer, fee_collector):
    db = StorageDB(db_path)
    runtime = Runtime(clock=ManualClock(T0), config=DEVNET, db=db)
    factory = runtime.deploy_factory(deployer)
    token = make_token(factory, deployer, fee_collector, supply=6_000 * E)
    token.transfer(deployer, account("a"), 1_000 * E)
    written = runtime.events.get_past_events()
    height = runtime.height
    db.close()

    reopened = StorageDB(db_path)
    assert reopened.count_events() == len(written)

    log = EventLog(reopened)
    assert log.get_past_events() == written
    assert log.last_block == height
    # Amounts wider than 64 bits survive the round trip
    assert log.get_past_events(EventType.TRANSFER)[-1].args["amount"] == 1_000 * E

    resumed = Runtime(clock=ManualClock(T0 + 10), config=DEVNET, db=reopened)
    assert resumed.height == height
    resumed.deploy_factory(deployer)
    assert resumed.height == height + 1
    reopened.close()


def test_storage_block_range(db_path, deployer, fee_collector):
    db = StorageDB(db_path)
    runtime = Runtime(clock=ManualClock(T0), config=DEVNET, db=db)
    factory = runtime.deploy_factory(deployer)
    make_token(factory, deployer, fee_collector, salt=1)
    make_token(factory, deployer, fee_collector, salt=2)

    assert len(db.get_events(from_block=runtime.height)) == 2
    assert len(db.get_events(from_block=0, to_block=runtime.height - 1)) == 2
    db.close()
