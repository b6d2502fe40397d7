import time

import pytest

from hdfswire.rpc.failover import (
    DatanodeFailover,
    clear_datanode_failures,
    record_datanode_failure,
)


@pytest.fixture(autouse=True)
def _clean_failures():
    clear_datanode_failures()
    yield
    clear_datanode_failures()


def test_picks_first_datanode():
    df = DatanodeFailover(["foo:6000", "bar:6000"])
    assert df.next() == "foo:6000"


def test_picks_datanodes_without_failures():
    df = DatanodeFailover(["foo:6000", "foo:7000", "bar:6000"])
    record_datanode_failure("foo:6000", time.time())
    assert df.next() == "foo:7000"


def test_picks_datanodes_with_oldest_failures():
    df = DatanodeFailover(["foo:6000", "bar:6000"])
    record_datanode_failure("foo:6000", time.time() - 600)
    record_datanode_failure("bar:6000", time.time())
    assert df.next() == "foo:6000"


def test_next_removes_the_picked_datanode():
    df = DatanodeFailover(["foo:6000", "bar:6000"])
    assert df.num_remaining() == 2
    first = df.next()
    assert df.num_remaining() == 1
    second = df.next()
    assert {first, second} == {"foo:6000", "bar:6000"}
    assert df.num_remaining() == 0


def test_next_when_exhausted_raises():
    df = DatanodeFailover([])
    with pytest.raises(LookupError):
        df.next()


def test_record_failure_keeps_error_and_deprioritises_node():
    df = DatanodeFailover(["foo:6000", "bar:6000"])
    assert df.last_error() is None
    assert df.next() == "foo:6000"
    err = ConnectionError("boom")
    df.record_failure(err)
    assert df.last_error() is err

    other = DatanodeFailover(["foo:6000", "bar:6000"])
    assert other.next() == "bar:6000"


def test_clear_forgets_failures():
    record_datanode_failure("foo:6000")
    clear_datanode_failures()
    df = DatanodeFailover(["foo:6000", "bar:6000"])
    assert df.next() == "foo:6000"