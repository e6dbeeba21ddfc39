import asyncio
import math

import pytest

from ethsync.errors import RPCError, TransportError
from ethsync.rpc import BatchFetcher, RetryPolicy, RpcCall
from ethsync.rpc.batch import chunked


def block_calls(n):
    return [RpcCall("eth_getBlockByNumber", [hex(i), False]) for i in range(n)]


@pytest.mark.parametrize("n,size", [(1, 1), (7, 3), (9, 3), (10, 100), (5, 1)])
def test_chunking_issues_ceil_n_over_s_batches(chain, client, n, size):
    for i in range(n):
        chain.add_block(i)
    fetcher = BatchFetcher(client, chunk_size=size, timeout=5)

    results = asyncio.run(fetcher.fetch(block_calls(n)))

    assert len(client.batches) == math.ceil(n / size)
    assert all(len(b) <= size for b in client.batches)
    assert [int(r["number"], 16) for r in results] == list(range(n))


def test_empty_call_list_issues_nothing(client):
    fetcher = BatchFetcher(client, chunk_size=10, timeout=5)
    assert asyncio.run(fetcher.fetch([])) == []
    assert client.batches == []


@pytest.mark.parametrize("size,timeout", [(0, 1), (-1, 1), (1, 0), (1, -2)])
def test_invalid_parameters_rejected(client, size, timeout):
    with pytest.raises(ValueError):
        BatchFetcher(client, chunk_size=size, timeout=timeout)


def test_rpc_error_abandons_remaining_chunks(chain, client):
    for i in range(6):
        chain.add_block(i)
    client.fail_call("eth_getBlockByNumber", hex(1), code=-32005, message="limit exceeded")
    fetcher = BatchFetcher(client, chunk_size=2, timeout=5)

    with pytest.raises(RPCError) as excinfo:
        asyncio.run(fetcher.fetch(block_calls(6)))

    assert excinfo.value.code == -32005
    assert excinfo.value.method == "eth_getBlockByNumber"
    assert len(client.batches) == 1


def test_timeout_becomes_transport_error(chain, client):
    chain.add_block(0)
    client.delay = 0.5
    fetcher = BatchFetcher(client, chunk_size=1, timeout=0.01)

    with pytest.raises(TransportError):
        asyncio.run(fetcher.fetch(block_calls(1)))


def test_transport_error_is_not_retried_by_default(chain, client):
    chain.add_block(0)
    client.transport_failures = 1
    fetcher = BatchFetcher(client, chunk_size=1, timeout=5)

    with pytest.raises(TransportError):
        asyncio.run(fetcher.fetch(block_calls(1)))
    assert len(client.batches) == 1


def test_bounded_retry_recovers_from_transport_error(chain, client):
    chain.add_block(0)
    client.transport_failures = 2
    fetcher = BatchFetcher(
        client, chunk_size=1, timeout=5, retry=RetryPolicy(max_attempts=3, backoff=0)
    )

    results = asyncio.run(fetcher.fetch(block_calls(1)))

    assert results[0]["number"] == "0x0"
    assert len(client.batches) == 3


def test_bounded_retry_gives_up(chain, client):
    chain.add_block(0)
    client.transport_failures = 5
    fetcher = BatchFetcher(
        client, chunk_size=1, timeout=5, retry=RetryPolicy(max_attempts=2, backoff=0)
    )

    with pytest.raises(TransportError):
        asyncio.run(fetcher.fetch(block_calls(1)))
    assert len(client.batches) == 2


def test_rpc_error_is_never_retried(chain, client):
    chain.add_block(0)
    client.fail_call("eth_getBlockByNumber", hex(0))
    fetcher = BatchFetcher(
        client, chunk_size=1, timeout=5, retry=RetryPolicy(max_attempts=5, backoff=0)
    )

    with pytest.raises(RPCError):
        asyncio.run(fetcher.fetch(block_calls(1)))
    assert len(client.batches) == 1


def test_retry_backoff_is_capped():
    policy = RetryPolicy(max_attempts=10, backoff=1.0, max_backoff=5.0)
    assert [policy.delay(a) for a in range(1, 6)] == [1.0, 2.0, 4.0, 5.0, 5.0]


def test_chunked():
    assert chunked([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]
    assert chunked([], 3) == []
