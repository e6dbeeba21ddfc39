from dataclasses import dataclass, field

from ethsync.errors import ArgumentError, MalformedDataError, RPCError
from ethsync.logging import log
from ethsync.rpc import BatchFetcher, RpcCall

GET_BLOCK_BY_NUMBER = "eth_getBlockByNumber"
GET_TRANSACTION_BY_HASH = "eth_getTransactionByHash"
GET_TRANSACTION_RECEIPT = "eth_getTransactionReceipt"


@dataclass
class LoadedRange:
    """
    Raw node data for one range.

    ``transactions[i]`` and ``receipts[i]`` belong to the same hash, and every
    transaction carries the ``timestamp`` of its block.
    """
    blocks: list[dict] = field(default_factory=list)
    transactions: list[dict] = field(default_factory=list)
    receipts: list[dict] = field(default_factory=list)


def _validate_block_numbers(block_numbers) -> list[int]:
    if not block_numbers:
        raise ArgumentError("block_numbers must not be empty")
    for n in block_numbers:
        if isinstance(n, bool) or not isinstance(n, int) or n < 0:
            raise ArgumentError(f"invalid block number: {n!r}")
    return list(block_numbers)


class RangeLoader:
    def __init__(self, fetcher: BatchFetcher):
        self.fetcher = fetcher

    async def load(self, block_numbers) -> LoadedRange:
        numbers = _validate_block_numbers(block_numbers)

        # -----------------------------
        # 1. blocks (hashes only)
        # -----------------------------
        blocks = await self.fetcher.fetch(
            [RpcCall(GET_BLOCK_BY_NUMBER, [hex(n), False]) for n in numbers]
        )
        for n, block in zip(numbers, blocks):
            if block is None:
                raise RPCError(f"block {n} not available", method=GET_BLOCK_BY_NUMBER)
            if not isinstance(block, dict):
                raise MalformedDataError(f"block {n} is not an object")

        # -----------------------------
        # 2. transactions + receipts, paired by position
        # -----------------------------
        calls = []
        timestamps = []
        for block in blocks:
            hashes = block.get("transactions") or []
            if not hashes:
                continue
            if "timestamp" not in block:
                raise MalformedDataError(f"block {block.get('number')} has no timestamp")
            for tx_hash in hashes:
                if not isinstance(tx_hash, str):
                    raise MalformedDataError(
                        f"block {block.get('number')} returned full transaction objects"
                    )
                calls.append(RpcCall(GET_TRANSACTION_BY_HASH, [tx_hash]))
                calls.append(RpcCall(GET_TRANSACTION_RECEIPT, [tx_hash]))
                timestamps.append(block["timestamp"])

        results = await self.fetcher.fetch(calls) if calls else []

        transactions = []
        receipts = []
        for i, timestamp in enumerate(timestamps):
            tx, receipt = results[2 * i], results[2 * i + 1]
            tx_hash = calls[2 * i].params[0]
            if tx is None:
                raise RPCError(f"transaction {tx_hash} not found", method=GET_TRANSACTION_BY_HASH)
            if receipt is None:
                raise RPCError(f"receipt {tx_hash} not found", method=GET_TRANSACTION_RECEIPT)

            # 3. node transactions carry no timestamp of their own
            transactions.append({**tx, "timestamp": timestamp})
            receipts.append(receipt)

        log.debug(
            "range_loaded",
            extra={
                "range_start": numbers[0],
                "range_end": numbers[-1],
                "blocks": len(blocks),
                "transactions": len(transactions),
            },
        )
        return LoadedRange(blocks=blocks, transactions=transactions, receipts=receipts)
