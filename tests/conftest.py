import asyncio
import logging

import pytest
from eth_abi import encode

from ethsync.decoding import TRANSFER_BATCH_TOPIC, TRANSFER_TOPIC
from ethsync.errors import TransportError
from ethsync.rpc import BatchTransport, RpcResponse

ALICE = "0x" + "aa" * 20
BOB = "0x" + "bb" * 20
OPERATOR = "0x" + "cc" * 20
TOKEN = "0x" + "dd" * 20
OTHER_TOPIC = "0x" + "11" * 32


def word(n: int) -> str:
    return "0x" + f"{n:064x}"


def address_topic(address: str) -> str:
    return "0x" + "00" * 12 + address.removeprefix("0x")


def block_hash(n: int) -> str:
    return "0x" + f"b{n:063x}"


def tx_hash(n: int, i: int) -> str:
    return "0x" + f"{n:032x}{i:032x}"


def single_transfer_log(token_id=42, **kw):
    return make_log(
        topics=[TRANSFER_TOPIC, address_topic(ALICE), address_topic(BOB)],
        data="0x" + encode(["uint256"], [token_id]).hex(),
        **kw,
    )


def batch_transfer_log(ids=(1, 2), values=(5, 9), **kw):
    return make_log(
        topics=[
            TRANSFER_BATCH_TOPIC,
            address_topic(OPERATOR),
            address_topic(ALICE),
            address_topic(BOB),
        ],
        data="0x" + encode(["uint256[]", "uint256[]"], [list(ids), list(values)]).hex(),
        **kw,
    )


def make_log(topics, data="0x", block_number=1, log_index=0, tx=None, address=TOKEN):
    return {
        "address": address,
        "topics": topics,
        "data": data,
        "blockNumber": hex(block_number),
        "blockHash": block_hash(block_number),
        "transactionHash": tx or tx_hash(block_number, 0),
        "logIndex": hex(log_index),
    }


class FakeChain:
    """In-memory node data keyed the way the JSON-RPC methods look it up."""

    def __init__(self):
        self.blocks: dict[int, dict] = {}
        self.transactions: dict[str, dict] = {}
        self.receipts: dict[str, dict] = {}

    def add_block(self, number: int, tx_count: int = 0, logs_per_tx=None, timestamp=None):
        hashes = [tx_hash(number, i) for i in range(tx_count)]
        self.blocks[number] = {
            "number": hex(number),
            "hash": block_hash(number),
            "parentHash": block_hash(number - 1) if number else "0x" + "00" * 32,
            "nonce": "0x0000000000000042",
            "miner": ALICE,
            "difficulty": "0x400000000",
            "totalDifficulty": hex(2**80 + number),
            "extraData": "0x",
            "size": "0x220",
            "gasLimit": "0x1c9c380",
            "gasUsed": hex(21000 * tx_count),
            "timestamp": hex(timestamp if timestamp is not None else 1_600_000_000 + number),
            "transactions": hashes,
        }
        for i, h in enumerate(hashes):
            self.transactions[h] = {
                "hash": h,
                "blockHash": block_hash(number),
                "blockNumber": hex(number),
                "from": ALICE,
                "to": BOB,
                "gas": "0x5208",
                "gasPrice": "0x3b9aca00",
                "nonce": hex(i),
                "transactionIndex": hex(i),
                "value": hex(10**18),
                "input": "0x",
            }
            logs = []
            if logs_per_tx is not None:
                logs = [
                    {**raw, "blockHash": block_hash(number), "blockNumber": hex(number),
                     "transactionHash": h, "logIndex": hex(j)}
                    for j, raw in enumerate(logs_per_tx(number, i))
                ]
            self.receipts[h] = {
                "transactionHash": h,
                "blockHash": block_hash(number),
                "blockNumber": hex(number),
                "gasUsed": "0x5208",
                "status": "0x1",
                "contractAddress": None,
                "logs": logs,
            }
        return self.blocks[number]


class FakeRpcClient(BatchTransport):
    def __init__(self, chain: FakeChain, *, delay: float = 0.0, transport_failures: int = 0):
        self.chain = chain
        self.delay = delay
        self.transport_failures = transport_failures
        self.batches: list[list] = []
        self.errors: dict[tuple, dict] = {}

    def fail_call(self, method: str, param, code=-32000, message="boom"):
        self.errors[(method, param)] = {"code": code, "message": message}

    async def batch_call(self, calls):
        self.batches.append(list(calls))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.transport_failures > 0:
            self.transport_failures -= 1
            raise TransportError("connection reset")

        responses = []
        for call in calls:
            key = (call.method, call.params[0])
            if key in self.errors:
                responses.append(RpcResponse(error=self.errors[key]))
            elif call.method == "eth_getBlockByNumber":
                responses.append(RpcResponse(result=self.chain.blocks.get(int(call.params[0], 16))))
            elif call.method == "eth_getTransactionByHash":
                responses.append(RpcResponse(result=self.chain.transactions.get(call.params[0])))
            elif call.method == "eth_getTransactionReceipt":
                responses.append(RpcResponse(result=self.chain.receipts.get(call.params[0])))
            else:
                responses.append(RpcResponse(error={"code": -32601, "message": "method not found"}))
        return responses


@pytest.fixture(autouse=True)
def configure_logging():
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    yield


@pytest.fixture
def chain():
    return FakeChain()


@pytest.fixture
def client(chain):
    return FakeRpcClient(chain)
