from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from hexbytes import HexBytes

from ethsync.errors import DecodeError, MalformedDataError
from ethsync.loading import LoadedRange
from ethsync.logging import log
from ethsync.metrics import MetricsContext
from .records import (
    BlockRecord,
    ContractRecord,
    DecodedRecords,
    LogRecord,
    NftTransferRecord,
    TokenType,
    TransactionRecord,
)
from .signatures import TRANSFER_SIGNATURES

MAX_TOPICS = 4


# -----------------------------
# field helpers
# -----------------------------
def _require(obj: dict, key: str, kind: str):
    if not isinstance(obj, dict):
        raise MalformedDataError(f"{kind} is not an object: {type(obj).__name__}")
    value = obj.get(key)
    if value is None:
        raise MalformedDataError(f"{kind} is missing '{key}'")
    return value


def _to_int(value, key: str) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return int(value, 16) if value.lower().startswith("0x") else int(value)
        except ValueError:
            pass
    raise MalformedDataError(f"'{key}' is not a quantity: {value!r}")


def _int_field(obj: dict, key: str, kind: str) -> int:
    return _to_int(_require(obj, key, kind), key)


def _optional_decimal(obj: dict, key: str) -> str:
    value = obj.get(key)
    return "" if value is None else str(_to_int(value, key))


def _topic_word(topic) -> bytes:
    try:
        raw = bytes(HexBytes(topic))
    except (TypeError, ValueError) as e:
        raise DecodeError(f"topic is not hex: {topic!r}") from e
    if len(raw) != 32:
        raise DecodeError(f"topic is not a 32-byte word: {topic}")
    return raw


def _topic_to_address(topic) -> str:
    return "0x" + _topic_word(topic)[-20:].hex()


def _data_bytes(data) -> bytes:
    try:
        return bytes(HexBytes(data or "0x"))
    except (TypeError, ValueError) as e:
        raise DecodeError(f"log data is not hex: {e}") from e


# -----------------------------
# per-record decoders
# -----------------------------
def decode_block(block: dict) -> BlockRecord:
    hashes = block.get("transactions") if isinstance(block, dict) else None
    return BlockRecord(
        hash=_require(block, "hash", "block"),
        number=_int_field(block, "number", "block"),
        parent_hash=_require(block, "parentHash", "block"),
        nonce=block.get("nonce") or "",
        miner=_require(block, "miner", "block"),
        difficulty=_optional_decimal(block, "difficulty") or "0",
        total_difficulty=_optional_decimal(block, "totalDifficulty"),
        extra_data=block.get("extraData") or "0x",
        size=_to_int(block.get("size") or 0, "size"),
        gas_limit=str(_int_field(block, "gasLimit", "block")),
        gas_used=str(_int_field(block, "gasUsed", "block")),
        timestamp=_int_field(block, "timestamp", "block"),
        transactions_count=len(hashes or []),
    )


def decode_transaction(tx: dict, receipt: dict) -> TransactionRecord:
    tx_hash = _require(tx, "hash", "transaction")
    receipt_hash = _require(receipt, "transactionHash", "receipt")
    if tx_hash.lower() != receipt_hash.lower():
        raise MalformedDataError(
            f"receipt {receipt_hash} does not belong to transaction {tx_hash}"
        )

    gas_price = tx.get("gasPrice")
    if gas_price is None:
        gas_price = receipt.get("effectiveGasPrice", 0)

    status = receipt.get("status")
    return TransactionRecord(
        hash=tx_hash,
        block_hash=_require(tx, "blockHash", "transaction"),
        block_number=_int_field(tx, "blockNumber", "transaction"),
        from_address=_require(tx, "from", "transaction"),
        to_address=tx.get("to") or "",
        gas=str(_int_field(tx, "gas", "transaction")),
        gas_used=str(_int_field(receipt, "gasUsed", "receipt")),
        gas_price=str(_to_int(gas_price, "gasPrice")),
        nonce=_int_field(tx, "nonce", "transaction"),
        transaction_index=_int_field(tx, "transactionIndex", "transaction"),
        value=str(_int_field(tx, "value", "transaction")),
        contract_address=receipt.get("contractAddress") or "",
        # pre-byzantium receipts carry a state root instead of a status
        status=None if status is None else _to_int(status, "status"),
        timestamp=_int_field(tx, "timestamp", "transaction"),
        input_data=tx.get("input") or "0x",
    )


def decode_contract(tx: dict, receipt: dict) -> ContractRecord | None:
    address = receipt.get("contractAddress")
    if not address:
        return None
    return ContractRecord(
        address=address,
        transaction_hash=_require(receipt, "transactionHash", "receipt"),
        block_number=_int_field(receipt, "blockNumber", "receipt"),
        creator=tx.get("from") or "",
    )


def _topics(raw_log: dict) -> list[str]:
    topics = raw_log.get("topics")
    if topics is None:
        return []
    if not isinstance(topics, list):
        raise MalformedDataError(f"log topics is not a list: {type(topics).__name__}")
    return topics


def decode_log(raw_log: dict) -> LogRecord:
    block_hash = _require(raw_log, "blockHash", "log")
    slots = (_topics(raw_log)[:MAX_TOPICS] + [""] * MAX_TOPICS)[:MAX_TOPICS]
    return LogRecord(
        block_hash=block_hash,
        log_index=_int_field(raw_log, "logIndex", "log"),
        transaction_hash=_require(raw_log, "transactionHash", "log"),
        address=_require(raw_log, "address", "log"),
        block_number=_int_field(raw_log, "blockNumber", "log"),
        topic0=slots[0],
        topic1=slots[1],
        topic2=slots[2],
        topic3=slots[3],
        data=raw_log.get("data") or "0x",
    )


def validate_topics(raw_log: dict):
    count = len(_topics(raw_log))
    if count == 0:
        raise DecodeError("log has no topic0")
    if count > MAX_TOPICS:
        raise DecodeError(f"log has {count} topics, at most {MAX_TOPICS} allowed")


def decode_nft_transfers(raw_log: dict) -> list[NftTransferRecord]:
    """
    Decode transfer events carried by ``raw_log``.

    Returns an empty list when topic0 is not a known transfer signature or
    there are too few topics for it. Raises DecodeError when the log matches
    a transfer signature but its payload cannot be parsed.
    """
    topics = _topics(raw_log)
    if not topics:
        return []

    token_type = TRANSFER_SIGNATURES.get(str(topics[0]).lower())
    if token_type is None:
        return []

    base = dict(
        block_hash=_require(raw_log, "blockHash", "log"),
        log_index=_int_field(raw_log, "logIndex", "log"),
        transaction_hash=_require(raw_log, "transactionHash", "log"),
        contract_address=_require(raw_log, "address", "log"),
        token_type=token_type,
    )
    data = _data_bytes(raw_log.get("data"))

    # Transfer(from, to, tokenId)
    if token_type is TokenType.ERC721:
        if len(topics) < 3:
            return []
        if not data and len(topics) >= 4:
            token_id = int.from_bytes(_topic_word(topics[3]), "big")
        else:
            try:
                (token_id,) = abi_decode(["uint256"], data)
            except DecodingError as e:
                raise DecodeError(f"transfer data is not a uint256: {e}") from e
        return [
            NftTransferRecord(
                from_address=_topic_to_address(topics[1]),
                to_address=_topic_to_address(topics[2]),
                token_id=str(token_id),
                value="",
                **base,
            )
        ]

    # TransferBatch(operator, from, to, ids[], values[])
    if len(topics) < 4:
        return []
    try:
        ids, values = abi_decode(["uint256[]", "uint256[]"], data)
    except DecodingError as e:
        raise DecodeError(f"batch transfer data is not (uint256[], uint256[]): {e}") from e
    if len(ids) != len(values):
        raise DecodeError(
            f"batch transfer has {len(ids)} ids but {len(values)} values"
        )

    from_address = _topic_to_address(topics[2])
    to_address = _topic_to_address(topics[3])
    return [
        NftTransferRecord(
            from_address=from_address,
            to_address=to_address,
            token_id=str(token_id),
            value=str(value),
            batch_index=i,
            **base,
        )
        for i, (token_id, value) in enumerate(zip(ids, values))
    ]


# -----------------------------
# RecordDecoder
# -----------------------------
class RecordDecoder:
    """Pure transform of a LoadedRange into persistable records."""

    def __init__(self, sync_logs: bool = True, metrics: MetricsContext | None = None):
        self.sync_logs = sync_logs
        self.metrics = metrics or MetricsContext()

    def decode(self, loaded: LoadedRange) -> DecodedRecords:
        if len(loaded.transactions) != len(loaded.receipts):
            raise MalformedDataError(
                f"{len(loaded.transactions)} transactions but {len(loaded.receipts)} receipts"
            )

        out = DecodedRecords()
        out.blocks = [decode_block(b) for b in loaded.blocks]

        for tx, receipt in zip(loaded.transactions, loaded.receipts):
            out.transactions.append(decode_transaction(tx, receipt))

            contract = decode_contract(tx, receipt)
            if contract is not None:
                out.contracts.append(contract)

            if self.sync_logs:
                self._decode_receipt_logs(receipt, out)

        self.metrics.records_inc("block", len(out.blocks))
        self.metrics.records_inc("transaction", len(out.transactions))
        self.metrics.records_inc("log", len(out.logs))
        self.metrics.records_inc("nft_transfer", len(out.nft_transfers))
        self.metrics.records_inc("contract", len(out.contracts))
        return out

    def _decode_receipt_logs(self, receipt: dict, out: DecodedRecords):
        raw_logs = receipt.get("logs")
        if not isinstance(raw_logs, list):
            raise MalformedDataError(
                f"receipt {receipt.get('transactionHash')} has no logs list"
            )

        for raw_log in raw_logs:
            record = decode_log(raw_log)
            out.logs.append(record)

            try:
                validate_topics(raw_log)
                out.nft_transfers.extend(decode_nft_transfers(raw_log))
            except DecodeError as e:
                out.decode_errors += 1
                self.metrics.nft_decode_failed_inc()
                log.warning(
                    "⚠️ log_decode_failed",
                    extra={
                        "block_hash": record.block_hash,
                        "log_index": record.log_index,
                        "transaction_hash": record.transaction_hash,
                        "error": str(e)[:200],
                    },
                )
