from dataclasses import dataclass, field, asdict
from enum import Enum


class TokenType(str, Enum):
    ERC721 = "ERC721"     # single transfer shape
    ERC1155 = "ERC1155"   # batch transfer shape


@dataclass(frozen=True)
class BlockRecord:
    hash: str
    number: int
    parent_hash: str
    nonce: str
    miner: str
    difficulty: str
    total_difficulty: str
    extra_data: str
    size: int
    gas_limit: str
    gas_used: str
    timestamp: int
    transactions_count: int


@dataclass(frozen=True)
class TransactionRecord:
    hash: str
    block_hash: str
    block_number: int
    from_address: str
    to_address: str
    gas: str
    gas_used: str
    gas_price: str
    nonce: int
    transaction_index: int
    value: str
    contract_address: str
    status: int | None
    timestamp: int  # copied from the parent block
    input_data: str


@dataclass(frozen=True)
class LogRecord:
    block_hash: str
    log_index: int
    transaction_hash: str
    address: str
    block_number: int
    topic0: str
    topic1: str
    topic2: str
    topic3: str
    data: str


@dataclass(frozen=True)
class ContractRecord:
    address: str
    transaction_hash: str
    block_number: int
    creator: str


@dataclass(frozen=True)
class NftTransferRecord:
    block_hash: str
    log_index: int
    transaction_hash: str
    contract_address: str
    from_address: str
    to_address: str
    token_id: str
    value: str
    token_type: TokenType
    batch_index: int = 0


@dataclass
class DecodedRecords:
    blocks: list[BlockRecord] = field(default_factory=list)
    transactions: list[TransactionRecord] = field(default_factory=list)
    logs: list[LogRecord] = field(default_factory=list)
    nft_transfers: list[NftTransferRecord] = field(default_factory=list)
    contracts: list[ContractRecord] = field(default_factory=list)
    decode_errors: int = 0


def record_to_dict(record) -> dict:
    d = asdict(record)
    for k, v in d.items():
        if isinstance(v, Enum):
            d[k] = v.value
    return d
