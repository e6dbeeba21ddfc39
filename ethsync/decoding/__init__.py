from .records import (
    BlockRecord,
    ContractRecord,
    DecodedRecords,
    LogRecord,
    NftTransferRecord,
    TokenType,
    TransactionRecord,
    record_to_dict,
)
from .signatures import TRANSFER_SIGNATURES, TRANSFER_BATCH_TOPIC, TRANSFER_TOPIC
from .decoder import (
    RecordDecoder,
    decode_block,
    decode_contract,
    decode_log,
    decode_nft_transfers,
    decode_transaction,
)

__all__ = [
    "BlockRecord",
    "ContractRecord",
    "DecodedRecords",
    "LogRecord",
    "NftTransferRecord",
    "TokenType",
    "TransactionRecord",
    "record_to_dict",
    "TRANSFER_SIGNATURES",
    "TRANSFER_BATCH_TOPIC",
    "TRANSFER_TOPIC",
    "RecordDecoder",
    "decode_block",
    "decode_contract",
    "decode_log",
    "decode_nft_transfers",
    "decode_transaction",
]
