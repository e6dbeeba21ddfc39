from types import MappingProxyType

from web3 import Web3

from .records import TokenType

TRANSFER_EVENT = "Transfer(address,address,uint256)"
TRANSFER_BATCH_EVENT = "TransferBatch(address,address,address,uint256[],uint256[])"


def event_signature(event: str) -> str:
    """topic0 of an event, as a lowercase 0x-prefixed hex string."""
    return "0x" + Web3.keccak(text=event).hex().removeprefix("0x")


TRANSFER_TOPIC = event_signature(TRANSFER_EVENT)
TRANSFER_BATCH_TOPIC = event_signature(TRANSFER_BATCH_EVENT)

# read-only, built once at import
TRANSFER_SIGNATURES = MappingProxyType({
    TRANSFER_TOPIC: TokenType.ERC721,
    TRANSFER_BATCH_TOPIC: TokenType.ERC1155,
})
