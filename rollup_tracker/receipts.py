"""
Outer-chain inclusion receipts and priority-queue log extraction.

An operation submitted to the outer chain only gets its L2 identifier once
the chain includes it: the rollup contract emits a NewPriorityRequest event
whose data carries the priority-operation serial id.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from .errors import IdentifierExtractionFault

# ABI words are 32 bytes, 64 hex characters
WORD_HEX_LENGTH = 64


def _normalize_hex(value: str) -> str:
    value = value.strip().lower()
    return value[2:] if value.startswith("0x") else value


def _to_int(value: Any) -> Optional[int]:
    # Nodes report quantities either as JSON numbers or as 0x-prefixed hex
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        try:
            return int(value, 0)
        except ValueError:
            raise ValueError(f"Invalid quantity in receipt: {value!r}") from None
    return int(value)


class LogEntry:
    """
    One event log emitted by an outer-chain transaction.

    Attributes:
        address (str): Contract that emitted the log
        topics (List[str]): Indexed topics, event signature hash first
        data (str): Hex encoded non-indexed event data
        log_index (int): Position of the log in its block
    """

    def __init__(self, address: str, topics: List[str], data: str = "0x", log_index: int = 0):
        self.address = address
        self.topics = list(topics)
        self.data = data
        self.log_index = log_index

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "address": self.address,
            "topics": self.topics,
            "data": self.data,
            "log_index": self.log_index
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LogEntry":
        """Build from a node's JSON log object (camelCase or snake_case)."""
        return cls(
            address=data.get("address", ""),
            topics=data.get("topics", []),
            data=data.get("data", "0x"),
            log_index=_to_int(data.get("logIndex", data.get("log_index"))) or 0
        )


class InclusionReceipt:
    """
    Receipt of an outer-chain transaction once included in a block.

    Attributes:
        transaction_hash (str): Outer-chain transaction hash
        block_number (Optional[int]): Including block
        logs (List[LogEntry]): Emitted logs, in order
        status (Optional[int]): 1 for success, 0 for revert, None if unknown
    """

    def __init__(
        self,
        transaction_hash: str,
        logs: List[LogEntry],
        block_number: Optional[int] = None,
        status: Optional[int] = None
    ):
        self.transaction_hash = transaction_hash
        self.logs = list(logs)
        self.block_number = block_number
        self.status = status

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "transaction_hash": self.transaction_hash,
            "block_number": self.block_number,
            "status": self.status,
            "logs": [log.to_dict() for log in self.logs]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InclusionReceipt":
        """
        Build from a node's JSON receipt (camelCase or snake_case).

        Empty quantities are read as unknown.

        Raises:
            ValueError: If a quantity is neither a number nor hex
        """
        return cls(
            transaction_hash=data.get("transactionHash", data.get("transaction_hash", "")),
            logs=[LogEntry.from_dict(log) for log in data.get("logs", [])],
            block_number=_to_int(data.get("blockNumber", data.get("block_number"))),
            status=_to_int(data.get("status"))
        )


class OuterChainTransaction(ABC):
    """
    Handle on a transaction sent to the outer chain.

    Implementations wrap whatever outer-chain client submitted the
    transaction; wait() follows that chain's own confirmation rules.
    """

    @property
    @abstractmethod
    def hash(self) -> str:
        """Outer-chain transaction hash."""

    @abstractmethod
    async def wait(self) -> InclusionReceipt:
        """
        Block until the outer chain reports the transaction included.

        Returns:
            InclusionReceipt: Receipt with the emitted logs

        Raises:
            InclusionTimeout: If the chain's confirmation rules gave up
        """


class MinedTransaction(OuterChainTransaction):
    """Handle on a transaction the outer chain has already included."""

    def __init__(self, receipt: InclusionReceipt):
        self.receipt = receipt

    @property
    def hash(self) -> str:
        return self.receipt.transaction_hash

    async def wait(self) -> InclusionReceipt:
        return self.receipt


class PriorityQueueEventParser:
    """
    Finds the NewPriorityRequest log in an inclusion receipt.

    Attributes:
        event_topic (str): Normalized first topic of the event
        contract_address (Optional[str]): Normalized rollup contract address
        serial_id_word (int): ABI word of the log data holding the serial id
    """

    def __init__(
        self,
        event_topic: str,
        contract_address: Optional[str] = None,
        serial_id_word: int = 1
    ):
        """
        Initialize parser.

        Args:
            event_topic: Signature hash of the NewPriorityRequest event
            contract_address: Only accept logs from this contract, if given
            serial_id_word: Index of the 32-byte data word holding serialId;
                the event is (sender, serialId, opType, pubData, expirationBlock)
        """
        if not event_topic:
            raise ValueError("event_topic is required")
        if serial_id_word < 0:
            raise ValueError("serial_id_word must be non-negative")

        self.event_topic = _normalize_hex(event_topic)
        self.contract_address = _normalize_hex(contract_address) if contract_address else None
        self.serial_id_word = serial_id_word

    @classmethod
    def from_settings(cls, settings) -> "PriorityQueueEventParser":
        """
        Build a parser from ContractSettings.

        Raises:
            ValueError: If no event topic is configured
        """
        if not settings.priority_event_topic:
            raise ValueError("ROLLUP_PRIORITY_EVENT_TOPIC is not configured")
        return cls(settings.priority_event_topic, settings.main_contract)

    def matches(self, log: LogEntry) -> bool:
        """Check whether a log is a NewPriorityRequest event of the rollup contract."""
        if not log.topics or _normalize_hex(log.topics[0]) != self.event_topic:
            return False
        if self.contract_address and _normalize_hex(log.address) != self.contract_address:
            return False
        return True

    def decode_serial_id(self, log: LogEntry, tx_hash: Optional[str] = None) -> int:
        """
        Read the serial id out of a matching log's data.

        Raises:
            IdentifierExtractionFault: If the data is not hex or too short
        """
        data = _normalize_hex(log.data or "")
        start = self.serial_id_word * WORD_HEX_LENGTH
        word = data[start:start + WORD_HEX_LENGTH]
        if len(word) != WORD_HEX_LENGTH:
            raise IdentifierExtractionFault(
                f"Failed to parse tx logs: priority request data too short ({len(data) // 2} bytes)",
                tx_hash
            )
        try:
            return int(word, 16)
        except ValueError:
            raise IdentifierExtractionFault(
                "Failed to parse tx logs: priority request data is not hex", tx_hash
            ) from None

    def extract_serial_id(self, receipt: InclusionReceipt) -> int:
        """
        Scan every log of a receipt for the one priority request.

        Args:
            receipt: Inclusion receipt of the outer-chain transaction

        Returns:
            int: Priority-operation serial id

        Raises:
            IdentifierExtractionFault: If no log, or more than one, matches,
                or the matching log is malformed
        """
        matching = [log for log in receipt.logs if self.matches(log)]
        if not matching:
            raise IdentifierExtractionFault(
                "Failed to parse tx logs: no priority request event in receipt",
                receipt.transaction_hash
            )
        if len(matching) > 1:
            raise IdentifierExtractionFault(
                f"Failed to parse tx logs: {len(matching)} priority request events in receipt",
                receipt.transaction_hash
            )
        return self.decode_serial_id(matching[0], receipt.transaction_hash)
