"""
Disposition types returned by a NetworkObserver.

A disposition is the answer to one question put to the L2 network: has the
operation with this identifier reached the requested confirmation depth yet?
"""

from enum import Enum, IntEnum
from typing import Any, Dict, Optional, Union

# Priority-operation serial id (int) or L2 transaction hash (str)
OperationId = Union[int, str]


class ConfirmationDepth(IntEnum):
    """
    How far along the L2 pipeline an operation must be.

    COMMIT means the network included and processed the operation in a block;
    VERIFY means the proof for that block was accepted on the outer chain.
    VERIFY always implies COMMIT.
    """

    COMMIT = 1
    VERIFY = 2

    @property
    def action(self) -> str:
        """Name used by the L2 JSON-RPC API."""
        return self.name

    @classmethod
    def parse(cls, value: Union[str, "ConfirmationDepth"]) -> "ConfirmationDepth":
        """
        Convert a wire or user supplied name into a depth.

        Args:
            value: "COMMIT"/"VERIFY" in any case, or a depth

        Returns:
            ConfirmationDepth: Matching depth

        Raises:
            ValueError: If the name is unknown
        """
        if isinstance(value, cls):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown confirmation depth: {value!r}") from None


class DispositionStatus(Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"


class BlockInfo:
    """
    L2 block that contains an operation.

    Attributes:
        block_number (int): L2 block number
        committed (bool): Block commitment reached the outer chain
        verified (bool): Block proof was accepted on the outer chain
    """

    def __init__(self, block_number: int, committed: bool, verified: bool):
        if block_number < 0:
            raise ValueError("Block number must be non-negative")

        self.block_number = block_number
        self.committed = committed
        self.verified = verified

    def reached(self, depth: ConfirmationDepth) -> bool:
        """Check whether the block has reached a confirmation depth."""
        if depth == ConfirmationDepth.VERIFY:
            return self.verified
        return self.committed

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "block_number": self.block_number,
            "committed": self.committed,
            "verified": self.verified
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BlockInfo":
        """Build from the L2 API's camelCase block object."""
        return cls(
            block_number=int(data.get("blockNumber", data.get("block_number", 0))),
            committed=bool(data.get("committed", False)),
            verified=bool(data.get("verified", False))
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BlockInfo):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return (
            f"BlockInfo(block_number={self.block_number}, "
            f"committed={self.committed}, verified={self.verified})"
        )


class NetworkDisposition:
    """
    Outcome of a single disposition poll.

    Attributes:
        status (DispositionStatus): Pending, success or failure
        fail_reason (Optional[str]): Reason reported by the network, failures only
        payload (Dict[str, Any]): Raw receipt data, opaque to trackers
        block (Optional[BlockInfo]): Containing block, when the network reports one
    """

    def __init__(
        self,
        status: DispositionStatus,
        payload: Optional[Dict[str, Any]] = None,
        fail_reason: Optional[str] = None,
        block: Optional[BlockInfo] = None
    ):
        if status != DispositionStatus.FAILURE and fail_reason is not None:
            raise ValueError("fail_reason is only valid for failed dispositions")

        self.status = status
        self.payload = dict(payload) if payload else {}
        self.fail_reason = fail_reason
        self.block = block

    @classmethod
    def pending(cls, payload: Optional[Dict[str, Any]] = None) -> "NetworkDisposition":
        return cls(DispositionStatus.PENDING, payload)

    @classmethod
    def succeeded(
        cls,
        payload: Optional[Dict[str, Any]] = None,
        block: Optional[BlockInfo] = None
    ) -> "NetworkDisposition":
        return cls(DispositionStatus.SUCCESS, payload, block=block)

    @classmethod
    def failed(
        cls,
        reason: Optional[str],
        payload: Optional[Dict[str, Any]] = None,
        block: Optional[BlockInfo] = None
    ) -> "NetworkDisposition":
        return cls(
            DispositionStatus.FAILURE,
            payload,
            fail_reason=reason or "unknown reason",
            block=block
        )

    @property
    def is_pending(self) -> bool:
        return self.status == DispositionStatus.PENDING

    @property
    def is_success(self) -> bool:
        return self.status == DispositionStatus.SUCCESS

    @property
    def is_failure(self) -> bool:
        return self.status == DispositionStatus.FAILURE

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: Dict[str, Any] = {
            "status": self.status.value,
            "payload": self.payload
        }
        if self.fail_reason is not None:
            result["fail_reason"] = self.fail_reason
        if self.block is not None:
            result["block"] = self.block.to_dict()
        return result

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NetworkDisposition):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        if self.is_failure:
            return f"NetworkDisposition(failure, reason={self.fail_reason!r})"
        return f"NetworkDisposition({self.status.value})"
