"""
Implementation of the OuterChainOperation tracker.

Follows an operation sent to the outer chain (a deposit, an emergency exit)
until the L2 network has picked it up as a priority operation, committed it
and verified the block that contains it.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from rollup_observer.disposition import ConfirmationDepth, NetworkDisposition
from rollup_observer.observer import NetworkObserver
from .errors import IdentifierExtractionFault, InclusionTimeout, TrackerError
from .polling import PollPolicy
from .receipts import (
    InclusionReceipt,
    MinedTransaction,
    OuterChainTransaction,
    PriorityQueueEventParser
)
from .result import TrackResult
from .sequencing import LifecycleRecord, confirm_depth
from .states import OuterChainState

logger = logging.getLogger(__name__)


class OuterChainOperation:
    """
    Tracks an outer-chain operation through Submitted, Mined, Committed
    and Verified.

    Attributes:
        eth_tx (OuterChainTransaction): Handle on the submitted transaction
        observer (NetworkObserver): L2 network observer
        parser (Optional[PriorityQueueEventParser]): Finds the serial id in the
            receipt; None when the serial id was given up front
        policy (PollPolicy): Polling policy for the L2 steps
        priority_op_id (Optional[int]): Serial id, known once Mined
        inclusion_receipt (Optional[InclusionReceipt]): Outer-chain receipt, once Mined
    """

    def __init__(
        self,
        eth_tx: OuterChainTransaction,
        observer: NetworkObserver,
        parser: Optional[PriorityQueueEventParser],
        policy: Optional[PollPolicy] = None
    ):
        self.eth_tx = eth_tx
        self.observer = observer
        self.parser = parser
        self.policy = policy or PollPolicy()

        self.priority_op_id: Optional[int] = None
        self.inclusion_receipt: Optional[InclusionReceipt] = None
        self._record = LifecycleRecord(OuterChainState, f"outer-chain op {eth_tx.hash}")

    @classmethod
    def from_serial_id(
        cls,
        serial_id: int,
        observer: NetworkObserver,
        policy: Optional[PollPolicy] = None,
        eth_tx_hash: Optional[str] = None
    ) -> "OuterChainOperation":
        """
        Track a priority operation whose serial id is already known.

        The tracker starts in Mined and only follows the L2 network.

        Args:
            serial_id: Priority operation serial id
            observer: L2 network observer
            policy: Polling policy for the L2 steps
            eth_tx_hash: Outer-chain transaction hash, if known

        Returns:
            OuterChainOperation: Tracker in the Mined state
        """
        if serial_id < 0:
            raise ValueError("serial_id must be non-negative")
        receipt = InclusionReceipt(eth_tx_hash or f"priority-op:{serial_id}", [])
        op = cls(MinedTransaction(receipt), observer, None, policy)
        op.inclusion_receipt = receipt
        op.priority_op_id = serial_id
        op._record.advance(OuterChainState.MINED)
        return op

    @property
    def state(self) -> OuterChainState:
        return self._record.state

    @property
    def error(self) -> Optional[TrackerError]:
        return self._record.error

    def current_state(self) -> OuterChainState:
        return self._record.state

    def last_error(self) -> Optional[TrackerError]:
        return self._record.error

    async def track_inclusion(self) -> Optional[TrackerError]:
        """
        Wait for outer-chain inclusion and extract the serial id.

        Returns:
            None once Mined (or beyond), otherwise the stored error
        """
        if self._record.failed:
            return self._record.error
        if self.state != OuterChainState.SUBMITTED:
            return None

        try:
            receipt = await self.eth_tx.wait()
        except (InclusionTimeout, asyncio.TimeoutError) as e:
            if self.state != OuterChainState.SUBMITTED:
                return self._record.error
            if isinstance(e, InclusionTimeout):
                return self._record.fail(e)
            timeout = InclusionTimeout(
                f"Outer-chain transaction {self.eth_tx.hash} was not included", self.eth_tx.hash
            )
            timeout.__cause__ = e
            return self._record.fail(timeout)

        if self.state != OuterChainState.SUBMITTED:
            # Settled by a concurrent await while this one waited
            return self._record.error

        try:
            serial_id = self.parser.extract_serial_id(receipt)
        except IdentifierExtractionFault as e:
            return self._record.fail(e)

        self.inclusion_receipt = receipt
        self.priority_op_id = serial_id
        self._record.advance(OuterChainState.MINED)
        logger.info("Outer-chain op %s has priority serial id %d", self.eth_tx.hash, serial_id)
        return None

    async def await_inclusion(self) -> InclusionReceipt:
        """
        Wait until the outer chain includes the transaction.

        Returns:
            InclusionReceipt: Receipt the serial id was extracted from

        Raises:
            TrackerError: InclusionTimeout, IdentifierExtractionFault, or the
                error stored by an earlier failure
        """
        error = await self.track_inclusion()
        if error is not None:
            raise error
        return self.inclusion_receipt

    async def track_commit(self, timeout: Optional[float] = None) -> TrackResult:
        """
        Wait until the L2 network has processed the priority operation.

        Args:
            timeout: Overrides the policy deadline for the L2 polling

        Returns:
            TrackResult: COMMIT receipt, or the error that stopped the operation
        """
        settled = self._record.settled(ConfirmationDepth.COMMIT)
        if settled is not None:
            return settled

        error = await self.track_inclusion()
        if error is not None:
            return TrackResult.failure(error)

        return await confirm_depth(
            self._record,
            self.observer,
            self.priority_op_id,
            ConfirmationDepth.COMMIT,
            self.policy,
            timeout,
            lambda reason: f"Priority operation failed: {reason}"
        )

    async def track_verify(self, timeout: Optional[float] = None) -> TrackResult:
        """
        Wait until the block containing the priority operation is verified.

        Sequences through inclusion and commit first; the first failure
        stops the sequence.

        Args:
            timeout: Overrides the policy deadline for each L2 polling step

        Returns:
            TrackResult: VERIFY receipt, or the error that stopped the operation
        """
        committed = await self.track_commit(timeout)
        if not committed.ok:
            return committed

        return await confirm_depth(
            self._record,
            self.observer,
            self.priority_op_id,
            ConfirmationDepth.VERIFY,
            self.policy,
            timeout,
            lambda reason: f"Priority operation failed verification: {reason}"
        )

    async def await_commit(self, timeout: Optional[float] = None) -> NetworkDisposition:
        """
        Wait for COMMIT and return its receipt.

        Raises:
            TrackerError: The error that stopped the operation
        """
        result = await self.track_commit(timeout)
        return result.unwrap()

    async def await_verify(self, timeout: Optional[float] = None) -> NetworkDisposition:
        """
        Wait for VERIFY and return its receipt.

        Raises:
            TrackerError: The error that stopped the operation
        """
        result = await self.track_verify(timeout)
        return result.unwrap()

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot of the tracker for diagnostics."""
        result = self._record.to_dict()
        result["kind"] = "outer_chain"
        result["eth_tx_hash"] = self.eth_tx.hash
        result["priority_op_id"] = self.priority_op_id
        return result

    def __repr__(self) -> str:
        return (
            f"OuterChainOperation(eth_tx={self.eth_tx.hash!r}, "
            f"state={self.state.value}, priority_op_id={self.priority_op_id})"
        )
