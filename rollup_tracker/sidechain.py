"""
Implementation of the SidechainOperation tracker.

Follows a transaction submitted directly to the L2 network. Its hash is
known at submission, so there is no inclusion step.
"""

from typing import Any, Dict, Optional

from rollup_observer.disposition import ConfirmationDepth, NetworkDisposition
from rollup_observer.observer import NetworkObserver
from .errors import TrackerError
from .polling import PollPolicy
from .result import TrackResult
from .sequencing import LifecycleRecord, confirm_depth
from .states import SidechainState


class SidechainOperation:
    """
    Tracks an L2 transaction through Sent, Committed and Verified.

    Attributes:
        tx_hash (str): L2 transaction hash
        observer (NetworkObserver): L2 network observer
        policy (PollPolicy): Polling policy
        tx_data (Optional[Dict[str, Any]]): Submitted payload, kept for the caller
    """

    def __init__(
        self,
        tx_hash: str,
        observer: NetworkObserver,
        policy: Optional[PollPolicy] = None,
        tx_data: Optional[Dict[str, Any]] = None
    ):
        if not tx_hash:
            raise ValueError("tx_hash is required")

        self.tx_hash = tx_hash
        self.observer = observer
        self.policy = policy or PollPolicy()
        self.tx_data = tx_data
        self._record = LifecycleRecord(SidechainState, f"L2 tx {tx_hash}")

    @property
    def state(self) -> SidechainState:
        return self._record.state

    @property
    def error(self) -> Optional[TrackerError]:
        return self._record.error

    def current_state(self) -> SidechainState:
        return self._record.state

    def last_error(self) -> Optional[TrackerError]:
        return self._record.error

    async def track_commit(self, timeout: Optional[float] = None) -> TrackResult:
        """Wait until the network includes the transaction and reports success."""
        return await confirm_depth(
            self._record,
            self.observer,
            self.tx_hash,
            ConfirmationDepth.COMMIT,
            self.policy,
            timeout,
            lambda reason: f"Transaction failed: {reason}"
        )

    async def track_verify(self, timeout: Optional[float] = None) -> TrackResult:
        """Wait until the block containing the transaction is verified."""
        committed = await self.track_commit(timeout)
        if not committed.ok:
            return committed

        return await confirm_depth(
            self._record,
            self.observer,
            self.tx_hash,
            ConfirmationDepth.VERIFY,
            self.policy,
            timeout,
            lambda reason: f"Transaction failed verification: {reason}"
        )

    async def await_commit(self, timeout: Optional[float] = None) -> NetworkDisposition:
        result = await self.track_commit(timeout)
        return result.unwrap()

    async def await_verify(self, timeout: Optional[float] = None) -> NetworkDisposition:
        result = await self.track_verify(timeout)
        return result.unwrap()

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot of the tracker for diagnostics."""
        result = self._record.to_dict()
        result["kind"] = "sidechain"
        result["tx_hash"] = self.tx_hash
        return result

    def __repr__(self) -> str:
        return f"SidechainOperation(tx_hash={self.tx_hash!r}, state={self.state.value})"
