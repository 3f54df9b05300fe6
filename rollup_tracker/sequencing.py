"""
Depth sequencing shared by both trackers.

A LifecycleRecord is the mutable core of a tracker: its state, its stored
error and the receipt obtained at each depth. confirm_depth() drives one
depth step against the network and records the outcome on the record.
"""

import logging
from enum import Enum
from typing import Callable, Dict, Optional, Type

from rollup_observer.disposition import ConfirmationDepth, NetworkDisposition, OperationId
from rollup_observer.observer import NetworkObserver
from .errors import ObservationFault, PollDeadlineExceeded, Rejection, TrackerError
from .polling import PollPolicy, poll_until_final
from .result import TrackResult
from .states import (
    LifecycleState,
    check_transition,
    has_reached,
    initial_state,
    is_failed,
    is_terminal,
    state_for_depth
)

logger = logging.getLogger(__name__)


class LifecycleRecord:
    """
    State, error and receipts of one tracked operation.

    Attributes:
        state_cls (Type[Enum]): OuterChainState or SidechainState
        label (str): Name used in log messages
        state (LifecycleState): Current state
        error (Optional[TrackerError]): Stored error, set only when failed
        receipts (Dict[ConfirmationDepth, NetworkDisposition]): Receipt per reached depth
    """

    def __init__(self, state_cls: Type[Enum], label: str):
        self.state_cls = state_cls
        self.label = label
        self.state: LifecycleState = initial_state(state_cls)
        self.error: Optional[TrackerError] = None
        self.receipts: Dict[ConfirmationDepth, NetworkDisposition] = {}

    @property
    def failed(self) -> bool:
        return is_failed(self.state)

    def advance(self, target: LifecycleState) -> None:
        """
        Move one step forward.

        Raises:
            InvalidTransition: If target is not the next state
        """
        check_transition(self.state, target)
        logger.info("%s: %s -> %s", self.label, self.state.value, target.value)
        self.state = target

    def fail(self, error: TrackerError) -> TrackerError:
        """
        Move to Failed and store the error.

        A record fails at most once; later calls return the first error. A
        record that already reached Verified stays there and the late error
        is only logged.

        Args:
            error: Fatal error that stopped the operation

        Returns:
            TrackerError: The stored error, or the late error itself when the
                record is already Verified
        """
        if self.failed:
            return self.error
        if is_terminal(self.state):
            logger.warning("%s: ignoring error after %s: %s", self.label, self.state.value, error)
            return error
        check_transition(self.state, self.state_cls.FAILED)
        logger.error("%s: %s -> Failed: %s", self.label, self.state.value, error)
        self.state = self.state_cls.FAILED
        self.error = error
        return error

    def fail_at(self, depth: ConfirmationDepth, error: TrackerError) -> TrackResult:
        """
        Fail the record at a depth unless the depth has been settled already.

        Args:
            depth: Depth whose confirmation produced the error
            error: Fatal error that stopped the operation

        Returns:
            TrackResult: The first settled outcome of the depth
        """
        settled = self.settled(depth)
        if settled is not None:
            return settled
        return TrackResult.failure(self.fail(error))

    def settled(self, depth: ConfirmationDepth) -> Optional[TrackResult]:
        """
        Get the outcome of a depth without touching the network.

        Returns:
            The stored error if failed, the cached receipt if the depth was
            reached, otherwise None
        """
        if self.failed:
            return TrackResult.failure(self.error)
        if has_reached(self.state, depth):
            return TrackResult.success(self.receipts[depth])
        return None

    def to_dict(self) -> Dict[str, object]:
        """Convert to dictionary for diagnostics."""
        return {
            "state": self.state.value,
            "error": self.error.to_dict() if self.error else None,
            "receipts": {
                depth.action: receipt.to_dict()
                for depth, receipt in sorted(self.receipts.items())
            }
        }


async def confirm_depth(
    record: LifecycleRecord,
    observer: NetworkObserver,
    identifier: OperationId,
    depth: ConfirmationDepth,
    policy: PollPolicy,
    timeout: Optional[float],
    rejection_message: Callable[[str], str]
) -> TrackResult:
    """
    Take a record one depth further.

    The record must already be in the state just before the depth (or have
    reached or failed it, in which case nothing is polled).

    Args:
        record: Record of the tracker being driven
        observer: Network observer to poll
        identifier: Serial id or transaction hash
        depth: Depth to confirm
        policy: Polling policy
        timeout: Overrides policy.timeout for this await
        rejection_message: Builds the Rejection message from the network's reason

    Returns:
        TrackResult: Receipt for the depth, or the error that stopped it
    """
    settled = record.settled(depth)
    if settled is not None:
        return settled

    target = state_for_depth(record.state_cls, depth)
    try:
        disposition = await poll_until_final(observer, identifier, depth, policy, timeout)
    except PollDeadlineExceeded as e:
        # Another await on the same tracker may have settled this step meanwhile
        settled = record.settled(depth)
        if settled is not None:
            return settled
        logger.warning("%s: %s", record.label, e)
        return TrackResult.failure(e)
    except ObservationFault as e:
        return record.fail_at(depth, e)

    if disposition.is_failure:
        rejection = Rejection(
            rejection_message(disposition.fail_reason),
            disposition.fail_reason,
            disposition
        )
        return record.fail_at(depth, rejection)

    settled = record.settled(depth)
    if settled is not None:
        return settled

    record.receipts[depth] = disposition
    record.advance(target)
    return TrackResult.success(disposition)
