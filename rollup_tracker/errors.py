"""
Error classification for operation trackers.

Every fatal condition moves a tracker to its Failed state exactly once and
is surfaced verbatim on that call and on every later await. Only
TransientObservationFault (a single failed round trip) is retried, and only
by the polling loop.
"""

from enum import Enum
from typing import Optional

from rollup_observer.disposition import NetworkDisposition, OperationId
from rollup_observer.observer import TransientObservationFault


class ErrorCategory(Enum):
    REJECTION = "rejection"
    OBSERVATION_FAULT = "observation_fault"
    SUBMISSION_FAULT = "submission_fault"
    INCLUSION_TIMEOUT = "inclusion_timeout"
    DEADLINE = "deadline"


class TrackerError(Exception):
    """
    Base class for everything a tracker reports to its caller.

    Attributes:
        category (ErrorCategory): Classification of the failure
        fatal (bool): Whether the error moves the tracker to Failed
    """

    category = ErrorCategory.OBSERVATION_FAULT
    fatal = True

    def to_dict(self):
        """Convert to dictionary for diagnostics."""
        return {
            "type": type(self).__name__,
            "category": self.category.value,
            "message": str(self)
        }


class SubmissionFault(TrackerError):
    """The submission interface refused or failed to accept an operation."""

    category = ErrorCategory.SUBMISSION_FAULT


class InclusionTimeout(TrackerError):
    """The outer chain never reported the transaction as included."""

    category = ErrorCategory.INCLUSION_TIMEOUT

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        super().__init__(message)
        self.tx_hash = tx_hash


class ObservationFault(TrackerError):
    """Progress could not be established because a precondition is broken."""

    category = ErrorCategory.OBSERVATION_FAULT


class IdentifierExtractionFault(ObservationFault):
    """
    The inclusion receipt carries no usable priority-queue log.

    Attributes:
        tx_hash (Optional[str]): Outer-chain transaction the receipt belongs to
    """

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        super().__init__(message)
        self.tx_hash = tx_hash


class ObservationRetriesExhausted(ObservationFault):
    """
    Polling gave up after too many consecutive failed round trips.

    Attributes:
        identifier (OperationId): Operation being observed
        attempts (int): Number of failed round trips
        last_fault (TransientObservationFault): Final round trip failure
    """

    def __init__(
        self,
        identifier: OperationId,
        attempts: int,
        last_fault: TransientObservationFault
    ):
        super().__init__(
            f"Observation of {identifier!r} failed {attempts} times in a row: {last_fault}"
        )
        self.identifier = identifier
        self.attempts = attempts
        self.last_fault = last_fault


class Rejection(TrackerError):
    """
    The network explicitly reported that the operation did not succeed.

    Attributes:
        reason (str): Reason reported by the network, verbatim
        disposition (NetworkDisposition): Raw disposition, for diagnostics
    """

    category = ErrorCategory.REJECTION

    def __init__(self, message: str, reason: str, disposition: NetworkDisposition):
        super().__init__(message)
        self.reason = reason
        self.disposition = disposition

    def to_dict(self):
        result = super().to_dict()
        result["reason"] = self.reason
        result["disposition"] = self.disposition.to_dict()
        return result


class PollDeadlineExceeded(TrackerError):
    """
    The await deadline passed while the network still reported pending.

    Not fatal: the tracker keeps its state and may be awaited again.
    """

    category = ErrorCategory.DEADLINE
    fatal = False

    def __init__(self, identifier: OperationId, depth_name: str, timeout: float):
        super().__init__(
            f"{identifier!r} did not reach {depth_name} within {timeout:g} seconds"
        )
        self.identifier = identifier
        self.timeout = timeout


__all__ = [
    'ErrorCategory',
    'TrackerError',
    'SubmissionFault',
    'InclusionTimeout',
    'ObservationFault',
    'IdentifierExtractionFault',
    'ObservationRetriesExhausted',
    'Rejection',
    'PollDeadlineExceeded',
    'TransientObservationFault'
]
