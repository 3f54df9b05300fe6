"""
Rollup Tracker - Tracker Module

This module implements the lifecycle trackers for operations that move
through the outer chain and the L2 rollup network: the state machines, the
bounded polling protocol and the classification of failures.
"""

from .errors import (
    ErrorCategory,
    IdentifierExtractionFault,
    InclusionTimeout,
    ObservationFault,
    ObservationRetriesExhausted,
    PollDeadlineExceeded,
    Rejection,
    SubmissionFault,
    TrackerError,
    TransientObservationFault
)
from .outer_chain import OuterChainOperation
from .polling import PollPolicy, poll_until_final
from .receipts import (
    InclusionReceipt,
    LogEntry,
    MinedTransaction,
    OuterChainTransaction,
    PriorityQueueEventParser
)
from .result import TrackResult
from .sidechain import SidechainOperation
from .states import OuterChainState, SidechainState
from .submission import await_all, submit_batch, submit_transaction, track_priority_operation

__all__ = [
    'ErrorCategory',
    'IdentifierExtractionFault',
    'InclusionTimeout',
    'ObservationFault',
    'ObservationRetriesExhausted',
    'PollDeadlineExceeded',
    'Rejection',
    'SubmissionFault',
    'TrackerError',
    'TransientObservationFault',
    'OuterChainOperation',
    'PollPolicy',
    'poll_until_final',
    'InclusionReceipt',
    'LogEntry',
    'MinedTransaction',
    'OuterChainTransaction',
    'PriorityQueueEventParser',
    'TrackResult',
    'SidechainOperation',
    'OuterChainState',
    'SidechainState',
    'await_all',
    'submit_batch',
    'submit_transaction',
    'track_priority_operation'
]
