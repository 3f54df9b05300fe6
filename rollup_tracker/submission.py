"""
Helpers that turn a submission into a tracker.

Signing and payload construction happen before these are called; they only
hand a signed payload to the L2 endpoint (or take an outer-chain handle) and
return the matching tracker.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from rollup_observer.disposition import ConfirmationDepth
from rollup_observer.observer import NetworkObserver, TransientObservationFault
from .errors import SubmissionFault
from .outer_chain import OuterChainOperation
from .polling import PollPolicy
from .receipts import OuterChainTransaction, PriorityQueueEventParser
from .result import TrackResult
from .sidechain import SidechainOperation

logger = logging.getLogger(__name__)

Tracker = Union[OuterChainOperation, SidechainOperation]


async def submit_transaction(
    provider,
    tx: Dict[str, Any],
    signature: Optional[Dict[str, Any]] = None,
    observer: Optional[NetworkObserver] = None,
    policy: Optional[PollPolicy] = None,
    fast_processing: Optional[bool] = None
) -> SidechainOperation:
    """
    Submit a signed L2 transaction and start tracking it.

    Args:
        provider: Object exposing submit_tx(), such as JsonRpcObserver
        tx: Signed transaction payload
        signature: Optional outer-chain signature for the payload
        observer: Observer for the tracker, defaults to the provider
        policy: Polling policy for the tracker
        fast_processing: Ask the node to seal a block early

    Returns:
        SidechainOperation: Tracker in the Sent state

    Raises:
        SubmissionFault: If the endpoint refused the transaction
    """
    try:
        tx_hash = await provider.submit_tx(tx, signature, fast_processing)
    except TransientObservationFault as e:
        raise SubmissionFault(f"Transaction submission failed: {e}") from e

    if not isinstance(tx_hash, str) or not tx_hash:
        raise SubmissionFault(f"Submission returned no transaction hash: {tx_hash!r}")

    logger.info("Submitted L2 tx %s", tx_hash)
    return SidechainOperation(tx_hash, observer or provider, policy, tx_data=tx)


async def submit_batch(
    provider,
    txs: Sequence[Dict[str, Any]],
    observer: Optional[NetworkObserver] = None,
    policy: Optional[PollPolicy] = None
) -> List[SidechainOperation]:
    """
    Submit several signed transactions in one request.

    Args:
        provider: Object exposing submit_txs_batch(), such as JsonRpcObserver
        txs: Items of the form {"tx": ..., "signature": ...}
        observer: Observer for the trackers, defaults to the provider
        policy: Polling policy for the trackers

    Returns:
        List[SidechainOperation]: One tracker per transaction, in order

    Raises:
        SubmissionFault: If the endpoint refused the batch or answered with
            the wrong number of hashes
    """
    if not txs:
        return []

    try:
        hashes = await provider.submit_txs_batch(list(txs))
    except TransientObservationFault as e:
        raise SubmissionFault(f"Batch submission failed: {e}") from e

    if not isinstance(hashes, list) or len(hashes) != len(txs):
        raise SubmissionFault(
            f"Batch of {len(txs)} transactions returned {hashes!r} as hashes"
        )

    logger.info("Submitted batch of %d L2 txs", len(hashes))
    return [
        SidechainOperation(tx_hash, observer or provider, policy, tx_data=item.get("tx"))
        for tx_hash, item in zip(hashes, txs)
    ]


def track_priority_operation(
    eth_tx: OuterChainTransaction,
    observer: NetworkObserver,
    parser: PriorityQueueEventParser,
    policy: Optional[PollPolicy] = None
) -> OuterChainOperation:
    """Start tracking an operation already sent to the outer chain."""
    return OuterChainOperation(eth_tx, observer, parser, policy)


async def await_all(
    trackers: Sequence[Tracker],
    depth: ConfirmationDepth = ConfirmationDepth.COMMIT,
    timeout: Optional[float] = None
) -> List[TrackResult]:
    """
    Await many independent trackers concurrently.

    Args:
        trackers: Trackers to drive
        depth: Depth each tracker must reach
        timeout: Per-step deadline override

    Returns:
        List[TrackResult]: One result per tracker, in order
    """
    if depth == ConfirmationDepth.VERIFY:
        steps = [tracker.track_verify(timeout) for tracker in trackers]
    else:
        steps = [tracker.track_commit(timeout) for tracker in trackers]
    return list(await asyncio.gather(*steps))
