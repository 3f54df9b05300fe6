"""
Bounded polling of a NetworkObserver.

The observer performs one round trip per call; this module turns it into
"wait until the network reports a terminal disposition", with a fixed
interval between pending answers, exponential backoff after failed round
trips, a cap on consecutive failures and an overall deadline.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from rollup_observer.disposition import ConfirmationDepth, NetworkDisposition, OperationId
from rollup_observer.observer import NetworkObserver, TransientObservationFault
from .errors import ObservationRetriesExhausted, PollDeadlineExceeded

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]
Clock = Callable[[], float]


class PollPolicy:
    """
    Spacing and limits for disposition polling.

    Attributes:
        poll_interval (float): Seconds between polls that returned pending
        backoff_factor (float): Multiplier applied per consecutive failed round trip
        max_interval (float): Upper bound on any single wait
        max_transient_retries (int): Failed round trips tolerated in a row
        timeout (Optional[float]): Seconds one await may take, None for no limit
    """

    def __init__(
        self,
        poll_interval: float = 1.0,
        backoff_factor: float = 2.0,
        max_interval: float = 30.0,
        max_transient_retries: int = 5,
        timeout: Optional[float] = 3600.0
    ):
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        if backoff_factor < 1.0:
            raise ValueError("backoff_factor must be at least 1")
        if max_interval < poll_interval:
            raise ValueError("max_interval must not be smaller than poll_interval")
        if max_transient_retries < 0:
            raise ValueError("max_transient_retries must be non-negative")
        if timeout is not None and timeout <= 0:
            raise ValueError("timeout must be positive or None")

        self.poll_interval = poll_interval
        self.backoff_factor = backoff_factor
        self.max_interval = max_interval
        self.max_transient_retries = max_transient_retries
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings) -> "PollPolicy":
        """
        Build a policy from PollingSettings.

        Args:
            settings: rollup_common.config.PollingSettings instance

        Returns:
            PollPolicy: Equivalent policy
        """
        return cls(
            poll_interval=settings.poll_interval_seconds,
            backoff_factor=settings.backoff_factor,
            max_interval=max(settings.max_interval_seconds, settings.poll_interval_seconds),
            max_transient_retries=settings.max_transient_retries,
            timeout=settings.timeout_seconds
        )

    def backoff_delay(self, consecutive_faults: int) -> float:
        """Wait after the given number of consecutive failed round trips."""
        exponent = max(consecutive_faults - 1, 0)
        return min(self.poll_interval * self.backoff_factor ** exponent, self.max_interval)

    def __repr__(self) -> str:
        return (
            f"PollPolicy(poll_interval={self.poll_interval}, "
            f"backoff_factor={self.backoff_factor}, max_interval={self.max_interval}, "
            f"max_transient_retries={self.max_transient_retries}, timeout={self.timeout})"
        )


async def poll_until_final(
    observer: NetworkObserver,
    identifier: OperationId,
    depth: ConfirmationDepth,
    policy: Optional[PollPolicy] = None,
    timeout: Optional[float] = None,
    sleep: Sleep = asyncio.sleep,
    clock: Clock = time.monotonic
) -> NetworkDisposition:
    """
    Poll until the network reports success or failure for a depth.

    Args:
        observer: Network observer to query
        identifier: Serial id or transaction hash
        depth: Confirmation depth to wait for
        policy: Polling policy, defaults to PollPolicy()
        timeout: Overrides policy.timeout for this call
        sleep: Coroutine used to wait between polls
        clock: Monotonic clock used for the deadline

    Returns:
        NetworkDisposition: The first success or failure disposition

    Raises:
        ObservationRetriesExhausted: Too many failed round trips in a row
        PollDeadlineExceeded: The deadline passed while still pending
    """
    if policy is None:
        policy = PollPolicy()
    limit = policy.timeout if timeout is None else timeout
    deadline = None if limit is None else clock() + limit

    faults = 0
    polls = 0
    while True:
        polls += 1
        try:
            disposition = await observer.poll_disposition(identifier, depth)
        except TransientObservationFault as e:
            faults += 1
            if faults > policy.max_transient_retries:
                logger.error(
                    "Giving up on %r at %s after %d failed round trips",
                    identifier, depth.action, faults
                )
                raise ObservationRetriesExhausted(identifier, faults, e) from e
            wait = policy.backoff_delay(faults)
            logger.warning(
                "Polling %r at %s failed (%d/%d): %s; retrying in %.2fs",
                identifier, depth.action, faults, policy.max_transient_retries, e, wait
            )
        else:
            faults = 0
            if not disposition.is_pending:
                logger.debug(
                    "%r reached a final %s disposition after %d polls",
                    identifier, depth.action, polls
                )
                return disposition
            wait = policy.poll_interval

        if deadline is not None and clock() + wait > deadline:
            raise PollDeadlineExceeded(identifier, depth.action, limit)
        await sleep(wait)
