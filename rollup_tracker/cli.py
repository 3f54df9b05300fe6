"""
rollup-watch: follow an L2 operation from the command line.

Polls the configured L2 JSON-RPC endpoint until an L2 transaction or a
priority operation reaches the requested depth, printing each state reached.

Exit codes: 0 when the depth was reached, 1 on rejection or observation
fault, 2 when the deadline passed while the operation was still pending.
"""

import asyncio
import sys
from typing import Optional

import click

from rollup_common.config import load_settings
from rollup_common.logging_utils import configure_logging, get_logger
from rollup_observer.disposition import ConfirmationDepth, OperationId
from rollup_observer.rpc import JsonRpcObserver
from .errors import PollDeadlineExceeded, TrackerError
from .outer_chain import OuterChainOperation
from .polling import PollPolicy
from .sidechain import SidechainOperation
from .submission import Tracker

EXIT_FAILED = 1
EXIT_DEADLINE = 2


def _build_policy(timeout: Optional[float], poll_interval: Optional[float]) -> PollPolicy:
    settings = load_settings().polling
    policy = PollPolicy.from_settings(settings)
    if poll_interval is not None:
        policy = PollPolicy(
            poll_interval=poll_interval,
            backoff_factor=policy.backoff_factor,
            max_interval=max(policy.max_interval, poll_interval),
            max_transient_retries=policy.max_transient_retries,
            timeout=policy.timeout
        )
    if timeout is not None:
        policy.timeout = timeout if timeout > 0 else None
    return policy


async def _watch(tracker: Tracker, label: str, depth: ConfirmationDepth) -> None:
    click.echo(f"{label}: {tracker.state.value}")

    receipt = await tracker.await_commit()
    click.echo(f"{label}: {tracker.state.value} (block {_block_number(receipt)})")
    if depth == ConfirmationDepth.VERIFY:
        receipt = await tracker.await_verify()
        click.echo(f"{label}: {tracker.state.value} (block {_block_number(receipt)})")


def _block_number(receipt) -> str:
    if receipt.block is None:
        return "unknown"
    return str(receipt.block.block_number)


def _run(identifier: OperationId, depth: str, rpc_url: Optional[str],
         timeout: Optional[float], poll_interval: Optional[float]) -> None:
    configure_logging()
    logger = get_logger(__name__)
    settings = load_settings()
    target = ConfirmationDepth.parse(depth)
    policy = _build_policy(timeout, poll_interval)
    url = rpc_url or settings.observer.rpc_url

    async def main() -> None:
        rpc_timeout = settings.observer.request_timeout_seconds
        async with JsonRpcObserver(url, timeout=rpc_timeout) as observer:
            if isinstance(identifier, int):
                tracker = OuterChainOperation.from_serial_id(identifier, observer, policy)
                label = f"priority op {identifier}"
            else:
                tracker = SidechainOperation(identifier, observer, policy)
                label = identifier
            await _watch(tracker, label, target)

    logger.info("Watching %r until %s via %s", identifier, target.action, url)
    try:
        asyncio.run(main())
    except PollDeadlineExceeded as e:
        click.echo(f"Still pending: {e}", err=True)
        sys.exit(EXIT_DEADLINE)
    except TrackerError as e:
        click.echo(f"Failed: {e}", err=True)
        sys.exit(EXIT_FAILED)


_depth_option = click.option(
    "--depth",
    type=click.Choice(["commit", "verify"], case_sensitive=False),
    default="commit",
    show_default=True,
    help="Confirmation depth to wait for"
)
_rpc_option = click.option("--rpc-url", default=None, help="L2 JSON-RPC endpoint")
_timeout_option = click.option(
    "--timeout", type=float, default=None, help="Seconds to wait per step, 0 for no limit"
)
_interval_option = click.option(
    "--poll-interval", type=float, default=None, help="Seconds between polls"
)


@click.group()
def main():
    """Watch rollup operations until they are committed or verified."""


@main.command("tx")
@click.argument("tx_hash")
@_depth_option
@_rpc_option
@_timeout_option
@_interval_option
def watch_tx(tx_hash, depth, rpc_url, timeout, poll_interval):
    """Watch an L2 transaction by hash."""
    _run(tx_hash, depth, rpc_url, timeout, poll_interval)


@main.command("priority-op")
@click.argument("serial_id", type=click.IntRange(min=0))
@_depth_option
@_rpc_option
@_timeout_option
@_interval_option
def watch_priority_op(serial_id, depth, rpc_url, timeout, poll_interval):
    """Watch a priority operation by serial id."""
    _run(serial_id, depth, rpc_url, timeout, poll_interval)


if __name__ == "__main__":
    main()
