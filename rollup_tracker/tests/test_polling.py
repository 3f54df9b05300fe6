"""
Tests for the bounded polling loop.
"""

import pytest
from rollup_observer.disposition import ConfirmationDepth, NetworkDisposition
from rollup_observer.observer import NetworkObserver, TransientObservationFault
from rollup_tracker.errors import ObservationRetriesExhausted, PollDeadlineExceeded
from rollup_tracker.polling import PollPolicy, poll_until_final
from rollup_common.config import PollingSettings

class FakeClock:
    """Manually advanced monotonic clock paired with a sleep that advances it."""

    def __init__(self):
        self.now = 100.0
        self.sleeps = []

    def __call__(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds

class SequenceObserver(NetworkObserver):
    """Observer returning (or raising) scripted answers in order."""

    def __init__(self, answers):
        self.answers = list(answers)
        self.calls = 0

    async def poll_disposition(self, identifier, depth):
        self.calls += 1
        answer = self.answers.pop(0) if len(self.answers) > 1 else self.answers[0]
        if isinstance(answer, Exception):
            raise answer
        return answer

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def policy():
    return PollPolicy(
        poll_interval=1.0,
        backoff_factor=2.0,
        max_interval=5.0,
        max_transient_retries=3,
        timeout=60.0
    )

def test_policy_validation():
    """Test rejection of nonsensical policies."""
    with pytest.raises(ValueError, match="poll_interval"):
        PollPolicy(poll_interval=0)
    with pytest.raises(ValueError, match="backoff_factor"):
        PollPolicy(backoff_factor=0.5)
    with pytest.raises(ValueError, match="max_interval"):
        PollPolicy(poll_interval=10, max_interval=1)
    with pytest.raises(ValueError, match="max_transient_retries"):
        PollPolicy(max_transient_retries=-1)
    with pytest.raises(ValueError, match="timeout"):
        PollPolicy(timeout=0)

    assert PollPolicy(timeout=None).timeout is None

def test_backoff_delay(policy):
    """Test exponential backoff with a cap."""
    assert policy.backoff_delay(1) == 1.0
    assert policy.backoff_delay(2) == 2.0
    assert policy.backoff_delay(3) == 4.0
    assert policy.backoff_delay(4) == 5.0

def test_policy_from_settings():
    """Test building a policy from configuration."""
    settings = PollingSettings(
        poll_interval_seconds=0.5,
        backoff_factor=3.0,
        max_interval_seconds=10.0,
        max_transient_retries=2,
        timeout_seconds=None
    )
    policy = PollPolicy.from_settings(settings)

    assert policy.poll_interval == 0.5
    assert policy.backoff_factor == 3.0
    assert policy.max_interval == 10.0
    assert policy.max_transient_retries == 2
    assert policy.timeout is None

@pytest.mark.asyncio
async def test_returns_first_terminal(clock, policy):
    """Test that pending answers are polled through at the fixed interval."""
    done = NetworkDisposition.succeeded({"executed": True})
    observer = SequenceObserver([
        NetworkDisposition.pending(),
        NetworkDisposition.pending(),
        done
    ])

    result = await poll_until_final(
        observer, 42, ConfirmationDepth.COMMIT, policy, sleep=clock.sleep, clock=clock
    )

    assert result is done
    assert observer.calls == 3
    assert clock.sleeps == [1.0, 1.0]

@pytest.mark.asyncio
async def test_failure_is_terminal(clock, policy):
    """Test that a failure disposition ends polling immediately."""
    observer = SequenceObserver([NetworkDisposition.failed("invalid priority op")])

    result = await poll_until_final(
        observer, 42, ConfirmationDepth.COMMIT, policy, sleep=clock.sleep, clock=clock
    )

    assert result.is_failure
    assert observer.calls == 1
    assert clock.sleeps == []

@pytest.mark.asyncio
async def test_transient_faults_are_retried(clock, policy):
    """Test backoff after failed round trips and reset after a good one."""
    fault = TransientObservationFault("connection reset")
    observer = SequenceObserver([
        fault,
        fault,
        NetworkDisposition.pending(),
        fault,
        NetworkDisposition.succeeded()
    ])

    result = await poll_until_final(
        observer, "sync-tx:01", ConfirmationDepth.VERIFY, policy, sleep=clock.sleep, clock=clock
    )

    assert result.is_success
    assert observer.calls == 5
    assert clock.sleeps == [1.0, 2.0, 1.0, 1.0]

@pytest.mark.asyncio
async def test_retries_exhausted(clock, policy):
    """Test escalation after too many consecutive faults."""
    fault = TransientObservationFault("node down")
    observer = SequenceObserver([fault])

    with pytest.raises(ObservationRetriesExhausted) as info:
        await poll_until_final(
            observer, 42, ConfirmationDepth.COMMIT, policy, sleep=clock.sleep, clock=clock
        )

    assert observer.calls == policy.max_transient_retries + 1
    assert info.value.attempts == 4
    assert info.value.last_fault is fault
    assert info.value.__cause__ is fault
    assert clock.sleeps == [1.0, 2.0, 4.0]

@pytest.mark.asyncio
async def test_no_retries(clock):
    """Test that zero retries gives up on the first fault."""
    observer = SequenceObserver([TransientObservationFault("boom")])
    policy = PollPolicy(max_transient_retries=0)

    with pytest.raises(ObservationRetriesExhausted):
        await poll_until_final(
            observer, 1, ConfirmationDepth.COMMIT, policy, sleep=clock.sleep, clock=clock
        )
    assert observer.calls == 1

@pytest.mark.asyncio
async def test_deadline(clock, policy):
    """Test that polling stops at the deadline while still pending."""
    observer = SequenceObserver([NetworkDisposition.pending()])

    with pytest.raises(PollDeadlineExceeded) as info:
        await poll_until_final(
            observer, 42, ConfirmationDepth.VERIFY, policy,
            timeout=5.0, sleep=clock.sleep, clock=clock
        )

    assert observer.calls == 6
    assert clock.now == 105.0
    assert info.value.timeout == 5.0
    assert not info.value.fatal
    assert "VERIFY" in str(info.value)

@pytest.mark.asyncio
async def test_no_deadline(clock):
    """Test polling with the deadline disabled."""
    answers = [NetworkDisposition.pending()] * 500 + [NetworkDisposition.succeeded()]
    observer = SequenceObserver(answers)
    policy = PollPolicy(poll_interval=10.0, max_interval=10.0, timeout=None)

    result = await poll_until_final(
        observer, 42, ConfirmationDepth.COMMIT, policy, sleep=clock.sleep, clock=clock
    )

    assert result.is_success
    assert observer.calls == 501
