"""
Tests for the lifecycle state machines.
"""

import pytest
from rollup_observer.disposition import ConfirmationDepth
from rollup_tracker.states import (
    InvalidTransition,
    OuterChainState,
    SidechainState,
    can_transition,
    check_transition,
    has_reached,
    initial_state,
    is_terminal,
    lifecycle,
    rank,
    state_for_depth
)

def test_lifecycles():
    """Test the ordered states of both lifecycles."""
    assert lifecycle(OuterChainState) == [
        OuterChainState.SUBMITTED,
        OuterChainState.MINED,
        OuterChainState.COMMITTED,
        OuterChainState.VERIFIED
    ]
    assert lifecycle(SidechainState) == [
        SidechainState.SENT,
        SidechainState.COMMITTED,
        SidechainState.VERIFIED
    ]
    assert initial_state(OuterChainState) == OuterChainState.SUBMITTED
    assert initial_state(SidechainState) == SidechainState.SENT

    with pytest.raises(TypeError):
        lifecycle(ConfirmationDepth)
    with pytest.raises(TypeError):
        initial_state(ConfirmationDepth)

def test_rank():
    """Test state ranks, with Failed outside the ordering."""
    assert rank(OuterChainState.SUBMITTED) == 0
    assert rank(OuterChainState.VERIFIED) == 3
    assert rank(SidechainState.COMMITTED) == 1
    assert rank(SidechainState.FAILED) is None

def test_forward_single_steps():
    """Test that only the next state is reachable."""
    assert can_transition(OuterChainState.SUBMITTED, OuterChainState.MINED)
    assert can_transition(OuterChainState.MINED, OuterChainState.COMMITTED)
    assert can_transition(OuterChainState.COMMITTED, OuterChainState.VERIFIED)
    assert can_transition(SidechainState.SENT, SidechainState.COMMITTED)

    # Skipping a state
    assert not can_transition(OuterChainState.SUBMITTED, OuterChainState.COMMITTED)
    # Going backwards
    assert not can_transition(SidechainState.VERIFIED, SidechainState.COMMITTED)
    assert not can_transition(OuterChainState.COMMITTED, OuterChainState.MINED)
    # Staying put
    assert not can_transition(SidechainState.SENT, SidechainState.SENT)

def test_failure_transitions():
    """Test that Failed absorbs from every non-terminal state."""
    for state in (OuterChainState.SUBMITTED, OuterChainState.MINED, OuterChainState.COMMITTED):
        assert can_transition(state, OuterChainState.FAILED)

    assert not can_transition(OuterChainState.FAILED, OuterChainState.FAILED)
    assert not can_transition(OuterChainState.FAILED, OuterChainState.MINED)
    assert not can_transition(SidechainState.VERIFIED, SidechainState.FAILED)
    assert is_terminal(SidechainState.FAILED)
    assert is_terminal(SidechainState.VERIFIED)
    assert not is_terminal(SidechainState.COMMITTED)

def test_mixed_lifecycles():
    """Test that states of different lifecycles never mix."""
    assert not can_transition(OuterChainState.MINED, SidechainState.COMMITTED)
    assert not can_transition(SidechainState.SENT, OuterChainState.FAILED)

def test_check_transition():
    """Test that invalid moves raise."""
    check_transition(SidechainState.SENT, SidechainState.COMMITTED)

    with pytest.raises(InvalidTransition, match="Cannot move from Submitted to Verified"):
        check_transition(OuterChainState.SUBMITTED, OuterChainState.VERIFIED)

    assert issubclass(InvalidTransition, ValueError)

def test_depths():
    """Test mapping between depths and states."""
    assert state_for_depth(OuterChainState, ConfirmationDepth.COMMIT) == OuterChainState.COMMITTED
    assert state_for_depth(SidechainState, ConfirmationDepth.VERIFY) == SidechainState.VERIFIED

    assert not has_reached(OuterChainState.MINED, ConfirmationDepth.COMMIT)
    assert has_reached(OuterChainState.COMMITTED, ConfirmationDepth.COMMIT)
    assert has_reached(OuterChainState.VERIFIED, ConfirmationDepth.COMMIT)
    assert not has_reached(SidechainState.COMMITTED, ConfirmationDepth.VERIFY)
    assert not has_reached(SidechainState.FAILED, ConfirmationDepth.COMMIT)
