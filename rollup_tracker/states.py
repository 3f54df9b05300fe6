"""
Lifecycle states for the two kinds of tracked operation.

Operations entering through the outer chain have an extra Mined step,
because their L2 identifier only exists once the outer chain includes them.
Both lifecycles only move forward one step at a time, or to Failed from any
non-terminal state.
"""

from enum import Enum
from typing import List, Optional, Type, Union

from rollup_observer.disposition import ConfirmationDepth


class OuterChainState(Enum):
    SUBMITTED = "Submitted"
    MINED = "Mined"
    COMMITTED = "Committed"
    VERIFIED = "Verified"
    FAILED = "Failed"


class SidechainState(Enum):
    SENT = "Sent"
    COMMITTED = "Committed"
    VERIFIED = "Verified"
    FAILED = "Failed"


LifecycleState = Union[OuterChainState, SidechainState]

_LIFECYCLES = {
    OuterChainState: [
        OuterChainState.SUBMITTED,
        OuterChainState.MINED,
        OuterChainState.COMMITTED,
        OuterChainState.VERIFIED
    ],
    SidechainState: [
        SidechainState.SENT,
        SidechainState.COMMITTED,
        SidechainState.VERIFIED
    ]
}


class InvalidTransition(ValueError):
    """A tracker tried to move between two states its lifecycle forbids."""


def lifecycle(state_cls: Type[Enum]) -> List[LifecycleState]:
    """
    Get the ordered non-failure states of a lifecycle.

    Args:
        state_cls: OuterChainState or SidechainState

    Returns:
        List of states, initial state first
    """
    try:
        return list(_LIFECYCLES[state_cls])
    except KeyError:
        raise TypeError(f"Not a lifecycle state type: {state_cls!r}") from None


def initial_state(state_cls: Type[Enum]) -> LifecycleState:
    return lifecycle(state_cls)[0]


def rank(state: LifecycleState) -> Optional[int]:
    """Position of a state in its lifecycle; None for FAILED."""
    if is_failed(state):
        return None
    return lifecycle(type(state)).index(state)


def is_failed(state: LifecycleState) -> bool:
    return state.name == "FAILED"


def is_terminal(state: LifecycleState) -> bool:
    return state.name in ("FAILED", "VERIFIED")


def can_transition(current: LifecycleState, target: LifecycleState) -> bool:
    """
    Check whether a lifecycle allows moving from one state to another.

    Args:
        current: State the tracker is in
        target: State the tracker wants to enter

    Returns:
        bool: True for a single forward step, or for failing a
            non-terminal state
    """
    if type(current) is not type(target):
        return False
    if is_terminal(current):
        return False
    if is_failed(target):
        return True
    return rank(target) == rank(current) + 1


def check_transition(current: LifecycleState, target: LifecycleState) -> None:
    """
    Raise if a transition is not allowed.

    Raises:
        InvalidTransition: If can_transition() rejects the move
    """
    if not can_transition(current, target):
        raise InvalidTransition(
            f"Cannot move from {current.value} to {target.value}"
        )


def state_for_depth(state_cls: Type[Enum], depth: ConfirmationDepth) -> LifecycleState:
    """
    Get the state a tracker is in once it has reached a depth.

    Args:
        state_cls: OuterChainState or SidechainState
        depth: Confirmation depth

    Returns:
        The COMMITTED or VERIFIED member of state_cls
    """
    if depth == ConfirmationDepth.VERIFY:
        return state_cls.VERIFIED
    return state_cls.COMMITTED


def has_reached(state: LifecycleState, depth: ConfirmationDepth) -> bool:
    """Check whether a (non-failed) state is at or beyond a depth."""
    if is_failed(state):
        return False
    return rank(state) >= rank(state_for_depth(type(state), depth))
