"""
Rollup Tracker - Observer Module

This module defines how a client asks the L2 network about the disposition
of an operation it submitted, and provides the JSON-RPC transport used to
reach a live L2 endpoint.
"""

from .disposition import (
    BlockInfo,
    ConfirmationDepth,
    DispositionStatus,
    NetworkDisposition,
    OperationId
)
from .observer import NetworkObserver, RpcError, TransientObservationFault
from .rpc import JsonRpcObserver

__all__ = [
    'BlockInfo',
    'ConfirmationDepth',
    'DispositionStatus',
    'NetworkDisposition',
    'OperationId',
    'NetworkObserver',
    'RpcError',
    'TransientObservationFault',
    'JsonRpcObserver'
]
