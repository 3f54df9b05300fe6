"""
The NetworkObserver contract.

An observer answers one question per call: has the L2 network reached a
confirmation depth for an operation? It performs exactly one round trip and
never retries; repeated polling, backoff and deadlines belong to the caller.
"""

from abc import ABC, abstractmethod
from typing import Optional

from .disposition import ConfirmationDepth, NetworkDisposition, OperationId


class TransientObservationFault(Exception):
    """
    A single observation round trip failed.

    This is the only failure a tracker may retry on its own.

    Attributes:
        identifier (Optional[OperationId]): Operation being observed, if known
    """

    def __init__(self, message: str, identifier: Optional[OperationId] = None):
        super().__init__(message)
        self.identifier = identifier


class RpcError(TransientObservationFault):
    """
    The L2 endpoint answered with a JSON-RPC error object.

    Attributes:
        code (Optional[int]): JSON-RPC error code
        data: Optional error data attached by the server
    """

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        data=None,
        identifier: Optional[OperationId] = None
    ):
        super().__init__(message, identifier)
        self.code = code
        self.data = data


class NetworkObserver(ABC):
    """Query interface onto the L2 network's view of submitted operations."""

    @abstractmethod
    async def poll_disposition(
        self,
        identifier: OperationId,
        depth: ConfirmationDepth
    ) -> NetworkDisposition:
        """
        Ask the network once for the disposition of an operation.

        Must be safe to call repeatedly: the query has no side effects on
        the network.

        Args:
            identifier: Priority-operation serial id or L2 transaction hash
            depth: Confirmation depth being asked about

        Returns:
            NetworkDisposition: Pending, or a terminal success/failure

        Raises:
            TransientObservationFault: If the round trip itself failed
        """
