"""
JSON-RPC transport onto an L2 rollup node.

JsonRpcObserver implements the NetworkObserver contract over HTTP and also
exposes the submission calls of the same endpoint (tx_submit,
submit_txs_batch) and its contract metadata (contract_address).
"""

import itertools
import logging
from typing import Any, Dict, List, Optional

import httpx

from .disposition import BlockInfo, ConfirmationDepth, NetworkDisposition, OperationId
from .observer import NetworkObserver, RpcError, TransientObservationFault

logger = logging.getLogger(__name__)


class JsonRpcObserver(NetworkObserver):
    """
    NetworkObserver backed by the L2 node's JSON-RPC API.

    Attributes:
        url (str): JSON-RPC endpoint
        timeout (float): Per-request timeout in seconds
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize observer.

        Args:
            url: JSON-RPC endpoint of the L2 node
            timeout: Per-request timeout in seconds
            client: Optional preconfigured client; the observer closes only
                clients it created itself
        """
        self.url = url
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None
        self._request_ids = itertools.count(1)

    async def __aenter__(self) -> "JsonRpcObserver":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release the HTTP client if this observer created it."""
        if self._owns_client:
            await self._client.aclose()

    async def call(self, method: str, params: List[Any]) -> Any:
        """
        Perform one JSON-RPC round trip.

        Args:
            method: RPC method name
            params: Positional parameters

        Returns:
            The "result" member of the response

        Raises:
            RpcError: If the server returned a JSON-RPC error object
            TransientObservationFault: If the HTTP exchange failed or the
                response was not valid JSON-RPC
        """
        request = {
            "jsonrpc": "2.0",
            "id": next(self._request_ids),
            "method": method,
            "params": params
        }
        try:
            response = await self._client.post(self.url, json=request, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as e:
            raise TransientObservationFault(f"{method} request failed: {e}") from e
        except ValueError as e:
            raise TransientObservationFault(f"{method} returned invalid JSON: {e}") from e

        if not isinstance(body, dict):
            raise TransientObservationFault(f"{method} returned a non-object response")

        error = body.get("error")
        if error is not None:
            if not isinstance(error, dict):
                raise RpcError(f"{method} failed: {error}")
            raise RpcError(
                f"{method} failed: {error.get('message', 'unknown error')}",
                code=error.get("code"),
                data=error.get("data")
            )

        if "result" not in body:
            raise TransientObservationFault(f"{method} response has no result")
        return body["result"]

    async def ethop_info(self, serial_id: int) -> Dict[str, Any]:
        """Fetch the status of a priority operation by serial id."""
        return await self.call("ethop_info", [serial_id])

    async def tx_info(self, tx_hash: str) -> Dict[str, Any]:
        """Fetch the status of an L2 transaction by hash."""
        return await self.call("tx_info", [tx_hash])

    async def submit_tx(
        self,
        tx: Dict[str, Any],
        signature: Optional[Dict[str, Any]] = None,
        fast_processing: Optional[bool] = None
    ) -> str:
        """
        Submit a signed L2 transaction.

        Args:
            tx: Signed transaction payload
            signature: Optional outer-chain signature accompanying the payload
            fast_processing: Ask the node to seal a block early

        Returns:
            str: Transaction hash assigned by the node
        """
        return await self.call("tx_submit", [tx, signature, fast_processing])

    async def submit_txs_batch(self, txs: List[Dict[str, Any]]) -> List[str]:
        """
        Submit several signed transactions in one request.

        Args:
            txs: Items of the form {"tx": ..., "signature": ...}

        Returns:
            List[str]: Transaction hashes, in submission order
        """
        return await self.call("submit_txs_batch", [txs])

    async def contract_address(self) -> Dict[str, Any]:
        """Fetch the outer-chain contract addresses the node is bound to."""
        return await self.call("contract_address", [])

    async def poll_disposition(
        self,
        identifier: OperationId,
        depth: ConfirmationDepth
    ) -> NetworkDisposition:
        """
        Ask the node once whether an operation reached a depth.

        Integer identifiers are priority-operation serial ids, strings are
        L2 transaction hashes.

        Args:
            identifier: Serial id or transaction hash
            depth: Confirmation depth being asked about

        Returns:
            NetworkDisposition: Interpreted node answer
        """
        try:
            if isinstance(identifier, int) and not isinstance(identifier, bool):
                info = await self.ethop_info(identifier)
            elif isinstance(identifier, str):
                info = await self.tx_info(identifier)
            else:
                raise TypeError(f"Unsupported operation identifier: {identifier!r}")
        except TransientObservationFault as e:
            e.identifier = identifier
            raise

        if not isinstance(info, dict):
            raise TransientObservationFault(
                f"Malformed status for {identifier!r}: {info!r}", identifier
            )

        disposition = interpret_status(info, depth)
        logger.debug("Polled %r at %s: %r", identifier, depth.action, disposition)
        return disposition


def interpret_status(info: Dict[str, Any], depth: ConfirmationDepth) -> NetworkDisposition:
    """
    Turn an ethop_info / tx_info answer into a disposition.

    Not yet executed is pending. Executed with success explicitly false is a
    failure carrying the node's reason verbatim. Otherwise the operation
    succeeded once its block reached the requested depth.

    Args:
        info: Raw status object
        depth: Confirmation depth being asked about

    Returns:
        NetworkDisposition: Interpreted status
    """
    if not info.get("executed"):
        return NetworkDisposition.pending(info)

    raw_block = info.get("block")
    block = BlockInfo.from_dict(raw_block) if isinstance(raw_block, dict) else None

    if info.get("success") is False:
        return NetworkDisposition.failed(info.get("failReason"), info, block=block)

    if block is not None and block.reached(depth):
        return NetworkDisposition.succeeded(info, block=block)

    return NetworkDisposition.pending(info)
