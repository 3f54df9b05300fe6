"""Explicit result type for tracker steps."""

from typing import Any, Dict, Optional

from rollup_observer.disposition import NetworkDisposition
from .errors import TrackerError


class TrackResult:
    """
    Either the receipt a step produced or the error that stopped it.

    Attributes:
        receipt (Optional[NetworkDisposition]): Receipt on success
        error (Optional[TrackerError]): Error on failure
    """

    def __init__(
        self,
        receipt: Optional[NetworkDisposition] = None,
        error: Optional[TrackerError] = None
    ):
        if (receipt is None) == (error is None):
            raise ValueError("TrackResult needs exactly one of receipt or error")
        self.receipt = receipt
        self.error = error

    @classmethod
    def success(cls, receipt: NetworkDisposition) -> "TrackResult":
        return cls(receipt=receipt)

    @classmethod
    def failure(cls, error: TrackerError) -> "TrackResult":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> NetworkDisposition:
        """
        Return the receipt, raising the stored error instead if there is one.

        Raises:
            TrackerError: The error this result carries
        """
        if self.error is not None:
            raise self.error
        return self.receipt

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        if self.error is not None:
            return {"ok": False, "error": self.error.to_dict()}
        return {"ok": True, "receipt": self.receipt.to_dict()}

    def __repr__(self) -> str:
        if self.error is not None:
            return f"TrackResult(error={self.error!r})"
        return f"TrackResult(receipt={self.receipt!r})"
