"""Failure taxonomy shared by the swipe, match and chat services.

Request validation problems (unknown dog, not a participant, empty message)
are raised as ``HTTPException`` by the services directly. The classes here
cover failures of the backing store, which the API maps to a retryable
``503`` response.
"""

from __future__ import annotations


class GrindgrrError(Exception):
    retryable: bool = True
    default_detail: str = "Service temporarily unavailable. Please retry."

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class WriteError(GrindgrrError):
    default_detail = "Write failed. Please retry."


class RecordLookupError(GrindgrrError, LookupError):
    default_detail = "Lookup failed. Please retry."


class RaceLost(GrindgrrError):
    """A create-if-absent lost to a concurrent writer; resolved by re-fetch."""

    default_detail = "Concurrent create detected."


class TransientNetworkError(GrindgrrError):
    default_detail = "Network error. Please retry."
