"""Error taxonomy shared by the prediction engine."""

from __future__ import annotations


class ForecasterError(ValueError):
    """Base class for input errors surfaced by the prediction engine."""


class InsufficientDataError(ForecasterError):
    """Raised when there are not enough price points to train or forecast."""

    def __init__(
        self,
        message: str | None = None,
        *,
        required: int,
        available: int,
    ) -> None:
        self.required = int(required)
        self.available = int(available)
        detail = message or "Insufficient price history for the requested operation."
        super().__init__(f"{detail} Required: {self.required}, available: {self.available}.")


class InvalidHistoryError(ForecasterError):
    """Raised when a price history contains a non-positive or non-finite price."""

    def __init__(self, message: str, *, index: int | None = None) -> None:
        self.index = index
        super().__init__(message)


class TrainingCancelledError(RuntimeError):
    """Raised when a cooperative cancellation request stops a training run."""

    def __init__(self, epoch: int) -> None:
        self.epoch = int(epoch)
        super().__init__(f"Training cancelled before epoch {self.epoch}.")


__all__ = [
    "ForecasterError",
    "InsufficientDataError",
    "InvalidHistoryError",
    "TrainingCancelledError",
]
