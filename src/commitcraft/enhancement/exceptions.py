"""Exceptions for message enhancement stages."""


class EnhancementError(Exception):
    """Raised inside an enhancement stage; always absorbed by the enhancer."""

    def __init__(self, message: str, stage: str | None = None) -> None:
        super().__init__(message)
        self.stage = stage
