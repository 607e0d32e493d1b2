"""Exception hierarchy for the carbon readiness assessment."""

from __future__ import annotations
from typing import List, Optional


class ReadinessError(Exception):
    """Base class for errors raised by this package."""


class CatalogError(ReadinessError):
    """A question or translation catalog could not be loaded or is inconsistent."""


class SubmissionError(ReadinessError):
    """A respondent, answer set or consultation request failed validation."""

    def __init__(self, messages: List[str]):
        self.messages = list(messages)
        super().__init__("; ".join(self.messages) or "Invalid submission")


class DeliveryError(ReadinessError):
    """An external collaborator (mail, spreadsheet, renderer) failed."""

    def __init__(self, channel: str, message: str, cause: Optional[BaseException] = None):
        self.channel = channel
        self.cause = cause
        super().__init__(f"{channel}: {message}")
